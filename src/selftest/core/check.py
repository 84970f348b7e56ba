"""Check definitions, outcomes and per-check results."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from selftest.adapters.http import ApiClient
    from selftest.config import SelfTestConfig
    from selftest.core.fixtures import FixtureStore
    from selftest.provisioning.provisioner import FixtureProvisioner


class CheckStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_final(self) -> bool:
        return self in (CheckStatus.SUCCESS, CheckStatus.ERROR)


@dataclass
class CheckResult:
    """Status row for one check."""

    name: str
    status: CheckStatus = CheckStatus.PENDING
    message: str | None = None
    duration_ms: float | None = None

    def copy(self) -> CheckResult:
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 2) if self.duration_ms is not None else None,
        }


@dataclass(frozen=True)
class CheckOutcome:
    """What a check body reports back to the sequencer."""

    passed: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> CheckOutcome:
        return cls(passed=True, message=message)

    @classmethod
    def fail(cls, message: str) -> CheckOutcome:
        return cls(passed=False, message=message)


@dataclass
class CheckContext:
    """Everything a check body may touch.

    ``fixtures`` is the live FixtureStore, shared by reference; checks read
    it at call time and write through its set-if-empty helpers.
    """

    api: ApiClient
    fixtures: FixtureStore
    provisioner: FixtureProvisioner
    config: SelfTestConfig


CheckFn = Callable[[CheckContext], Awaitable[CheckOutcome]]


@dataclass(frozen=True)
class CheckDefinition:
    """A named check and the coroutine function that runs it."""

    name: str
    execute: CheckFn
    description: str = ""


@dataclass(frozen=True)
class CategoryDefinition:
    name: str
    checks: tuple[CheckDefinition, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.checks)
