"""Result type for provisioning calls.

A provisioning call either produced its fixture (``ok``), failed in a way
the run can live with (``degraded``: continue on pre-existing data), or
failed hard (``failed``). The call site decides which of the last two a
failure becomes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from selftest.errors import SelfTestError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class ProvisionOutcome(Generic[T]):
    kind: OutcomeKind
    value: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: T) -> ProvisionOutcome[T]:
        return cls(OutcomeKind.OK, value=value)

    @classmethod
    def degraded(cls, error: str) -> ProvisionOutcome[T]:
        return cls(OutcomeKind.DEGRADED, error=error)

    @classmethod
    def failed(cls, error: str) -> ProvisionOutcome[T]:
        return cls(OutcomeKind.FAILED, error=error)

    @classmethod
    def skipped(cls) -> ProvisionOutcome[T]:
        """Nothing needed doing; the store already had what was asked for."""
        return cls(OutcomeKind.OK)

    @property
    def is_ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def is_degraded(self) -> bool:
        return self.kind is OutcomeKind.DEGRADED

    def to_dict(self) -> dict[str, str | None]:
        return {"kind": self.kind.value, "error": self.error}


async def best_effort(label: str, call: Awaitable[T]) -> ProvisionOutcome[T]:
    """Await a provisioning call, turning a SelfTestError into a degraded outcome."""
    try:
        value = await call
    except SelfTestError as e:
        logger.warning("%s failed, continuing with existing data: %s", label, e)
        return ProvisionOutcome.degraded(str(e))
    return ProvisionOutcome.ok(value)
