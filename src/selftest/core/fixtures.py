"""Shared fixture state for a self-test session.

The FixtureStore is the single mutable object that flows, by reference,
through every provisioning call and every check. Checks always read it at
call time; nothing caches a fixture value across checks.

Session-scoped fixtures (test user, test character, social partner) survive
between runs and are cleared only by cleanup. Run-scoped refs (point
snapshot, persona id, the character/chat created in this pass) are cleared
at the start of every full pass.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class TestUserFixture:
    """Ephemeral account that is not the operator.

    Adopted users (derived from an existing character's author) carry no
    credentials.
    """

    __test__ = False

    email: str | None
    password: str | None
    user_id: int | None = None
    adopted: bool = False


@dataclass(frozen=True)
class TestCharacterFixture:
    __test__ = False

    id: int
    name: str | None = None


@dataclass(frozen=True)
class SocialPartnerFixture:
    """Second identity used as follow/like/comment target."""

    user_id: int
    character_id: int | None = None
    nickname: str | None = None


@dataclass(frozen=True)
class PointSnapshot:
    free: int
    paid: int

    @property
    def total(self) -> int:
        return self.free + self.paid

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> PointSnapshot:
        return cls(
            free=int(body.get("free_points") or 0),
            paid=int(body.get("paid_points") or 0),
        )


@dataclass
class FixtureStore:
    """Mutable fixture context shared by provisioner, checks and cleanup."""

    test_user: TestUserFixture | None = None
    character: TestCharacterFixture | None = None
    partner: SocialPartnerFixture | None = None

    # run-scoped
    point_snapshot: PointSnapshot | None = None
    expected_point_delta: int = 0
    persona_id: int | None = None
    last_created_character: TestCharacterFixture | None = None
    chat_id: int | None = None

    @property
    def is_provisioned(self) -> bool:
        """True when both a test user and a test character are known."""
        return self.test_user is not None and self.character is not None

    def adopt_user(self, user: TestUserFixture) -> TestUserFixture:
        """Set the test user if empty; return whichever user is in place."""
        if self.test_user is None:
            self.test_user = user
        return self.test_user

    def adopt_character(self, character: TestCharacterFixture) -> TestCharacterFixture:
        """Set the test character if empty; return whichever character is in place."""
        if self.character is None:
            self.character = character
        return self.character

    def adopt_partner(self, partner: SocialPartnerFixture) -> SocialPartnerFixture:
        if self.partner is None:
            self.partner = partner
        return self.partner

    def search_target(self) -> TestCharacterFixture | None:
        """Character whose discoverability search checks must prove."""
        return self.last_created_character or self.character

    def reset_run_state(self) -> None:
        """Clear refs that only make sense within one pass."""
        self.point_snapshot = None
        self.expected_point_delta = 0
        self.persona_id = None
        self.last_created_character = None
        self.chat_id = None

    def reset(self) -> None:
        """Forget every fixture. Used after cleanup."""
        self.test_user = None
        self.character = None
        self.partner = None
        self.reset_run_state()

    def is_empty(self) -> bool:
        return (
            self.test_user is None
            and self.character is None
            and self.partner is None
            and self.point_snapshot is None
            and self.persona_id is None
            and self.last_created_character is None
            and self.chat_id is None
            and self.expected_point_delta == 0
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain copy for display and reports."""
        return {
            "test_user": asdict(self.test_user) if self.test_user else None,
            "character": asdict(self.character) if self.character else None,
            "partner": asdict(self.partner) if self.partner else None,
            "point_snapshot": asdict(self.point_snapshot) if self.point_snapshot else None,
            "persona_id": self.persona_id,
            "chat_id": self.chat_id,
        }
