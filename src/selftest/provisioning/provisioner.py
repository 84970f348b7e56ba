"""Fixture provisioning: test user, test character and social partner."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from selftest.core.fixtures import (
    FixtureStore,
    SocialPartnerFixture,
    TestCharacterFixture,
    TestUserFixture,
)
from selftest.core.payloads import as_dict, as_int, character_list
from selftest.errors import ErrorCode, ProvisioningError
from selftest.provisioning.outcome import ProvisionOutcome
from selftest.provisioning.spec_generator import SpecGenerator, random_category

if TYPE_CHECKING:
    from selftest.adapters.http import ApiClient
    from selftest.config import SelfTestConfig

logger = logging.getLogger(__name__)

TEST_USER_NAME = "テストユーザー"
TEST_NICKNAME_PREFIX = "テストユーザー_"


@dataclass(frozen=True)
class ProvisionedEnvironment:
    user_id: int
    character_id: int
    email: str
    password: str


class FixtureProvisioner:
    """Creates or adopts the fixtures later checks depend on.

    Every write into the FixtureStore goes through its set-if-empty helpers,
    so provisioning never replaces a fixture that is already in place.
    """

    def __init__(
        self,
        api: ApiClient,
        fixtures: FixtureStore,
        config: SelfTestConfig,
        spec_generator: SpecGenerator | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self.api = api
        self.fixtures = fixtures
        self.config = config
        self.spec_generator = spec_generator or SpecGenerator(api, tag=config.discovery_tag)
        self._clock = clock
        self._rng = rng or random.Random()

    async def setup_test_environment(self) -> ProvisionedEnvironment:
        """Register an ephemeral account and create a public character under it.

        Nothing is written to the FixtureStore unless both steps succeed.

        Raises:
            ProvisioningError: With the server-supplied reason when registration
                or character creation is rejected.
        """
        stamp = int(self._clock() * 1000)
        email = f"test_{stamp}@{self.config.test_email_domain}"
        password = self.config.test_password

        registered = await self.api.post(
            "/api/register",
            json={
                "email": email,
                "password": password,
                "name": TEST_USER_NAME,
                "phone": f"090{self._rng.randrange(10**8):08d}",
                "nickname": f"{TEST_NICKNAME_PREFIX}{stamp}",
            },
        )
        if not registered.ok:
            raise ProvisioningError(registered.error_message("Test user registration failed"))
        user_id = as_int(as_dict(as_dict(registered.json()).get("user")).get("id"))
        if user_id is None:
            raise ProvisioningError("Registration response did not include user.id")

        category = random_category(self._rng)
        spec = await self.spec_generator.generate(category)

        created = await self.api.post("/api/characters", json=spec.to_payload(userId=user_id))
        if not created.ok:
            raise ProvisioningError(created.error_message("Test character creation failed"))
        character_id = as_int(as_dict(as_dict(created.json()).get("character")).get("id"))
        if character_id is None:
            raise ProvisioningError("Character creation response did not include character.id")

        self.fixtures.adopt_user(TestUserFixture(email=email, password=password, user_id=user_id))
        kept = self.fixtures.adopt_character(TestCharacterFixture(id=character_id, name=spec.name))
        if kept.id != character_id:
            logger.info("Keeping existing test character %s (created %s)", kept.id, character_id)

        logger.info(
            "Test environment ready: user %s, character %s (%s spec)",
            user_id,
            character_id,
            "generated" if spec.generated else "fallback",
        )
        return ProvisionedEnvironment(
            user_id=user_id, character_id=character_id, email=email, password=password
        )

    async def adopt_existing_character(self) -> TestCharacterFixture | None:
        """Adopt the first public character when no owned fixture exists.

        Creates nothing server-side. Returns the fixture in place afterwards,
        or None when the platform lists no characters.
        """
        if self.fixtures.character is not None:
            return self.fixtures.character

        listed = await self.api.get("/api/charlist")
        if not listed.ok:
            raise ProvisioningError(listed.error_message("Character list unavailable"))

        characters = character_list(listed.json())
        if not characters:
            return None

        first = characters[0]
        character_id = as_int(first.get("id"))
        if character_id is None:
            raise ProvisioningError("First listed character has no id")

        author_id = as_int(first.get("author_id"))
        if author_id is not None:
            self.fixtures.adopt_user(
                TestUserFixture(email=None, password=None, user_id=author_id, adopted=True)
            )
        logger.info("Adopted existing character %s", character_id)
        return self.fixtures.adopt_character(
            TestCharacterFixture(id=character_id, name=first.get("name"))
        )

    async def prepare_social_fixtures(
        self, silent: bool = False
    ) -> ProvisionOutcome[SocialPartnerFixture]:
        """Seed a partner identity with follow/favorite/notification edges.

        The seed endpoint upserts, so repeated calls leave one partner.

        Args:
            silent: Log and return a degraded outcome on failure instead of raising.

        Raises:
            ProvisioningError: On failure when ``silent`` is False.
        """
        seeded = await self.api.post("/api/admin/test/seed")
        body = as_dict(seeded.json())
        partner_id = as_int(as_dict(body.get("partnerUser")).get("id"))

        if not seeded.ok or partner_id is None:
            reason = (
                seeded.error_message("Social fixture seeding failed")
                if not seeded.ok
                else "Seed response did not include partnerUser.id"
            )
            if silent:
                logger.warning("Social fixture seeding failed, continuing: %s", reason)
                return ProvisionOutcome.degraded(reason)
            raise ProvisioningError(reason, error_code=ErrorCode.SEEDING_FAILED)

        partner = self.fixtures.adopt_partner(
            SocialPartnerFixture(
                user_id=partner_id,
                character_id=as_int(body.get("partnerCharacterId")),
                nickname=as_dict(body.get("partnerUser")).get("nickname"),
            )
        )
        target_character = as_int(body.get("targetCharacterId"))
        if target_character is not None:
            self.fixtures.adopt_character(TestCharacterFixture(id=target_character))

        logger.info(
            "Social fixtures ready: partner %s, follow created=%s, favorite created=%s, notifications=%s",
            partner.user_id,
            body.get("followCreated"),
            body.get("favoriteCreated"),
            body.get("notificationsCreated"),
        )
        return ProvisionOutcome.ok(partner)
