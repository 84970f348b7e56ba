"""SelfTestSession - one operator session against one platform deployment.

Wires the ApiClient, FixtureStore, provisioner, sequencer and services
together. Fixture state lives as long as the session object does.

Example:
    >>> async with SelfTestSession.from_config(load_config()) as session:
    ...     await session.sign_in()
    ...     report = await session.run_all()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import httpx

from selftest.adapters.http import ApiClient
from selftest.config import SelfTestConfig
from selftest.core.check import CheckResult
from selftest.core.fixtures import FixtureStore, SocialPartnerFixture
from selftest.errors import AuthenticationError
from selftest.provisioning import FixtureProvisioner, ProvisionedEnvironment, ProvisionOutcome
from selftest.runner import CheckObserver, ResultStore, RunReport, Sequencer, build_catalog
from selftest.services import AnalysisClient, AnalysisReport, CleanupReport, CleanupService

logger = logging.getLogger(__name__)


class SelfTestSession:
    def __init__(
        self,
        api: ApiClient,
        config: SelfTestConfig,
        fixtures: FixtureStore | None = None,
        observers: list[CheckObserver] | None = None,
    ) -> None:
        self.api = api
        self.config = config
        self.fixtures = fixtures or FixtureStore()
        self.catalog = build_catalog()
        self.results = ResultStore(self.catalog)
        self.provisioner = FixtureProvisioner(api, self.fixtures, config)
        self.analysis = AnalysisClient(api)
        self.sequencer = Sequencer(
            api,
            self.fixtures,
            self.provisioner,
            config,
            catalog=self.catalog,
            results=self.results,
            analysis=self.analysis,
            observers=observers,
        )
        self.cleanup_service = CleanupService(
            api, self.fixtures, self.results, on_reset=self.sequencer.clear_analysis
        )

    @classmethod
    def from_config(
        cls,
        config: SelfTestConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        observers: list[CheckObserver] | None = None,
    ) -> SelfTestSession:
        api = ApiClient(config.base_url, timeout=config.timeout, transport=transport)
        if config.session_token:
            api.use_session_token(config.session_token, config.session_cookie_name)
        return cls(api, config, observers=observers)

    async def sign_in(self) -> dict[str, Any]:
        """Establish the operator session from configured credentials or cookie.

        Raises:
            AuthenticationError: If no credentials are configured or sign-in fails.
        """
        if self.config.has_credentials:
            return await self.api.sign_in(self.config.operator_email, self.config.operator_password)

        session = await self.api.current_session()
        if not session.get("user"):
            raise AuthenticationError(
                "No operator session: configure operator_email/operator_password or session_token"
            )
        return session

    @property
    def last_analysis(self) -> AnalysisReport | None:
        return self.sequencer.last_analysis

    async def run_all(self, analyze: bool = True, categories: Sequence[int] | None = None) -> RunReport:
        return await self.sequencer.run_all(analyze=analyze, categories=categories)

    async def run_check(self, category_index: int, check_index: int) -> CheckResult:
        return await self.sequencer.run_test(category_index, check_index)

    async def setup(self) -> ProvisionedEnvironment:
        return await self.provisioner.setup_test_environment()

    async def seed(self) -> ProvisionOutcome[SocialPartnerFixture]:
        return await self.provisioner.prepare_social_fixtures(silent=False)

    async def cleanup(self, confirm: Callable[[], bool]) -> CleanupReport | None:
        return await self.cleanup_service.cleanup(confirm)

    async def close(self) -> None:
        await self.api.close()

    async def __aenter__(self) -> SelfTestSession:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
