"""Sequencer - runs the catalog one check at a time."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from selftest.core.check import CheckContext, CheckResult, CheckStatus
from selftest.errors import SelfTestError
from selftest.observability import log_context
from selftest.provisioning import ProvisionOutcome, best_effort
from selftest.runner.catalog import TestCatalog, build_catalog
from selftest.runner.results import ResultStore
from selftest.services.analysis import AnalysisClient, AnalysisReport

if TYPE_CHECKING:
    from selftest.adapters.http import ApiClient
    from selftest.config import SelfTestConfig
    from selftest.core.fixtures import FixtureStore
    from selftest.provisioning import FixtureProvisioner

logger = logging.getLogger(__name__)


class CheckObserver(Protocol):
    """Receives a copy of a result every time its status changes."""

    def on_check_update(self, category: str, result: CheckResult) -> None: ...


@dataclass
class RunReport:
    """Everything a full pass produced."""

    started_at: datetime
    finished_at: datetime
    duration_ms: float
    categories: list[dict[str, Any]]
    counts: dict[str, int]
    setup: ProvisionOutcome[Any]
    seeding: ProvisionOutcome[Any]
    analysis: AnalysisReport | None = None
    fixtures: dict[str, Any] = field(default_factory=dict)
    slow_threshold_ms: float = 1000.0

    @property
    def total(self) -> int:
        return sum(len(category["checks"]) for category in self.categories)

    @property
    def passed(self) -> int:
        return self.counts.get(CheckStatus.SUCCESS.value, 0)

    @property
    def failed(self) -> int:
        return self.counts.get(CheckStatus.ERROR.value, 0)

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.passed == self.total

    def _timed(self) -> list[dict[str, Any]]:
        return [
            {"category": category["name"], "name": check["name"], "duration_ms": check["duration_ms"]}
            for category in self.categories
            for check in category["checks"]
            if check.get("duration_ms") is not None
        ]

    @property
    def avg_duration_ms(self) -> float | None:
        """Mean duration of the checks that ran, or None when none did."""
        timed = self._timed()
        if not timed:
            return None
        return sum(entry["duration_ms"] for entry in timed) / len(timed)

    @property
    def slow_checks(self) -> list[dict[str, Any]]:
        """Checks at or above ``slow_threshold_ms``, slowest first."""
        slow = [entry for entry in self._timed() if entry["duration_ms"] >= self.slow_threshold_ms]
        return sorted(slow, key=lambda entry: entry["duration_ms"], reverse=True)

    def to_dict(self) -> dict[str, Any]:
        avg = self.avg_duration_ms
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration_ms": round(self.duration_ms, 2),
            "summary": {"total": self.total, "passed": self.passed, "failed": self.failed},
            "timing": {
                "avg_duration_ms": round(avg, 2) if avg is not None else None,
                "slow_threshold_ms": self.slow_threshold_ms,
                "slow_checks": self.slow_checks,
            },
            "setup": {"environment": self.setup.to_dict(), "social": self.seeding.to_dict()},
            "categories": self.categories,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "fixtures": self.fixtures,
        }


class Sequencer:
    """Runs checks strictly in catalog order and records their results.

    Exactly one check is running at any time. Checks receive the live
    FixtureStore through CheckContext; observers only ever receive copies.
    """

    def __init__(
        self,
        api: ApiClient,
        fixtures: FixtureStore,
        provisioner: FixtureProvisioner,
        config: SelfTestConfig,
        catalog: TestCatalog | None = None,
        results: ResultStore | None = None,
        analysis: AnalysisClient | None = None,
        observers: list[CheckObserver] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.api = api
        self.fixtures = fixtures
        self.provisioner = provisioner
        self.config = config
        self.catalog = catalog if catalog is not None else build_catalog()
        self.results = results if results is not None else ResultStore(self.catalog)
        self.analysis = analysis or AnalysisClient(api)
        self.observers = list(observers or [])
        self._sleep = sleep
        self.last_analysis: AnalysisReport | None = None

    def add_observer(self, observer: CheckObserver) -> None:
        self.observers.append(observer)

    def clear_analysis(self) -> None:
        self.last_analysis = None

    @property
    def context(self) -> CheckContext:
        return CheckContext(
            api=self.api,
            fixtures=self.fixtures,
            provisioner=self.provisioner,
            config=self.config,
        )

    def _notify(self, category: str, result: CheckResult) -> None:
        for observer in self.observers:
            observer.on_check_update(category, result)

    async def run_test(self, category_index: int, check_index: int) -> CheckResult:
        """Run one check and record its result. Never raises for check errors.

        Raises:
            IndexError: If the indices do not address a catalog entry.
        """
        category = self.catalog[category_index]
        check = category.checks[check_index]

        self._notify(
            category.name,
            self.results.update(category_index, check_index, CheckStatus.RUNNING),
        )

        start = time.perf_counter()
        with log_context(category=category.name, check=check.name):
            try:
                outcome = await check.execute(self.context)
            except SelfTestError as e:
                e.context.category = e.context.category or category.name
                e.context.check = e.context.check or check.name
                status, message = CheckStatus.ERROR, str(e)
                logger.warning(
                    "[%s] %s failed: %s",
                    e.error_code.value,
                    e.context.format_location(),
                    e,
                    extra={"error": e.to_dict()},
                )
            except Exception as e:
                status, message = CheckStatus.ERROR, f"{type(e).__name__}: {e}"
                logger.exception("%s / %s raised unexpectedly", category.name, check.name)
            else:
                status = CheckStatus.SUCCESS if outcome.passed else CheckStatus.ERROR
                message = outcome.message
                if outcome.passed:
                    logger.info("%s / %s ok: %s", category.name, check.name, message)
                else:
                    logger.warning("%s / %s failed: %s", category.name, check.name, message)
        duration_ms = (time.perf_counter() - start) * 1000

        result = self.results.update(category_index, check_index, status, message, duration_ms)
        self._notify(category.name, result)
        return result

    async def run_all(self, analyze: bool = True, categories: Sequence[int] | None = None) -> RunReport:
        """Provision (best effort), run every check in order, then analyze.

        Args:
            analyze: Ask the analysis endpoint to summarize the results.
            categories: Catalog indices to run. Defaults to the whole catalog.
                Other categories are left pending and kept out of the report.

        Raises:
            IndexError: If a category index does not address the catalog.
        """
        selected = list(range(len(self.catalog))) if categories is None else sorted(set(categories))
        for index in selected:
            if not 0 <= index < len(self.catalog):
                raise IndexError(f"category index {index} out of range 0..{len(self.catalog) - 1}")

        started_at = datetime.now()
        start = time.perf_counter()
        self.last_analysis = None

        if self.fixtures.is_provisioned:
            setup: ProvisionOutcome[Any] = ProvisionOutcome.skipped()
        else:
            setup = await best_effort("Test environment setup", self.provisioner.setup_test_environment())
        seeding: ProvisionOutcome[Any] = await self.provisioner.prepare_social_fixtures(silent=True)

        self.results.reset()
        self.fixtures.reset_run_state()

        cooldown = self.config.cooldown_seconds
        positions = [
            (category_index, check_index)
            for category_index in selected
            for check_index in range(len(self.catalog[category_index]))
        ]
        logger.info("Running %d checks", len(positions))
        for n, (category_index, check_index) in enumerate(positions):
            if n and cooldown > 0:
                await self._sleep(cooldown)
            await self.run_test(category_index, check_index)

        if analyze:
            self.last_analysis = await self.analysis.analyze(self.results.flatten(selected))

        counts = self.results.counts(selected)
        logger.info(
            "Run finished: %d passed, %d failed",
            counts[CheckStatus.SUCCESS.value],
            counts[CheckStatus.ERROR.value],
        )
        return RunReport(
            started_at=started_at,
            finished_at=datetime.now(),
            duration_ms=(time.perf_counter() - start) * 1000,
            categories=self.results.snapshot(selected),
            counts=counts,
            setup=setup,
            seeding=seeding,
            analysis=self.last_analysis,
            fixtures=self.fixtures.to_dict(),
            slow_threshold_ms=self.config.slow_check_ms,
        )
