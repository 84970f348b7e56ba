"""Teardown of everything the self-test created."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from selftest.errors import CleanupError

if TYPE_CHECKING:
    from selftest.adapters.http import ApiClient
    from selftest.core.fixtures import FixtureStore
    from selftest.runner.results import ResultStore

logger = logging.getLogger(__name__)

CLEANUP_PATH = "/api/admin/test/cleanup"


@dataclass(frozen=True)
class CleanupReport:
    message: str
    users: int = 0
    characters: int = 0
    chats: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CleanupService:
    """Deletes test data server-side and forgets it locally.

    The local reset happens whether or not the server call succeeded; a
    failed call is reported in the returned CleanupReport.
    """

    def __init__(
        self,
        api: ApiClient,
        fixtures: FixtureStore,
        results: ResultStore,
        on_reset: Callable[[], None] | None = None,
    ) -> None:
        self.api = api
        self.fixtures = fixtures
        self.results = results
        self.on_reset = on_reset

    async def cleanup(self, confirm: Callable[[], bool]) -> CleanupReport | None:
        """Run cleanup if ``confirm()`` returns True; None when declined."""
        if not confirm():
            logger.info("Cleanup declined")
            return None

        try:
            report = await self._delete()
        except CleanupError as e:
            logger.error("Cleanup failed: %s", e)
            report = CleanupReport(message="Cleanup failed", error=str(e))
        finally:
            self._reset_local()

        if report.ok:
            logger.info(
                "Cleanup removed %d users, %d characters, %d chats",
                report.users,
                report.characters,
                report.chats,
            )
        return report

    async def _delete(self) -> CleanupReport:
        result = await self.api.delete(CLEANUP_PATH)
        if not result.ok:
            raise CleanupError(
                result.error_message("Test data cleanup failed"),
                status_code=result.status_code or None,
            )
        body = result.json() if isinstance(result.json(), dict) else {}
        deleted = body.get("deleted") or {}
        return CleanupReport(
            message=body.get("message") or "Test data deleted",
            users=int(deleted.get("users") or 0),
            characters=int(deleted.get("characters") or 0),
            chats=int(deleted.get("chats") or 0),
        )

    def _reset_local(self) -> None:
        self.fixtures.reset()
        self.results.reset()
        if self.on_reset is not None:
            self.on_reset()
