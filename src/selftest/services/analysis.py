"""AI summary of a run's results."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from selftest.errors import SelfTestError

if TYPE_CHECKING:
    from selftest.adapters.http import ApiClient
    from selftest.runner.results import ResultStore

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/admin/test/analyze"
EMPTY_ANALYSIS = "The analysis endpoint returned no text."


def fallback_text(error: str) -> str:
    return f"AI analysis failed\n\nError: {error}\n\nReview the results manually."


@dataclass(frozen=True)
class AnalysisReport:
    text: str
    ok: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class AnalysisClient:
    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def analyze(self, results: ResultStore | list[dict[str, Any]]) -> AnalysisReport:
        """Post flattened results for summarization. Always returns a report."""
        rows = results if isinstance(results, list) else results.flatten()
        try:
            result = await self.api.post(ANALYZE_PATH, json={"results": rows})
        except SelfTestError as e:
            logger.warning("Analysis request failed: %s", e)
            return AnalysisReport(text=fallback_text(str(e)), ok=False, error=str(e))

        if not result.ok:
            error = result.error_message(f"HTTP {result.status_code}" if result.status_code else "no response")
            logger.warning("Analysis failed: %s", error)
            return AnalysisReport(text=fallback_text(error), ok=False, error=error)

        body = result.json()
        text = body.get("analysis") if isinstance(body, dict) else None
        return AnalysisReport(text=text or EMPTY_ANALYSIS, ok=True)
