"""Per-check results mirroring the catalog's shape."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from selftest.core.check import CheckResult, CheckStatus
from selftest.runner.catalog import TestCatalog


class ResultStore:
    """One CheckResult per catalog entry, addressed by (category, check) index.

    The shape is fixed at construction; only result contents change.
    """

    def __init__(self, catalog: TestCatalog) -> None:
        self.catalog = catalog
        self._results: list[list[CheckResult]] = []
        self.reset()

    def reset(self) -> None:
        """Put every check back to pending."""
        self._results = [
            [CheckResult(name=check.name) for check in category.checks]
            for category in self.catalog
        ]

    def get(self, category_index: int, check_index: int) -> CheckResult:
        return self._results[category_index][check_index]

    def update(
        self,
        category_index: int,
        check_index: int,
        status: CheckStatus,
        message: str | None = None,
        duration_ms: float | None = None,
    ) -> CheckResult:
        """Update a result in place and return a copy for observers."""
        result = self._results[category_index][check_index]
        result.status = status
        result.message = message
        result.duration_ms = duration_ms
        return result.copy()

    def __iter__(self) -> Iterator[tuple[str, CheckResult]]:
        for category, results in zip(self.catalog, self._results):
            for result in results:
                yield category.name, result

    def __len__(self) -> int:
        return sum(len(results) for results in self._results)

    def _select(self, categories: Iterable[int] | None) -> Iterator[tuple[str, list[CheckResult]]]:
        indices = range(len(self.catalog)) if categories is None else categories
        for index in indices:
            yield self.catalog[index].name, self._results[index]

    def counts(self, categories: Iterable[int] | None = None) -> dict[str, int]:
        counts = {status.value: 0 for status in CheckStatus}
        for _, results in self._select(categories):
            for result in results:
                counts[result.status.value] += 1
        return counts

    @property
    def all_passed(self) -> bool:
        return all(result.status == CheckStatus.SUCCESS for _, result in self)

    def failures(self) -> list[tuple[str, CheckResult]]:
        return [(category, result) for category, result in self if result.status == CheckStatus.ERROR]

    def flatten(self, categories: Iterable[int] | None = None) -> list[dict[str, Any]]:
        """Rows in the shape the analysis endpoint expects."""
        return [
            {
                "category": category,
                "name": result.name,
                "status": result.status.value,
                "message": result.message,
                "duration": round(result.duration_ms) if result.duration_ms is not None else None,
            }
            for category, results in self._select(categories)
            for result in results
        ]

    def snapshot(self, categories: Iterable[int] | None = None) -> list[dict[str, Any]]:
        """Nested copy grouped by category, for reports."""
        return [
            {"name": category, "checks": [result.to_dict() for result in results]}
            for category, results in self._select(categories)
        ]
