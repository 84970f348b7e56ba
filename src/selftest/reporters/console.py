"""Console reporter for terminal output."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from selftest.core.check import CheckResult, CheckStatus
from selftest.reporters.base import BaseReporter

if TYPE_CHECKING:
    from selftest.runner.sequencer import RunReport


class ConsoleReporter(BaseReporter):
    """Formats run results for the terminal.

    Also acts as a Sequencer observer: attach it with ``add_observer`` to get
    one line per finished check while the run is in progress.
    """

    # ANSI color codes
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    # Box drawing characters
    BOX_TL = "┌"
    BOX_TR = "┐"
    BOX_BL = "└"
    BOX_BR = "┘"
    BOX_H = "─"
    BOX_V = "│"

    def __init__(
        self,
        file: TextIO | None = None,
        color: bool = True,
        output_path: str | Path | None = None,
    ) -> None:
        super().__init__(output_path)
        self.file = file or sys.stdout
        self.color = color
        self._lines: list[str] | None = None

    @property
    def file_extension(self) -> str:
        return ".txt"

    def _c(self, text: str, code: str) -> str:
        """Apply color if enabled."""
        if self.color:
            return f"{code}{text}{self.RESET}"
        return text

    def on_check_update(self, category: str, result: CheckResult) -> None:
        """Print one line per finished check."""
        if not result.status.is_final:
            return
        if result.status == CheckStatus.SUCCESS:
            icon = self._c("✓", self.GREEN)
        else:
            icon = self._c("✗", self.RED)
        duration = f"{result.duration_ms:.0f}ms" if result.duration_ms is not None else "-"
        self._emit(
            f"  {icon} {category} / {result.name} {self._c(f'({duration})', self.DIM)}"
            f"  {self._truncate(result.message or '', 80)}"
        )

    def report(self, report: RunReport) -> None:
        """Output the run report to the console."""
        self._lines = None
        self._render(report)

    def generate(self, report: RunReport) -> str:
        self._lines = []
        try:
            self._render(report)
            return "\n".join(self._lines) + "\n"
        finally:
            self._lines = None

    def _render(self, report: RunReport) -> None:
        self._newline()
        if report.all_passed:
            status = self._c("PASSED", self.GREEN + self.BOLD)
            icon = self._c("✓", self.GREEN)
        else:
            status = self._c(f"FAILED ({report.failed} of {report.total})", self.RED + self.BOLD)
            icon = self._c("✗", self.RED)

        self._emit(f"  {icon} Platform self-test: {status}")
        self._emit(self._c("  " + "─" * 60, self.DIM))
        self._newline()

        summary_parts = [
            f"{report.total} checks",
            self._c(f"{report.passed} passed", self.GREEN),
            self._c(f"{report.failed} failed", self.RED if report.failed else self.DIM),
            f"{report.duration_ms / 1000:.1f}s",
        ]
        if report.avg_duration_ms is not None:
            summary_parts.append(f"avg {report.avg_duration_ms:.0f}ms")
        self._emit(f"  {self._c('Summary:', self.BOLD)} {' │ '.join(summary_parts)}")
        if report.setup.is_degraded:
            self._emit(self._c(f"  ⚠ Environment setup failed: {report.setup.error}", self.YELLOW))
        if report.seeding.is_degraded:
            self._emit(self._c(f"  ⚠ Social seeding failed: {report.seeding.error}", self.YELLOW))
        slow = report.slow_checks
        if slow:
            self._emit(self._c(f"  Slow checks (>= {report.slow_threshold_ms:.0f}ms):", self.YELLOW))
            for entry in slow:
                duration = f"{entry['duration_ms']:.0f}ms"
                self._emit(f"    {entry['category']} / {entry['name']} {self._c(duration, self.DIM)}")
        self._newline()

        for category in report.categories:
            failures = [c for c in category["checks"] if c["status"] == CheckStatus.ERROR.value]
            passed = len(category["checks"]) - len(failures)
            color = self.GREEN if not failures else self.RED
            tally = f"{passed}/{len(category['checks'])}"
            self._emit(f"  {self._c(category['name'], self.BOLD)} {self._c(tally, color)}")
            for check in failures:
                self._emit(f"  {self.BOX_TL}{self.BOX_H * 58}{self.BOX_TR}")
                self._emit(f"  {self.BOX_V} {self._c('[ERROR]', self.RED)} {self._c(check['name'], self.BOLD)}")
                if check.get("message"):
                    self._emit(f"  {self.BOX_V}   {self._truncate(check['message'], 54)}")
                self._emit(f"  {self.BOX_BL}{self.BOX_H * 58}{self.BOX_BR}")
        self._newline()

        if report.analysis is not None:
            header_color = self.CYAN if report.analysis.ok else self.YELLOW
            self._emit(f"  {self._c('AI analysis', header_color + self.BOLD)}")
            for line in report.analysis.text.splitlines():
                self._emit(f"    {line}")
            self._newline()

        self._emit(self._c("  " + "─" * 60, self.DIM))
        if report.all_passed:
            self._emit(f"  {self._c('All checks passed.', self.GREEN)}")
        else:
            self._emit(f"  {self._c('Fix the failures above and re-run.', self.YELLOW)}")
        self._newline()

    def _emit(self, text: str) -> None:
        if self._lines is not None:
            self._lines.append(text)
        else:
            print(text, file=self.file)

    def _newline(self) -> None:
        self._emit("")

    def _truncate(self, text: str, max_chars: int = 200) -> str:
        if len(text) <= max_chars:
            return text
        return text[: max_chars - 3] + "..."
