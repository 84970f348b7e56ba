"""Abstract base reporter.

Reporters turn a RunReport into an output format. They follow the Strategy
pattern so the CLI can pick a format at runtime.

Example:
    >>> class CustomReporter(BaseReporter):
    ...     @property
    ...     def file_extension(self) -> str:
    ...         return ".custom"
    ...
    ...     def generate(self, report: RunReport) -> str:
    ...         return "custom format output"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from selftest.runner.sequencer import RunReport


class BaseReporter(ABC):
    """Abstract base class for all reporters.

    Attributes:
        output_path: Optional default path for saving reports.
    """

    def __init__(self, output_path: str | Path | None = None) -> None:
        self.output_path = Path(output_path) if output_path else None

    @abstractmethod
    def generate(self, report: RunReport) -> str:
        """Render the report content."""
        ...

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """File extension including the dot (e.g. '.json')."""
        ...

    def save(self, report: RunReport, path: str | Path | None = None) -> Path:
        """Save the generated report to a file.

        Creates parent directories if they don't exist. Uses the output_path
        from the constructor if no path is provided.

        Raises:
            ValueError: If no output path is provided and none was set in constructor.
        """
        output_path = Path(path) if path else self.output_path
        if not output_path:
            raise ValueError(
                "Output path required for saving report. "
                "Provide 'path' argument or set 'output_path' in constructor."
            )

        content = self.generate(report)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        return output_path
