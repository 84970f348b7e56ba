"""JSON reporter for machine-readable run output."""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from selftest import __version__
from selftest.reporters.base import BaseReporter

if TYPE_CHECKING:
    from selftest.runner.sequencer import RunReport


class JSONReporter(BaseReporter):
    """Generate JSON reports.

    Attributes:
        output_path: Optional default path for saving reports.
        indent: Number of spaces for JSON indentation (default: 2).
    """

    @property
    def file_extension(self) -> str:
        return ".json"

    def __init__(self, output_path: str | Path | None = None, indent: int | None = 2) -> None:
        super().__init__(output_path)
        self.indent = indent

    def generate(self, report: RunReport) -> str:
        document = {
            "report_version": "1.0",
            "tool_version": __version__,
            "generated_at": datetime.now().isoformat(),
            **report.to_dict(),
        }
        return json.dumps(document, indent=self.indent, ensure_ascii=False, default=self._json_serializer)

    @staticmethod
    def _json_serializer(obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
