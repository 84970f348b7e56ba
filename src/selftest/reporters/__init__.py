"""Run reporters."""

from selftest.reporters.base import BaseReporter
from selftest.reporters.console import ConsoleReporter
from selftest.reporters.json_report import JSONReporter

REPORTERS: dict[str, type[BaseReporter]] = {
    "console": ConsoleReporter,
    "json": JSONReporter,
}

__all__ = ["BaseReporter", "ConsoleReporter", "JSONReporter", "REPORTERS"]
