"""Catalog, result store and sequencer."""

from selftest.runner.catalog import TestCatalog, build_catalog, find_category, total_checks
from selftest.runner.results import ResultStore
from selftest.runner.sequencer import CheckObserver, RunReport, Sequencer

__all__ = [
    "CheckObserver",
    "ResultStore",
    "RunReport",
    "Sequencer",
    "TestCatalog",
    "build_catalog",
    "find_category",
    "total_checks",
]
