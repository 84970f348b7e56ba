"""Cleanup and analysis services."""

from selftest.services.analysis import AnalysisClient, AnalysisReport
from selftest.services.cleanup import CleanupReport, CleanupService

__all__ = ["AnalysisClient", "AnalysisReport", "CleanupReport", "CleanupService"]
