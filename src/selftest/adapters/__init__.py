"""Adapters to the platform under test."""

from selftest.adapters.http import CSRF_HEADER, ApiClient

__all__ = ["ApiClient", "CSRF_HEADER"]
