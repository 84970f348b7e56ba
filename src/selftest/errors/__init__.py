"""Error handling for the self-test engine.

- Coded exception hierarchy (SelfTestError and subclasses)
- Error-body normalization for heterogeneous API error shapes
"""

from selftest.errors.base import (
    AuthenticationError,
    CheckFailure,
    CleanupError,
    ConfigValidationError,
    ErrorCode,
    ErrorContext,
    PreconditionError,
    ProvisioningError,
    RequestFailedError,
    SelfTestError,
)
from selftest.errors.normalize import extract_error_message

__all__ = [
    "SelfTestError",
    "ErrorCode",
    "ErrorContext",
    "ConfigValidationError",
    "RequestFailedError",
    "AuthenticationError",
    "ProvisioningError",
    "CheckFailure",
    "PreconditionError",
    "CleanupError",
    "extract_error_message",
]
