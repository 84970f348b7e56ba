"""Exception hierarchy for the self-test engine.

Every error raised by the engine inherits from SelfTestError and carries:
- error_code: an ErrorCode for programmatic handling
- context: ErrorContext with category/check/request details
- suggestions: actionable steps for the operator

Example:
    try:
        await provisioner.setup_test_environment()
    except ProvisioningError as e:
        print(e.format_verbose())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes.

    - E0xx: Transport errors
    - E1xx: Request errors
    - E2xx: Configuration errors
    - E3xx: Fixture provisioning errors
    - E4xx: Check execution errors
    - E5xx: Cleanup errors
    - E9xx: Unknown
    """

    TRANSPORT_FAILED = "E001"
    AUTHENTICATION_FAILED = "E002"

    REQUEST_FAILED = "E101"
    CSRF_UNAVAILABLE = "E102"

    INVALID_CONFIG = "E202"

    PROVISIONING_FAILED = "E301"
    SEEDING_FAILED = "E302"

    CHECK_FAILED = "E401"
    PRECONDITION_FAILED = "E402"

    CLEANUP_FAILED = "E501"

    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if code_num < 100:
            return "transport"
        elif code_num < 200:
            return "request"
        elif code_num < 300:
            return "validation"
        elif code_num < 400:
            return "provisioning"
        elif code_num < 500:
            return "check"
        elif code_num < 600:
            return "service"
        return "unknown"


@dataclass
class ErrorContext:
    """Where an error happened and what was on the wire.

    Attributes:
        category: Catalog category being executed.
        check: Name of the current check.
        request: Request details (method, url).
        response: Response details (status, body).
        extra: Additional context-specific information.
        timestamp: When the error occurred.
    """

    category: str | None = None
    check: str | None = None
    request: dict[str, Any] | None = None
    response: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for serialization."""
        result = {
            "category": self.category,
            "check": self.check,
            "request": self.request,
            "response": self.response,
            "extra": self.extra,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.category:
            parts.append(f"category={self.category}")
        if self.check:
            parts.append(f"check={self.check}")
        return " > ".join(parts) if parts else "unknown location"


class SelfTestError(Exception):
    """Base exception for all self-test errors.

    Attributes:
        error_code: Unique ErrorCode for this error type
        message: Human-readable error description
        context: ErrorContext with execution details
        suggestions: Actionable steps to resolve the issue
        cause: The underlying exception (if any)
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        if extra_context:
            self.context.extra.update(extra_context)

        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        """Get actionable suggestions for resolving this error."""
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        return self.message

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [f"Error [{self.error_code.value}]: {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.context.request:
            method = self.context.request.get("method", "?")
            url = self.context.request.get("url", "?")
            lines.append(f"Request: {method} {url}")

        if self.context.response:
            status = self.context.response.get("status", "?")
            lines.append(f"Response: HTTP {status}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigValidationError(SelfTestError):
    """Configuration value is invalid."""

    error_code = ErrorCode.INVALID_CONFIG
    default_message = "Invalid configuration"
    default_suggestions = [
        "Check selftest.yaml and SELFTEST_* environment variables",
    ]

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message, **kwargs)


class RequestFailedError(SelfTestError):
    """An API call returned an error status or never completed."""

    error_code = ErrorCode.REQUEST_FAILED
    default_message = "API request failed"

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        body: Any = None,
        **kwargs: Any,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message, **kwargs)


class AuthenticationError(SelfTestError):
    """The operator session could not be established."""

    error_code = ErrorCode.AUTHENTICATION_FAILED
    default_message = "Operator sign-in failed"
    default_suggestions = [
        "Verify SELFTEST_OPERATOR_EMAIL / SELFTEST_OPERATOR_PASSWORD",
        "Or pass a valid session cookie via SELFTEST_SESSION_TOKEN",
        "The operator must hold an admin role for seed/cleanup/analyze",
    ]


class ProvisioningError(SelfTestError):
    """Fixture provisioning (environment setup or social seeding) failed."""

    error_code = ErrorCode.PROVISIONING_FAILED
    default_message = "Fixture provisioning failed"
    default_suggestions = [
        "The run continues on pre-existing data; failures of dependent checks are expected",
    ]


class CheckFailure(SelfTestError):
    """A check observed behaviour it does not accept."""

    error_code = ErrorCode.CHECK_FAILED
    default_message = "Check failed"


class PreconditionError(CheckFailure):
    """A check could not run because an earlier step did not happen."""

    error_code = ErrorCode.PRECONDITION_FAILED
    default_message = "Precondition not met"


class CleanupError(SelfTestError):
    """The cleanup endpoint rejected the request."""

    error_code = ErrorCode.CLEANUP_FAILED
    default_message = "Test data cleanup failed"
