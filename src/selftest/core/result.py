"""ApiRequest, ApiResponse and ApiResult dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from selftest.errors import extract_error_message


@dataclass
class ApiRequest:
    """Represents an outgoing API request."""

    method: str
    url: str
    body: Any = None

    def __str__(self) -> str:
        return f"{self.method} {self.url}"


@dataclass
class ApiResponse:
    """Represents an API response with its body already decoded."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class ApiResult:
    """Outcome of one API call: a response, or a transport error."""

    request: ApiRequest
    response: ApiResponse | None = None
    error: str | None = None
    duration_ms: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_response(
        cls,
        request: ApiRequest,
        response: ApiResponse,
        duration_ms: float = 0.0,
    ) -> ApiResult:
        return cls(request=request, response=response, duration_ms=duration_ms)

    @classmethod
    def from_error(cls, request: ApiRequest, error: str, duration_ms: float = 0.0) -> ApiResult:
        return cls(request=request, error=error, duration_ms=duration_ms)

    @property
    def ok(self) -> bool:
        """True if a 2xx response was received."""
        return self.response is not None and self.response.ok

    @property
    def status_code(self) -> int:
        """HTTP status code, or 0 when the request never completed."""
        if self.response is None:
            return 0
        return self.response.status_code

    @property
    def body(self) -> Any:
        if self.response is None:
            return None
        return self.response.body

    def json(self) -> Any:
        """Decoded body; {} when the request never completed or the body was empty."""
        body = self.body
        return {} if body is None or body == "" else body

    def error_message(self, fallback: str) -> str:
        """Readable reason this call failed."""
        if self.response is None:
            return self.error or fallback
        return extract_error_message(self.response.body, fallback)
