"""Async HTTP client for the platform under test.

The client keeps the operator's session cookies, fetches the platform's CSRF
token once and attaches it to every mutating call. Read calls go out
without it.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urljoin

import httpx

from selftest.core.result import ApiRequest, ApiResponse, ApiResult
from selftest.errors import AuthenticationError, ErrorCode, RequestFailedError

logger = logging.getLogger(__name__)

CSRF_HEADER = "x-csrf-token"
CSRF_ENDPOINT = "/api/csrf-token"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ApiClient:
    """HTTP client for making authenticated calls to the platform."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_headers = headers or {}
        self._csrf_token: str | None = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=self.default_headers,
            transport=transport,
        )

    # -- session -------------------------------------------------------------

    def use_session_token(self, token: str, cookie_name: str = "next-auth.session-token") -> None:
        """Authenticate with a pre-issued session cookie."""
        self._client.cookies.set(cookie_name, token)
        self.reset_csrf_token()

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Sign in through the credentials provider and return the session.

        Raises:
            AuthenticationError: If the provider rejects the credentials or
                no session is visible afterwards.
        """
        csrf = await self.get("/api/auth/csrf")
        provider_token = csrf.json().get("csrfToken") if isinstance(csrf.json(), dict) else None
        if not csrf.ok or not provider_token:
            raise AuthenticationError(
                message=f"Could not obtain sign-in token: {csrf.error_message('no csrfToken')}",
            )

        callback = await self._send(
            "POST",
            "/api/auth/callback/credentials",
            data={
                "csrfToken": provider_token,
                "email": email,
                "password": password,
                "json": "true",
            },
        )
        redirect = callback.json().get("url", "") if isinstance(callback.json(), dict) else ""
        if callback.status_code >= 400 or "error=" in str(redirect):
            raise AuthenticationError(
                message=f"Sign-in rejected for {email}: {callback.error_message(str(redirect) or 'unknown reason')}",
            )

        session = await self.current_session()
        if not session.get("user"):
            raise AuthenticationError(message=f"Signed in as {email} but no session is active")

        self.reset_csrf_token()
        logger.info("Signed in as %s (user id %s)", email, session["user"].get("id"))
        return session

    async def current_session(self) -> dict[str, Any]:
        """Return the session document, or {} when not signed in."""
        result = await self.get("/api/auth/session")
        body = result.json()
        if not result.ok or not isinstance(body, dict):
            return {}
        return body

    # -- csrf ----------------------------------------------------------------

    async def csrf_token(self) -> str:
        """Fetch (once) and return the platform CSRF token."""
        if self._csrf_token:
            return self._csrf_token

        result = await self._send("GET", CSRF_ENDPOINT)
        token = result.json().get("csrfToken") if isinstance(result.json(), dict) else None
        if not result.ok or not token:
            raise RequestFailedError(
                message=f"CSRF token unavailable: {result.error_message('no csrfToken in response')}",
                error_code=ErrorCode.CSRF_UNAVAILABLE,
                status_code=result.status_code or None,
            )
        self._csrf_token = token
        return token

    def reset_csrf_token(self) -> None:
        self._csrf_token = None

    # -- requests ------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResult:
        """Make an API call and return ApiResult.

        Mutating methods carry the CSRF header; a 403 on a cached token
        refreshes it and retries once.
        """
        method = method.upper()
        if method in SAFE_METHODS:
            return await self._send(method, path, json=json, params=params, headers=headers)

        had_cached_token = self._csrf_token is not None
        try:
            token = await self.csrf_token()
        except RequestFailedError as e:
            return ApiResult.from_error(ApiRequest(method, self._url(path), json), str(e))

        result = await self._send(
            method, path, json=json, params=params, headers={**(headers or {}), CSRF_HEADER: token}
        )
        if result.status_code == 403 and had_cached_token:
            logger.debug("403 on %s %s, refreshing CSRF token", method, path)
            self.reset_csrf_token()
            try:
                token = await self.csrf_token()
            except RequestFailedError:
                return result
            result = await self._send(
                method, path, json=json, params=params, headers={**(headers or {}), CSRF_HEADER: token}
            )
        return result

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResult:
        request = ApiRequest(method=method, url=self._url(path), body=json or data)

        start = time.perf_counter()
        try:
            resp = await self._client.request(
                method=method,
                url=path,
                json=json,
                data=data,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.warning("%s %s failed: %s", method, path, e)
            return ApiResult.from_error(request, f"{type(e).__name__}: {e}", duration_ms)
        duration_ms = (time.perf_counter() - start) * 1000

        if resp.headers.get("content-type", "").startswith("application/json"):
            try:
                body: Any = resp.json()
            except ValueError:
                body = resp.text
        else:
            body = resp.text

        logger.debug("%s %s -> %s (%.0fms)", method, path, resp.status_code, duration_ms)
        response = ApiResponse(status_code=resp.status_code, headers=dict(resp.headers), body=body)
        return ApiResult.from_response(request, response, duration_ms)

    def _url(self, path: str) -> str:
        return urljoin(self.base_url + "/", path.lstrip("/"))

    async def get(self, path: str, **kwargs: Any) -> ApiResult:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> ApiResult:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> ApiResult:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> ApiResult:
        return await self.request("DELETE", path, **kwargs)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
