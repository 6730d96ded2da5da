"""HTTP client for the GermanSphere REST backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import Settings
from .errors import ApiAuthError, ApiConnectionError, ApiError, ApiNotFoundError
from .schemas import BookingRequest
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


def _error_from_response(response: httpx.Response) -> ApiError:
    message = f"HTTP {response.status_code}"
    if response.reason_phrase:
        message = f"{message}: {response.reason_phrase}"
    code: str | None = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("message") or message
        code = body.get("code") or None

    status = response.status_code
    if status in {401, 403}:
        return ApiAuthError(message, status, code)
    if status == 404:
        return ApiNotFoundError(message, status, code)
    return ApiError(message, status, code)


class ApiClient:
    """Async client for the backend API.

    The bearer token is read from the persisted store on every request so a
    login or logout elsewhere in the session takes effect immediately.
    """

    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.http = http or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=httpx.Timeout(
                connect=settings.connect_timeout,
                read=settings.read_timeout,
                write=10.0,
                pool=10.0,
            ),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def get_token(self) -> str | None:
        token = self.store.get(self.settings.auth_token_storage_key)
        if isinstance(token, str) and token.strip():
            return token.strip()
        return None

    def set_token(self, token: str | None) -> None:
        if token:
            self.store.set(self.settings.auth_token_storage_key, token)
        else:
            self.store.delete(self.settings.auth_token_storage_key)

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        request_headers = {"Content-Type": "application/json"}
        token = self.get_token()
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        if headers:
            request_headers.update(headers)

        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                json=json,
                headers=request_headers,
            )
        except httpx.TimeoutException as exc:
            raise ApiConnectionError(f"Request to {path} timed out", code="timeout") from exc
        except httpx.HTTPError as exc:
            raise ApiConnectionError(f"Connection failed: {exc}", code="connection_failed") from exc

        if response.status_code >= 400:
            error = _error_from_response(response)
            logger.debug("%s %s failed: %r", method, path, error)
            raise error

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"status_code": response.status_code, "text": response.text}

    async def get_tutor(self, tutor_id: int) -> dict:
        return await self.call("GET", f"/tutors/{tutor_id}")

    async def list_schools(self, limit: int = 100) -> dict:
        return await self.call("GET", "/schools", params={"limit": limit})

    async def list_courses(self, limit: int = 100) -> dict:
        return await self.call("GET", "/courses", params={"limit": limit})

    async def list_bookings(self) -> dict:
        return await self.call("GET", "/bookings")

    async def create_booking(self, request: BookingRequest) -> dict:
        return await self.call("POST", "/bookings", json=request.to_payload())
