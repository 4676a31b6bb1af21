"""HTTP request helper for the farm API.

``get`` is a plain read and ``send`` a fully specified call. Neither retries
nor enforces a timeout; the caller decides what to do with a ``RequestError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, overload

import httpx
import structlog
from pydantic import BaseModel

from lapgest.errors import ErrorCode, RequestError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lapgest.config import ApiSettings

log = structlog.get_logger()

Method = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


def build_http_client(settings: ApiSettings) -> httpx.AsyncClient:
    """Create the shared AsyncClient.

    The client keeps a cookie jar for the session cookie, so credentials are
    forwarded on every request.
    """
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=None,
        verify=settings.verify_tls,
        headers={"Accept": "application/json"},
        cookies=httpx.Cookies(),
    )


def _encode_payload(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(payload, list):
        return [_encode_payload(item) for item in payload]
    return payload


def _error_message(response: httpx.Response) -> str:
    """Body ``message`` field, else body text, else reason phrase."""
    text = response.text
    if text:
        try:
            body = response.json()
        except ValueError:
            return text
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return text
    return response.reason_phrase


class ApiClient:
    """Issues credentialed JSON requests and normalizes failures into RequestError."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    async def get(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        """GET ``path`` and return the parsed JSON body."""
        return await self.send(path, "GET", params=params)

    @overload
    async def send(
        self,
        path: str,
        method: Method = ...,
        payload: Any = ...,
        *,
        params: Mapping[str, str] | None = ...,
        raw: Literal[False] = ...,
    ) -> Any: ...

    @overload
    async def send(
        self,
        path: str,
        method: Method = ...,
        payload: Any = ...,
        *,
        params: Mapping[str, str] | None = ...,
        raw: Literal[True],
    ) -> httpx.Response: ...

    async def send(
        self,
        path: str,
        method: Method = "GET",
        payload: Any = None,
        *,
        params: Mapping[str, str] | None = None,
        raw: bool = False,
    ) -> Any:
        """Issue ``method`` against ``path`` with an optional JSON payload.

        Returns the parsed JSON body (``None`` for an empty body), or the
        ``httpx.Response`` itself when ``raw`` is true.

        Raises:
            RequestError: non-2xx status, any httpx request failure such as a
                refused connection, bad redirect or undecodable body (status 0), or an
                unparseable 2xx body.
        """
        log.debug("api_request", method=method, path=path)
        try:
            if payload is not None:
                response = await self._client.request(
                    method, path, params=params, json=_encode_payload(payload)
                )
            else:
                response = await self._client.request(method, path, params=params)
        except httpx.RequestError as exc:
            log.warning("api_request_failed", method=method, path=path, status=0, error=str(exc))
            raise RequestError(0, f"Network error: {exc}") from exc

        if not response.is_success:
            message = _error_message(response)
            log.warning(
                "api_request_failed",
                method=method,
                path=path,
                status=response.status_code,
                message=message,
            )
            raise RequestError(response.status_code, message)

        if raw:
            return response
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RequestError(
                response.status_code,
                f"Response from {path} is not valid JSON",
                code=ErrorCode.INVALID_RESPONSE,
            ) from exc
