"""HTTP transport for the PetKit API.

This module executes single HTTP exchanges with the fixed PetKit client
headers, logs every request and response with credentials redacted, and
retries transient failures with exponential backoff.
"""

from __future__ import annotations

import errno
import json
import logging
import re
import socket
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from aiohttp import (
    ClientConnectorDNSError,
    ClientConnectorError,
    ClientError,
    ClientOSError,
    ClientSession,
    ClientTimeout,
    ServerDisconnectedError,
)

from pypetkit.const import DEFAULT_HEADERS, DEFAULT_TIMEOUT, ERR_KEY, RES_KEY, SESSION_HEADERS, TOKEN_LOG_PREFIX_LENGTH
from pypetkit.exceptions import TransportError
from pypetkit.resilience import ExponentialBackoff, retry_with_backoff


if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

_LOGGER = logging.getLogger(__name__)

_SECRET_FORM_FIELDS = re.compile(r"\b(password|validCode)=[^&]+")


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of headers with session tokens truncated for logging."""
    redacted = dict(headers)
    for name in SESSION_HEADERS:
        value = redacted.get(name)
        if value:
            redacted[name] = f"{value[:TOKEN_LOG_PREFIX_LENGTH]}..."
    return redacted


def redact_body(body: str | None) -> str | None:
    """Return a url-encoded body with credential fields masked for logging."""
    if body is None:
        return None
    return _SECRET_FORM_FIELDS.sub(r"\1=***", body)


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_form(data: Mapping[str, Any]) -> str:
    """Url-encode a flat form mapping, skipping None values.

    Booleans are sent as "true" and "false".
    """
    return urlencode({key: _form_value(value) for key, value in data.items() if value is not None})


def is_transient_error(exc: Exception) -> bool:
    """Check whether a failure should be retried.

    Timeouts, DNS failures, connection resets and server errors (5xx) are
    transient. Everything else, including client errors (4xx), is not.
    """
    if isinstance(exc, TransportError):
        return exc.status is not None and exc.status >= 500
    if isinstance(exc, TimeoutError):
        return True
    if isinstance(exc, ClientConnectorDNSError):
        return True
    if isinstance(exc, ClientConnectorError):
        return isinstance(exc.os_error, socket.gaierror)
    if isinstance(exc, ServerDisconnectedError):
        return True
    if isinstance(exc, ClientOSError):
        return exc.errno == errno.ECONNRESET
    return isinstance(exc, ConnectionResetError)


class Transport:
    """Configured HTTP request/response pipeline.

    The transport owns the fixed headers sent with every request (API
    version, client fingerprint, locale, content type and user agent) and
    never changes them over its lifetime. Per-request headers, such as the
    session headers, are merged on top.

    Example:
        ```python
        async with Transport() as transport:
            payload = await transport.request("GET", "https://passport.petkt.com/v1/regionservers")
        ```
    """

    def __init__(
        self,
        session: ClientSession | None = None,
        *,
        backoff: ExponentialBackoff | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            backoff: Optional ExponentialBackoff for transient failures.
                Defaults to 5 retries waiting 1, 2, 4, 8 and 16 seconds.
            timeout: Total timeout of a single HTTP exchange in seconds.
        """
        self._session = session
        self._owns_session = session is None
        self._backoff = backoff or ExponentialBackoff()
        self._timeout = ClientTimeout(total=timeout)
        self._headers: dict[str, str] = dict(DEFAULT_HEADERS)

    @property
    def headers(self) -> dict[str, str]:
        """Get a copy of the fixed headers sent with every request."""
        return dict(self._headers)

    @property
    def session(self) -> ClientSession | None:
        """Get the underlying aiohttp session."""
        return self._session

    def set_session(self, session: ClientSession) -> None:
        """Set the aiohttp session without taking ownership of it."""
        self._session = session
        self._owns_session = False

    async def __aenter__(self) -> Transport:
        """Enter the context manager, creating a session if needed."""
        if self._session is None:
            self._session = ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the session if we own it."""
        await self.close()

    async def close(self) -> None:
        """Close the session if it was created by this transport."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _validate_session(self) -> ClientSession:
        if self._session is None:
            msg = "Session not initialized. Use 'async with' or provide a session."
            raise RuntimeError(msg)

        if self._session.closed:
            msg = "Session is closed. Cannot make request."
            raise RuntimeError(msg)

        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        data: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Execute an HTTP request and return the decoded JSON object.

        Transient failures are retried with exponential backoff. Client errors
        and malformed responses fail immediately.

        Args:
            method: HTTP method (GET, POST).
            url: Absolute request URL.
            data: Optional form fields, sent url-encoded.
            params: Optional query parameters.
            headers: Optional headers merged over the fixed headers.

        Returns:
            Decoded JSON response body.

        Raises:
            TransportError: If the request fails after retries, the server
                answers with an error status, or the body is not a JSON object.
            RuntimeError: If the session is not initialized or is closed.
        """
        session = self._validate_session()
        body = encode_form(data) if data is not None else None
        request_headers = {**self._headers, **(headers or {})}

        async def send() -> dict[str, Any]:
            return await self._send(session, method, url, body, params, request_headers)

        try:
            result: dict[str, Any] = await retry_with_backoff(
                send,
                backoff=self._backoff,
                is_retryable=is_transient_error,
                description=f"{method} {url}",
            )
        except TransportError:
            raise
        except TimeoutError as exc:
            msg = f"Request to {url} timed out"
            raise TransportError(msg) from exc
        except ClientError as exc:
            msg = f"Connection error for {url}: {exc}"
            raise TransportError(msg) from exc
        except OSError as exc:
            msg = f"Network error for {url}: {exc}"
            raise TransportError(msg) from exc
        return result

    async def _send(
        self,
        session: ClientSession,
        method: str,
        url: str,
        body: str | None,
        params: Mapping[str, str] | None,
        headers: dict[str, str],
    ) -> dict[str, Any]:
        _LOGGER.debug("%s %s", method, url)
        _LOGGER.debug("Request headers: %s", redact_headers(headers))
        if body:
            _LOGGER.debug("Request data: %s", redact_body(body))
        if params:
            _LOGGER.debug("Request params: %s", dict(params))

        try:
            async with session.request(
                method,
                url,
                data=body,
                params=params,
                headers=headers,
                timeout=self._timeout,
            ) as response:
                text = await response.text()
                status = response.status
                content_type = response.content_type
        except (TimeoutError, ClientError, OSError) as exc:
            _LOGGER.debug("No response received for %s %s: %r", method, url, exc)
            raise

        _LOGGER.debug("%d %s %s", status, method, url)
        _LOGGER.debug("Response size: %d bytes, Content-Type: %s", len(text), content_type)

        payload = _decode_json(text)

        if status >= 400:
            _LOGGER.warning("%d %s %s: %s", status, method, url, payload if payload is not None else text[:200])
            msg = f"HTTP {status} for {method} {url}"
            raise TransportError(msg, status=status, payload=payload)

        if payload is None:
            msg = f"Invalid JSON response from {url}"
            raise TransportError(msg, status=status)

        _LOGGER.debug("Response keys: %s", list(payload))
        if ERR_KEY in payload:
            _LOGGER.debug("Error in response: %s", payload[ERR_KEY])
        elif RES_KEY in payload:
            _LOGGER.debug("Result structure: %s", type(payload[RES_KEY]).__name__)

        return payload


def _decode_json(text: str) -> dict[str, Any] | None:
    try:
        decoded = json.loads(text)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None
