"""Session management for the PetKit API."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pypetkit.const import (
    API_VERSION,
    CLIENT_INFO,
    DEFAULT_REGION,
    DEFAULT_TIMEZONE,
    DOMESTIC_REGIONS,
    DOMESTIC_URL,
    ENDPOINT_LOGIN,
    ENDPOINT_LOGIN_CODE,
    ENDPOINT_REFRESH_SESSION,
    ENDPOINT_REGION_SERVERS,
    ERR_KEY,
    PASSPORT_URL,
    RES_KEY,
    SESSION_HEADERS,
)
from pypetkit.exceptions import (
    APIError,
    AuthenticationError,
    RegionNotFoundError,
    TransportError,
    error_from_response,
)
from pypetkit.parsers import parse_region_servers, parse_session


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from pypetkit.models import Session
    from pypetkit.transport import Transport

_LOGGER = logging.getLogger(__name__)


def _normalize_base_url(url: str) -> str:
    return url.rstrip("/") + "/"


def timezone_offset(timezone: str, now: datetime | None = None) -> str:
    """Get the current UTC offset of a timezone in hours, as sent to the API.

    Args:
        timezone: IANA timezone name, e.g. "Europe/Berlin".
        now: Optional reference time. Defaults to the current time.

    Returns:
        Offset in hours, e.g. "1", "-5" or "5.5".
    """
    try:
        zone: Any = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        _LOGGER.warning("Unknown timezone %s, using UTC", timezone)
        zone = UTC

    offset = (now or datetime.now(UTC)).astimezone(zone).utcoffset()
    hours = offset.total_seconds() / 3600 if offset is not None else 0.0
    return str(int(hours)) if hours.is_integer() else str(hours)


async def vendor_request(
    transport: Transport,
    method: str,
    url: str,
    *,
    data: Mapping[str, Any] | None = None,
    params: Mapping[str, str] | None = None,
    headers: Mapping[str, str] | None = None,
) -> Any:
    """Execute a request and unwrap the vendor response envelope.

    Args:
        transport: Transport executing the HTTP exchange.
        method: HTTP method.
        url: Absolute request URL.
        data: Optional form fields.
        params: Optional query parameters.
        headers: Optional extra headers.

    Returns:
        The ``result`` member of the response.

    Raises:
        APIError: If the response carries a vendor ``error`` object.
        TransportError: If the HTTP exchange fails.
    """
    try:
        payload = await transport.request(method, url, data=data, params=params, headers=headers)
    except TransportError as exc:
        error = (exc.payload or {}).get(ERR_KEY)
        if isinstance(error, dict):
            raise error_from_response(error) from exc
        raise

    error = payload.get(ERR_KEY)
    if error:
        raise error_from_response(error if isinstance(error, dict) else {"msg": str(error)})
    return payload.get(RES_KEY)


class SessionManager:
    """Manage region resolution, login and the session lifecycle.

    The manager holds at most one session. Authenticated callers go through
    ensure_valid_session(), which logs in when there is no session or when
    the session has outlived its declared lifetime. Expired sessions are
    replaced by a full login; refresh_session() is available for callers
    that want to extend a session explicitly.

    Session Update Callback:
        The on_session_updated callback is invoked with the manager after
        every successful login or refresh, so applications can persist the
        new session.

    Attributes:
        username: Account email or phone number.
        password: Account password.
        region: Region code or name; normalised to the region id once resolved.
        timezone: IANA timezone name sent with the login request.
        base_url: Resolved regional base URL (None until resolved).
        session: Current session (None when logged out).
    """

    def __init__(
        self,
        username: str,
        password: str,
        transport: Transport,
        *,
        region: str = DEFAULT_REGION,
        timezone: str = DEFAULT_TIMEZONE,
        passport_url: str = PASSPORT_URL,
        domestic_url: str = DOMESTIC_URL,
        on_session_updated: Callable[[SessionManager], None] | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            username: Account email or phone number.
            password: Account password.
            transport: Transport executing HTTP requests.
            region: Region code or name (e.g. "DE", "Germany", "CN").
            timezone: IANA timezone name of the account.
            passport_url: Base URL of the passport service hosting the region directory.
            domestic_url: Static gateway used for the domestic region.
            on_session_updated: Optional callback invoked after login or refresh.
        """
        self.username = username
        self.password = password
        self.region = region.lower()
        self.timezone = timezone
        self.base_url: str | None = None
        self.session: Session | None = None

        self._transport = transport
        self._passport_url = _normalize_base_url(passport_url)
        self._domestic_url = _normalize_base_url(domestic_url)
        self._on_session_updated = on_session_updated
        self._lock = asyncio.Lock()

    def is_logged_in(self) -> bool:
        """Check if a session is held (it may be past its lifetime)."""
        return self.session is not None

    async def resolve_region(self) -> str:
        """Resolve and bind the regional base URL.

        The domestic region is bound to its static gateway without a network
        call. Other regions are looked up in the regional server directory by
        case-insensitive match on region name or id.

        Returns:
            The bound base URL.

        Raises:
            RegionNotFoundError: If no directory entry matches the region.
            APIError: If the directory request is rejected.
            TransportError: If the directory request fails.
        """
        if self.region in DOMESTIC_REGIONS:
            self.base_url = self._domestic_url
            return self.base_url

        result = await vendor_request(self._transport, "GET", f"{self._passport_url}{ENDPOINT_REGION_SERVERS}")

        for server in parse_region_servers(result):
            if self.region in (server.name.lower(), server.id.lower()):
                self.region = server.id.lower()
                self.base_url = _normalize_base_url(server.gateway)
                _LOGGER.debug("Resolved region %s to %s", self.region, self.base_url)
                return self.base_url

        raise RegionNotFoundError(self.region)

    async def request_login_code(self) -> Any:
        """Ask the API to send a one-time login code to the account.

        Returns:
            The vendor result of the request.
        """
        base_url = await self.resolve_region()
        return await vendor_request(
            self._transport,
            "GET",
            f"{base_url}{ENDPOINT_LOGIN_CODE}",
            params={"username": self.username},
        )

    async def login(self, valid_code: str | None = None) -> Session:
        """Log in with the password or a one-time code.

        Any existing session is discarded first.

        Args:
            valid_code: Optional one-time code from request_login_code(). When
                omitted the MD5 digest of the password is sent.

        Returns:
            The new session.

        Raises:
            AuthenticationError: If the credentials are rejected or the
                response carries no session.
            UnregisteredAccountError: If the account does not exist.
            SessionExpiredError: If the API reports an expired session.
            ServerBusyError: If the API reports it is busy.
            APIError: For any other vendor error.
            RegionNotFoundError: If the region cannot be resolved.
            TransportError: If the request fails.
        """
        async with self._lock:
            return await self._login(valid_code)

    async def _login(self, valid_code: str | None = None) -> Session:
        self.session = None
        base_url = await self.resolve_region()

        offset = timezone_offset(self.timezone)
        client_info = {**CLIENT_INFO, "timezoneId": self.timezone, "timezone": offset}
        data = {
            "oldVersion": API_VERSION,
            "client": json.dumps(client_info),
            "encrypt": "1",
            "region": self.region,
            "username": self.username,
        }
        if valid_code:
            data["validCode"] = valid_code
        else:
            data["password"] = hashlib.md5(self.password.encode(), usedforsecurity=False).hexdigest()

        _LOGGER.debug("Logging in to %s", base_url)

        result = await vendor_request(
            self._transport,
            "POST",
            f"{base_url}{ENDPOINT_LOGIN}",
            data=data,
            headers={"X-TimezoneId": self.timezone, "X-Timezone": offset},
        )

        session_data = result.get("session") if isinstance(result, dict) else None
        if not session_data or not session_data.get("id"):
            msg = "Login failed: Invalid response format"
            raise AuthenticationError(msg)

        self.session = parse_session(session_data)
        _LOGGER.info("Login successful for user %s", self.session.user_id)

        if self._on_session_updated is not None:
            self._on_session_updated(self)

        return self.session

    async def refresh_session(self) -> Session:
        """Extend the current session.

        Returns:
            The refreshed session.

        Raises:
            APIError: If there is no session to refresh or the API rejects it.
            TransportError: If the request fails.
        """
        async with self._lock:
            current = self.session
            if current is None or self.base_url is None:
                msg = "No session to refresh"
                raise APIError(msg)

            result = await vendor_request(
                self._transport,
                "POST",
                f"{self.base_url}{ENDPOINT_REFRESH_SESSION}",
                data={"oldVersion": API_VERSION},
                headers=self._headers_for(current),
            )

            session_data = result.get("session") if isinstance(result, dict) else None
            if not session_data:
                _LOGGER.debug("Refresh response carried no session, keeping current one")
                return current

            self.session = parse_session(
                {
                    "id": current.id,
                    "userId": current.user_id,
                    "expiresIn": current.expires_in,
                    "region": current.region,
                    "createdAt": datetime.now(UTC).isoformat(),
                    **session_data,
                }
            )
            _LOGGER.info("Session refreshed for user %s", self.session.user_id)

            if self._on_session_updated is not None:
                self._on_session_updated(self)

            return self.session

    async def ensure_valid_session(self) -> Session:
        """Return a valid session, logging in only when necessary.

        A login happens when there is no session or when the session age has
        reached its declared lifetime. Otherwise no request is made.

        Returns:
            A session that has not outlived its lifetime.
        """
        async with self._lock:
            if self.session is None:
                _LOGGER.debug("No session, logging in")
                return await self._login()

            if self.session.is_expired():
                _LOGGER.info(
                    "Session expired after %.0f seconds (lifetime %d), logging in again",
                    self.session.age_seconds(),
                    self.session.expires_in,
                )
                return await self._login()

            return self.session

    async def session_headers(self) -> dict[str, str]:
        """Get the session headers for an authenticated request."""
        session = await self.ensure_valid_session()
        return self._headers_for(session)

    @staticmethod
    def _headers_for(session: Session) -> dict[str, str]:
        return dict.fromkeys(SESSION_HEADERS, session.id)

    def invalidate_session(self) -> None:
        """Drop the session so the next authenticated call logs in again."""
        self.session = None
        _LOGGER.debug("Session invalidated")

    def logout(self) -> None:
        """Discard the session and the regional binding."""
        self.session = None
        self.base_url = None
        _LOGGER.debug("Logged out")
