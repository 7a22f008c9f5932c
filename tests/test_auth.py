"""Tests for pypetkit session management."""

from __future__ import annotations

import asyncio
import hashlib
import json
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from pypetkit.auth import SessionManager, timezone_offset, vendor_request
from pypetkit.const import DOMESTIC_URL
from pypetkit.exceptions import (
    APIError,
    AuthenticationError,
    RegionNotFoundError,
    ServerBusyError,
    SessionExpiredError,
    TransportError,
    UnregisteredAccountError,
)
from pypetkit.models import Session
from pypetkit.transport import Transport


GATEWAY = "https://api.eu-pet.com/6/"


def make_transport(*payloads: Any) -> MagicMock:
    """Create a transport mock answering requests with the given payloads in order."""
    transport = MagicMock(spec=Transport)
    transport.request = AsyncMock(side_effect=list(payloads))
    return transport


def make_session(age: float, expires_in: int = 3600) -> Session:
    """Create a session issued age seconds ago."""
    return Session(
        id="session-token",
        user_id="100200",
        expires_in=expires_in,
        region="DE",
        created_at=datetime.now(UTC) - timedelta(seconds=age),
    )


def login_calls(transport: MagicMock) -> list[Any]:
    """Get the transport calls that hit the login endpoint."""
    return [call for call in transport.request.await_args_list if call.args[1].endswith("user/login")]


class TestTimezoneOffset:
    """Test timezone offset computation."""

    @pytest.mark.parametrize(
        ("timezone", "now", "expected"),
        [
            ("Europe/Berlin", datetime(2024, 1, 15, tzinfo=UTC), "1"),
            ("Europe/Berlin", datetime(2024, 7, 15, tzinfo=UTC), "2"),
            ("America/New_York", datetime(2024, 1, 15, tzinfo=UTC), "-5"),
            ("Asia/Kolkata", datetime(2024, 1, 15, tzinfo=UTC), "5.5"),
            ("UTC", datetime(2024, 1, 15, tzinfo=UTC), "0"),
        ],
    )
    def test_offsets(self, timezone: str, now: datetime, expected: str) -> None:
        """Test offsets of whole and fractional hour zones."""
        assert timezone_offset(timezone, now) == expected

    def test_unknown_timezone_falls_back_to_utc(self) -> None:
        """Test that an unknown zone name yields a zero offset."""
        assert timezone_offset("Mars/Olympus_Mons") == "0"


class TestVendorRequest:
    """Test response envelope unwrapping."""

    async def test_returns_result(self) -> None:
        """Test that the result member is returned."""
        transport = make_transport({"result": {"ok": True}})

        assert await vendor_request(transport, "GET", GATEWAY) == {"ok": True}

    async def test_error_member_is_mapped(self) -> None:
        """Test that an error member raises the mapped exception."""
        transport = make_transport({"error": {"code": 1, "msg": "Busy"}})

        with pytest.raises(ServerBusyError):
            await vendor_request(transport, "GET", GATEWAY)

    async def test_error_in_client_error_payload_is_mapped(self) -> None:
        """Test that vendor errors sent with a 4xx status are still mapped."""
        transport = MagicMock(spec=Transport)
        transport.request = AsyncMock(
            side_effect=TransportError("HTTP 401", status=401, payload={"error": {"code": 5, "msg": "expired"}})
        )

        with pytest.raises(SessionExpiredError) as exc_info:
            await vendor_request(transport, "GET", GATEWAY)

        assert isinstance(exc_info.value.__cause__, TransportError)

    async def test_transport_error_without_vendor_error_propagates(self) -> None:
        """Test that plain transport failures are not converted."""
        transport = MagicMock(spec=Transport)
        transport.request = AsyncMock(side_effect=TransportError("HTTP 404", status=404))

        with pytest.raises(TransportError):
            await vendor_request(transport, "GET", GATEWAY)


class TestRegionResolution:
    """Test region resolution."""

    async def test_domestic_region_uses_static_gateway(self) -> None:
        """Test that the domestic region makes no network call."""
        transport = make_transport()
        manager = SessionManager("user", "pass", transport, region="CN")

        base_url = await manager.resolve_region()

        assert base_url == DOMESTIC_URL
        assert manager.base_url == DOMESTIC_URL
        transport.request.assert_not_called()

    async def test_region_matched_by_name(self, payloads: dict[str, Any]) -> None:
        """Test case-insensitive match on the region name."""
        transport = make_transport({"result": payloads["region_servers"]})
        manager = SessionManager("user", "pass", transport, region="germany")

        base_url = await manager.resolve_region()

        assert base_url == GATEWAY
        assert manager.region == "de"
        assert transport.request.await_args.args[1] == "https://passport.petkt.com/v1/regionservers"

    async def test_region_matched_by_id(self, payloads: dict[str, Any]) -> None:
        """Test case-insensitive match on the region id."""
        transport = make_transport({"result": payloads["region_servers"]})
        manager = SessionManager("user", "pass", transport, region="US")

        assert await manager.resolve_region() == "https://api.petkt.com/latest/"

    async def test_unknown_region_raises(self, payloads: dict[str, Any]) -> None:
        """Test that an unmatched region raises RegionNotFoundError."""
        transport = make_transport({"result": payloads["region_servers"]})
        manager = SessionManager("user", "pass", transport, region="Atlantis")

        with pytest.raises(RegionNotFoundError, match="atlantis"):
            await manager.resolve_region()

        assert manager.base_url is None


class TestLogin:
    """Test the login flow."""

    async def test_login_success(self, payloads: dict[str, Any]) -> None:
        """Test that a login stores the session and sends the expected form."""
        transport = make_transport(
            {"result": payloads["region_servers"]},
            {"result": {"session": payloads["session"], "user": {"id": 100200}}},
        )
        manager = SessionManager("user@example.com", "hunter2", transport, region="DE", timezone="Asia/Kolkata")

        session = await manager.login()

        assert manager.is_logged_in() is True
        assert session.id == payloads["session"]["id"]
        assert session.expires_in == 604800

        call = transport.request.await_args
        assert call.args == ("POST", f"{GATEWAY}user/login")
        data = call.kwargs["data"]
        assert data["username"] == "user@example.com"
        assert data["password"] == hashlib.md5(b"hunter2", usedforsecurity=False).hexdigest()
        assert data["encrypt"] == "1"
        assert data["region"] == "de"
        assert "validCode" not in data
        client_info = json.loads(data["client"])
        assert client_info["timezoneId"] == "Asia/Kolkata"
        assert client_info["timezone"] == "5.5"
        assert call.kwargs["headers"] == {"X-TimezoneId": "Asia/Kolkata", "X-Timezone": "5.5"}

    async def test_login_with_valid_code(self, payloads: dict[str, Any]) -> None:
        """Test that a one-time code replaces the password digest."""
        transport = make_transport({"result": {"session": payloads["session"]}})
        manager = SessionManager("user@example.com", "hunter2", transport, region="CN")

        await manager.login(valid_code="123456")

        data = transport.request.await_args.kwargs["data"]
        assert data["validCode"] == "123456"
        assert "password" not in data

    async def test_login_invokes_session_callback(self, payloads: dict[str, Any]) -> None:
        """Test that the session update callback receives the manager."""
        callback = MagicMock()
        transport = make_transport({"result": {"session": payloads["session"]}})
        manager = SessionManager("user", "pass", transport, region="CN", on_session_updated=callback)

        await manager.login()

        callback.assert_called_once_with(manager)

    async def test_login_without_session_raises(self) -> None:
        """Test that a result without a session is an authentication failure."""
        transport = make_transport({"result": {"user": {}}})
        manager = SessionManager("user", "pass", transport, region="CN")

        with pytest.raises(AuthenticationError, match="Invalid response format"):
            await manager.login()

        assert manager.is_logged_in() is False

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            (122, AuthenticationError),
            (125, UnregisteredAccountError),
            (5, SessionExpiredError),
            (1, ServerBusyError),
        ],
    )
    async def test_login_error_codes(self, code: int, expected: type[APIError]) -> None:
        """Test that vendor error codes raise the mapped exceptions."""
        transport = make_transport({"error": {"code": code, "msg": "failure"}})
        manager = SessionManager("user", "pass", transport, region="CN")

        with pytest.raises(expected) as exc_info:
            await manager.login()

        assert exc_info.value.code == code

    async def test_login_unmapped_error_code(self) -> None:
        """Test that an unmapped code raises a generic APIError with the code."""
        transport = make_transport({"error": {"code": 777, "msg": "odd"}})
        manager = SessionManager("user", "pass", transport, region="CN")

        with pytest.raises(APIError) as exc_info:
            await manager.login()

        assert type(exc_info.value) is APIError
        assert exc_info.value.code == 777

    async def test_request_login_code(self) -> None:
        """Test that the login code request sends the username."""
        transport = make_transport({"result": True})
        manager = SessionManager("user@example.com", "pass", transport, region="CN")

        assert await manager.request_login_code() is True

        call = transport.request.await_args
        assert call.args == ("GET", f"{DOMESTIC_URL}user/sendcodeforquicklogin")
        assert call.kwargs["params"] == {"username": "user@example.com"}


class TestSessionValidity:
    """Test the automatic session validity check."""

    @pytest.mark.parametrize("age", [0, 1, 1800, 3599])
    async def test_fresh_session_makes_no_call(self, age: int) -> None:
        """Test that a session younger than its lifetime is reused."""
        transport = make_transport()
        manager = SessionManager("user", "pass", transport, region="CN")
        manager.session = make_session(age)

        session = await manager.ensure_valid_session()

        assert session is manager.session
        transport.request.assert_not_called()

    @pytest.mark.parametrize("age", [3600, 3601, 86400])
    async def test_expired_session_logs_in_once(self, age: int, payloads: dict[str, Any]) -> None:
        """Test that an expired session triggers exactly one login."""
        transport = make_transport({"result": {"session": payloads["session"]}})
        manager = SessionManager("user", "pass", transport, region="CN")
        manager.session = make_session(age)

        session = await manager.ensure_valid_session()

        assert session.id == payloads["session"]["id"]
        assert len(login_calls(transport)) == 1

    async def test_missing_session_logs_in(self, payloads: dict[str, Any]) -> None:
        """Test that the first authenticated call logs in."""
        transport = make_transport({"result": {"session": payloads["session"]}})
        manager = SessionManager("user", "pass", transport, region="CN")

        headers = await manager.session_headers()

        sid = payloads["session"]["id"]
        assert headers == {"F-Session": sid, "X-Session": sid}
        assert len(login_calls(transport)) == 1

    async def test_concurrent_checks_share_one_login(self, payloads: dict[str, Any]) -> None:
        """Test that concurrent callers do not log in twice."""
        transport = make_transport({"result": {"session": payloads["session"]}})
        manager = SessionManager("user", "pass", transport, region="CN")

        sessions = await asyncio.gather(*(manager.ensure_valid_session() for _ in range(5)))

        assert len({session.id for session in sessions}) == 1
        assert len(login_calls(transport)) == 1

    async def test_invalidate_and_logout(self) -> None:
        """Test that invalidation keeps the region binding and logout drops it."""
        manager = SessionManager("user", "pass", make_transport(), region="CN")
        await manager.resolve_region()
        manager.session = make_session(0)

        manager.invalidate_session()
        assert manager.session is None
        assert manager.base_url == DOMESTIC_URL

        manager.session = make_session(0)
        manager.logout()
        assert manager.is_logged_in() is False
        assert manager.base_url is None


class TestRefreshSession:
    """Test explicit session refresh."""

    async def test_refresh_without_session_raises(self) -> None:
        """Test that there must be a session to refresh."""
        manager = SessionManager("user", "pass", make_transport(), region="CN")

        with pytest.raises(APIError, match="No session to refresh"):
            await manager.refresh_session()

    async def test_refresh_extends_session(self) -> None:
        """Test that a refresh renews the session age and keeps its token."""
        transport = make_transport({"result": {"session": {"expiresIn": 7200}}})
        manager = SessionManager("user", "pass", transport, region="CN")
        await manager.resolve_region()
        manager.session = make_session(age=3000)

        session = await manager.refresh_session()

        assert session.id == "session-token"
        assert session.expires_in == 7200
        assert session.age_seconds() < 60
        call = transport.request.await_args
        assert call.args == ("POST", f"{DOMESTIC_URL}user/refreshsession")
        assert call.kwargs["headers"] == {"F-Session": "session-token", "X-Session": "session-token"}

    async def test_refresh_without_session_in_response_keeps_current(self) -> None:
        """Test that an empty refresh result leaves the session unchanged."""
        transport = make_transport({"result": {}})
        manager = SessionManager("user", "pass", transport, region="CN")
        await manager.resolve_region()
        current = make_session(age=10)
        manager.session = current

        assert await manager.refresh_session() is current
