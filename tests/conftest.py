"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import copy
import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import ClientSession


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable


SAMPLE_SESSION = {
    "id": "abcdef1234567890session",
    "userId": "100200",
    "expiresIn": 604800,
    "region": "DE",
    "createdAt": "2024-05-01T10:00:00.000+0000",
}

SAMPLE_REGION_SERVERS = {
    "list": [
        {"id": "US", "name": "United States", "gateway": "https://api.petkt.com/latest/"},
        {"id": "DE", "name": "Germany", "gateway": "https://api.eu-pet.com/6"},
    ]
}

SAMPLE_FAMILY_LIST = [
    {
        "groupId": 5001,
        "groupName": "Home",
        "deviceList": [
            {"deviceId": 1001, "deviceName": "Pura Max", "deviceType": "t4"},
            {"deviceId": 1002, "deviceName": "Kitchen Feeder", "deviceType": "d4s"},
            {"deviceId": 1003, "deviceName": "Water Station", "deviceType": ""},
            {"deviceId": 1004, "deviceName": "Bedroom Purifier", "deviceType": "k2"},
        ],
        "petList": [
            {"petId": 9001, "petName": "Milo", "sn": "PET-9001", "createdAt": 1714550400},
        ],
    }
]

SAMPLE_USER_DETAILS = {
    "user": {
        "id": 100200,
        "nick": "tester",
        "dogs": [{"id": 9001, "name": "Milo", "weight": 4.2, "gender": 1}],
    }
}

SAMPLE_LITTER_DEVICE = {
    "id": 1001,
    "name": "Pura Max",
    "mac": "AA:BB:CC:DD:EE:01",
    "sn": "T4-SN-1001",
    "hardware": 1,
    "firmware": 1.21,
    "timezone": 1.0,
    "locale": "Europe/Berlin",
    "typeCode": 1,
    "familyId": 5001,
    "createdAt": "2023-01-01T00:00:00.000+0000",
    "state": {"sandPercent": 65, "box": 2, "battery": 90},
    "settings": {"autoWork": 1},
}

SAMPLE_FEEDER_DEVICE = {
    "id": 1002,
    "name": "Kitchen Feeder",
    "sn": "D4S-SN-1002",
    "state": {"batteryPower": 80, "food1": 1},
    "settings": {"lightMode": 1},
}

SAMPLE_FOUNTAIN_DEVICE = {
    "id": 1003,
    "name": "Water Station",
    "sn": "W5-SN-1003",
    "filterPercent": 42,
    "runStatus": 1,
    "mode": 2,
    "state": {},
}

SAMPLE_PURIFIER_DEVICE = {
    "id": 1004,
    "name": "Bedroom Purifier",
    "sn": "K2-SN-1004",
    "state": {"humidity": 48, "leftDay": 20, "mode": 1, "refresh": 3},
}

SAMPLE_LITTER_RECORDS = [
    {
        "petId": "9001",
        "timestamp": 1714557600,
        "content": {"petWeight": 4150, "timeIn": 1714557600, "timeOut": 1714557690},
    },
    {
        "petId": "9001",
        "timestamp": 1714564800,
        "content": {"petWeight": 4180, "timeIn": 1714564800, "timeOut": 1714564860},
        "subContent": [
            {
                "petId": "9001",
                "timestamp": 1714568400,
                "content": {"petWeight": 4200, "timeIn": 1714568400, "timeOut": 1714568445},
            }
        ],
    },
]


def api_response(result: Any = None, error: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a vendor response envelope."""
    if error is not None:
        return {"error": error}
    return {"result": result}


def make_response(payload: Any, status: int = 200) -> MagicMock:
    """Create a mock aiohttp response usable as an async context manager."""
    response = MagicMock()
    response.status = status
    response.content_type = "application/json"
    response.text = AsyncMock(return_value=payload if isinstance(payload, str) else json.dumps(payload))
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


@pytest.fixture
def payloads() -> dict[str, Any]:
    """Get fresh copies of the sample API payloads, with a session issued now."""
    data = copy.deepcopy(
        {
            "session": SAMPLE_SESSION,
            "region_servers": SAMPLE_REGION_SERVERS,
            "family_list": SAMPLE_FAMILY_LIST,
            "user_details": SAMPLE_USER_DETAILS,
            "litter": SAMPLE_LITTER_DEVICE,
            "feeder": SAMPLE_FEEDER_DEVICE,
            "fountain": SAMPLE_FOUNTAIN_DEVICE,
            "purifier": SAMPLE_PURIFIER_DEVICE,
            "litter_records": SAMPLE_LITTER_RECORDS,
        }
    )
    data["session"]["createdAt"] = datetime.now(UTC).isoformat()
    return data


@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    """Get the factory building mock aiohttp responses."""
    return make_response


@pytest.fixture
async def mock_session() -> AsyncGenerator[ClientSession]:
    """Create a mock aiohttp ClientSession.

    Yields:
        Mock ClientSession for testing.
    """
    session = AsyncMock(spec=ClientSession)
    session.closed = False

    async def mock_close() -> None:
        session.closed = True

    session.close = mock_close

    yield session

    if not session.closed:
        await session.close()


@pytest.fixture
def mock_response() -> MagicMock:
    """Create a mock aiohttp response with an empty result.

    Returns:
        Mock ClientResponse for testing.
    """
    return make_response(api_response({}))


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Replace the retry sleep with a recording mock."""
    sleep = AsyncMock()
    monkeypatch.setattr("pypetkit.resilience.asyncio.sleep", sleep)
    return sleep
