"""Python client library for PetKit pet-care devices.

This package provides an async client for PetKit feeders, litter boxes,
water fountains and air purifiers through the PetKit cloud API.

The library is organized into four layers:
1. **Transport** (pypetkit.transport): HTTP exchanges, headers and retries
2. **Sessions** (pypetkit.auth): Region resolution, login and session lifecycle
3. **Registry** (pypetkit.registry): Device and pet entities of the account
4. **Commands** (pypetkit.commands): Validated device actions

Example:
    Basic usage:

    ```python
    from pypetkit import PetKitClient

    async with PetKitClient("user@example.com", "password", region="DE") as client:
        devices = await client.get_devices()

        for device in devices:
            print(device.name, device.type)

        await client.feed_manual(feeder_id, amount=10)
    ```

    Direct API access:

    ```python
    async with PetKitClient("user@example.com", "password") as client:
        families = await client.api.get_family_list()
    ```
"""

from __future__ import annotations

from pypetkit.actions import (
    ACTIONS,
    ActionConfig,
    DeviceAction,
    DeviceCommand,
    FeederCommand,
    LitterBoxCommand,
    LitterCommand,
    PetCommand,
    PurifierMode,
)
from pypetkit.api import PetKitAPI
from pypetkit.auth import SessionManager
from pypetkit.client import PetKitClient
from pypetkit.commands import CommandDispatcher
from pypetkit.exceptions import (
    APIError,
    AuthenticationError,
    CommandError,
    DeviceError,
    DeviceInfoMissingError,
    DeviceNotFoundError,
    PetKitError,
    RegionNotFoundError,
    ServerBusyError,
    SessionExpiredError,
    TransportError,
    UnregisteredAccountError,
    UnsupportedActionError,
)
from pypetkit.models import (
    AccountSnapshot,
    DeviceEntity,
    DeviceFamily,
    DeviceInfo,
    DeviceStub,
    Family,
    Feeder,
    FeederStatus,
    FountainStatus,
    Litter,
    LitterStatus,
    Pet,
    Purifier,
    PurifierStatus,
    RegionServer,
    Session,
    UnknownDevice,
    WaterFountain,
)
from pypetkit.registry import DeviceRegistry
from pypetkit.resilience import ExponentialBackoff, retry_with_backoff
from pypetkit.transport import Transport


__version__ = "0.1.0"

__all__ = [
    "ACTIONS",
    "APIError",
    "AccountSnapshot",
    "ActionConfig",
    "AuthenticationError",
    "CommandDispatcher",
    "CommandError",
    "DeviceAction",
    "DeviceCommand",
    "DeviceEntity",
    "DeviceError",
    "DeviceFamily",
    "DeviceInfo",
    "DeviceInfoMissingError",
    "DeviceNotFoundError",
    "DeviceRegistry",
    "DeviceStub",
    "ExponentialBackoff",
    "Family",
    "Feeder",
    "FeederCommand",
    "FeederStatus",
    "FountainStatus",
    "Litter",
    "LitterBoxCommand",
    "LitterCommand",
    "LitterStatus",
    "Pet",
    "PetCommand",
    "PetKitAPI",
    "PetKitClient",
    "PetKitError",
    "Purifier",
    "PurifierMode",
    "PurifierStatus",
    "RegionNotFoundError",
    "RegionServer",
    "ServerBusyError",
    "Session",
    "SessionExpiredError",
    "SessionManager",
    "Transport",
    "TransportError",
    "UnknownDevice",
    "UnregisteredAccountError",
    "UnsupportedActionError",
    "WaterFountain",
    "__version__",
    "retry_with_backoff",
]
