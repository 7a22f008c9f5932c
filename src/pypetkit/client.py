"""High-level client for the PetKit cloud API.

This module ties the transport, session manager, device registry and
command dispatcher together behind a single async context manager.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiohttp import ClientSession  # noqa: TC002 - Used at runtime for the transport

from pypetkit.actions import (
    DeviceAction,
    DeviceCommand,
    FeederCommand,
    LitterBoxCommand,
    LitterCommand,
    PetCommand,
)
from pypetkit.api import PetKitAPI
from pypetkit.auth import SessionManager
from pypetkit.commands import CommandDispatcher
from pypetkit.const import DEFAULT_REGION, DEFAULT_TIMEZONE, DOMESTIC_URL, PASSPORT_URL
from pypetkit.registry import DeviceRegistry
from pypetkit.transport import Transport


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from pypetkit.models import (
        DeviceEntity,
        FeederStatus,
        FountainStatus,
        LitterStatus,
        Pet,
        PurifierStatus,
        Session,
    )
    from pypetkit.resilience import ExponentialBackoff

_LOGGER = logging.getLogger(__name__)


class PetKitClient:
    """Client for PetKit feeders, litter boxes, fountains and purifiers.

    The client logs in on demand, keeps a registry of the account's devices
    and pets, and sends validated commands to them.

    Example:
        Basic usage with automatic session management:

        ```python
        from pypetkit import PetKitClient

        async with PetKitClient("user@example.com", "password", region="DE") as client:
            for device in await client.get_devices():
                print(device.name, device.type)

            status = await client.get_litter_status(litter_id)
            print(f"Litter level: {status.litter_level}%")

            await client.start_cleaning(litter_id)
        ```

        Session injection and custom retry policy:

        ```python
        from aiohttp import ClientSession
        from pypetkit import PetKitClient
        from pypetkit.resilience import ExponentialBackoff

        async with ClientSession() as session:
            client = PetKitClient(
                "user@example.com",
                "password",
                session=session,
                backoff=ExponentialBackoff(max_retries=3),
            )
            async with client:
                await client.feed_manual(feeder_id, amount=10)
        ```
    """

    def __init__(
        self,
        username: str,
        password: str,
        region: str = DEFAULT_REGION,
        timezone: str = DEFAULT_TIMEZONE,
        *,
        session: ClientSession | None = None,
        backoff: ExponentialBackoff | None = None,
        passport_url: str = PASSPORT_URL,
        domestic_url: str = DOMESTIC_URL,
        on_session_updated: Callable[[SessionManager], None] | None = None,
    ) -> None:
        """Initialize the PetKit client.

        Args:
            username: Account email or phone number.
            password: Account password.
            region: Region code or name (e.g. "DE", "Germany", "CN").
            timezone: IANA timezone name of the account.
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            backoff: Optional ExponentialBackoff for transient failures.
            passport_url: Base URL of the passport service.
            domestic_url: Static gateway of the domestic region.
            on_session_updated: Optional callback invoked after login or refresh.
        """
        self._transport = Transport(session, backoff=backoff)
        self._session_manager = SessionManager(
            username,
            password,
            self._transport,
            region=region,
            timezone=timezone,
            passport_url=passport_url,
            domestic_url=domestic_url,
            on_session_updated=on_session_updated,
        )
        self._api = PetKitAPI(transport=self._transport, session_manager=self._session_manager)
        self._registry = DeviceRegistry(self._api)
        self._dispatcher = CommandDispatcher(self._registry, self._api)

    @property
    def api(self) -> PetKitAPI:
        """Get the underlying API client for direct endpoint access."""
        return self._api

    @property
    def session_manager(self) -> SessionManager:
        """Get the session manager."""
        return self._session_manager

    @property
    def registry(self) -> DeviceRegistry:
        """Get the device registry."""
        return self._registry

    async def __aenter__(self) -> PetKitClient:
        """Enter the context manager, creating an HTTP session if needed."""
        await self._transport.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the HTTP session if we own it."""
        await self._transport.__aexit__(exc_type, exc_val, exc_tb)

    async def close(self) -> None:
        """Close the HTTP session if it was created by this client."""
        await self._transport.close()

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def login(self, valid_code: str | None = None) -> Session:
        """Log in with the password or a one-time code from request_login_code()."""
        return await self._session_manager.login(valid_code)

    async def request_login_code(self) -> Any:
        """Ask the API to send a one-time login code to the account."""
        return await self._session_manager.request_login_code()

    async def refresh_session(self) -> Session:
        """Extend the current session."""
        return await self._session_manager.refresh_session()

    def is_logged_in(self) -> bool:
        """Check if a session is held."""
        return self._session_manager.is_logged_in()

    def logout(self) -> None:
        """Discard the session."""
        self._session_manager.logout()

    # -------------------------------------------------------------------------
    # Devices
    # -------------------------------------------------------------------------

    async def _ensure_populated(self) -> None:
        if not self._registry.populated:
            await self._registry.populate()

    async def get_devices(self) -> list[DeviceEntity]:
        """Refresh the registry and get every entity with a device info block."""
        await self._registry.populate()
        devices = self._registry.get_devices()
        _LOGGER.debug("Found %d devices", len(devices))
        return devices

    async def get_device_status(self, device_id: int) -> DeviceEntity:
        """Refresh the registry and get one entity.

        Raises:
            DeviceNotFoundError: If the device is not part of the account.
        """
        await self._registry.populate()
        return self._registry.get_device(device_id)

    async def get_litter_status(self, device_id: int) -> LitterStatus:
        """Get the normalised status of a litter box."""
        await self._registry.populate()
        return self._registry.get_litter_status(device_id)

    async def get_feeder_status(self, device_id: int) -> FeederStatus:
        """Get the normalised status of a feeder."""
        await self._registry.populate()
        return self._registry.get_feeder_status(device_id)

    async def get_fountain_status(self, device_id: int) -> FountainStatus:
        """Get the normalised status of a water fountain."""
        await self._registry.populate()
        return self._registry.get_fountain_status(device_id)

    async def get_purifier_status(self, device_id: int) -> PurifierStatus:
        """Get the normalised status of an air purifier."""
        await self._registry.populate()
        return self._registry.get_purifier_status(device_id)

    async def get_pets_list(self) -> list[Pet]:
        """Get every pet of the account."""
        await self._ensure_populated()
        return self._registry.get_pets()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def send_api_request(
        self,
        device_id: int,
        action: str,
        settings: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send an action to a device.

        Args:
            device_id: Device (or pet) ID.
            action: Action name, e.g. FeederCommand.MANUAL_FEED.
            settings: Optional action settings.

        Returns:
            The vendor result of the command.

        Raises:
            DeviceNotFoundError: If the device is not part of the account.
            DeviceInfoMissingError: If the device details are not loaded.
            UnsupportedActionError: If the action is not supported by the device.
            CommandError: If sending the command fails.
        """
        await self._ensure_populated()
        return await self._dispatcher.send_command(device_id, action, settings)

    async def update_device_setting(self, device_id: int, settings: Mapping[str, Any]) -> Any:
        """Update device settings, e.g. {"lightMode": 1}."""
        return await self.send_api_request(device_id, DeviceCommand.UPDATE_SETTING, settings)

    async def control_device(self, device_id: int, command: Mapping[str, Any]) -> Any:
        """Send a raw controlDevice command, e.g. {"start_action": 0}."""
        return await self.send_api_request(device_id, DeviceCommand.CONTROL_DEVICE, command)

    async def update_pet_setting(self, pet_id: int, settings: Mapping[str, Any]) -> Any:
        """Update pet profile settings, e.g. {"weight": 4.2}."""
        return await self.send_api_request(pet_id, PetCommand.PET_UPDATE_SETTING, settings)

    # Feeders

    async def feed_manual(self, device_id: int, amount: int = 1) -> Any:
        """Dispense a manual portion."""
        return await self.send_api_request(device_id, FeederCommand.MANUAL_FEED, {"amount": amount})

    async def feed_manual_dual(self, device_id: int, amount1: int = 1, amount2: int = 1) -> Any:
        """Dispense a manual portion from both hoppers."""
        return await self.send_api_request(
            device_id,
            FeederCommand.MANUAL_FEED_DUAL,
            {"amount1": amount1, "amount2": amount2},
        )

    async def cancel_manual_feed(self, device_id: int) -> Any:
        """Cancel the manual feed in progress."""
        return await self.send_api_request(device_id, FeederCommand.CANCEL_MANUAL_FEED)

    async def reset_desiccant(self, device_id: int) -> Any:
        """Reset the desiccant counter."""
        return await self.send_api_request(device_id, FeederCommand.RESET_DESICCANT)

    async def food_replenished(self, device_id: int) -> Any:
        """Acknowledge that the food hopper was refilled."""
        return await self.send_api_request(device_id, FeederCommand.FOOD_REPLENISHED)

    async def calibrate_feeder(self, device_id: int) -> Any:
        """Calibrate the food level sensor."""
        return await self.send_api_request(device_id, FeederCommand.CALIBRATION)

    async def call_pet(self, device_id: int) -> Any:
        """Play the call sound."""
        return await self.send_api_request(device_id, FeederCommand.CALL_PET)

    async def remove_daily_feed(self, device_id: int, feed_id: str) -> Any:
        """Skip one scheduled feed of today."""
        return await self.send_api_request(device_id, FeederCommand.REMOVE_DAILY_FEED, {"feedId": feed_id})

    async def restore_daily_feed(self, device_id: int, feed_id: str) -> Any:
        """Restore a skipped scheduled feed of today."""
        return await self.send_api_request(device_id, FeederCommand.RESTORE_DAILY_FEED, {"feedId": feed_id})

    # Litter boxes

    async def _start_litter_action(self, device_id: int, command: LitterBoxCommand) -> Any:
        return await self.send_api_request(device_id, DeviceAction.START, {"cmd": command})

    async def start_cleaning(self, device_id: int) -> Any:
        """Start a cleaning cycle."""
        return await self._start_litter_action(device_id, LitterBoxCommand.CLEANING)

    async def start_dumping(self, device_id: int) -> Any:
        """Dump all litter."""
        return await self._start_litter_action(device_id, LitterBoxCommand.DUMPING)

    async def start_odor_removal(self, device_id: int) -> Any:
        """Start odor removal."""
        return await self._start_litter_action(device_id, LitterBoxCommand.ODOR_REMOVAL)

    async def toggle_litter_light(self, device_id: int) -> Any:
        """Turn on the light."""
        return await self._start_litter_action(device_id, LitterBoxCommand.LIGHT)

    async def start_maintenance(self, device_id: int) -> Any:
        """Enter maintenance mode."""
        return await self._start_litter_action(device_id, LitterBoxCommand.MAINTENANCE)

    async def level_litter(self, device_id: int) -> Any:
        """Level the litter."""
        return await self._start_litter_action(device_id, LitterBoxCommand.LEVELING)

    async def calibrate_litter(self, device_id: int) -> Any:
        """Calibrate the litter box."""
        return await self._start_litter_action(device_id, LitterBoxCommand.CALIBRATING)

    async def stop_litter_action(self, device_id: int) -> Any:
        """Pause the running action."""
        return await self.send_api_request(device_id, DeviceAction.STOP)

    async def continue_litter_action(self, device_id: int) -> Any:
        """Resume a paused action."""
        return await self.send_api_request(device_id, DeviceAction.CONTINUE)

    async def end_litter_action(self, device_id: int) -> Any:
        """End the running action."""
        return await self.send_api_request(device_id, DeviceAction.END)

    async def reset_n50_deodorizer(self, device_id: int) -> Any:
        """Reset the N50 deodorizer counter."""
        return await self.send_api_request(device_id, LitterCommand.RESET_N50_DEODORIZER)

    # Purifiers and fountains

    async def set_purifier_mode(self, device_id: int, mode: int) -> Any:
        """Set the purifier working mode (see PurifierMode)."""
        return await self.send_api_request(device_id, DeviceAction.MODE, {"mode": mode})

    async def power_purifier(self, device_id: int, power: bool) -> Any:  # noqa: FBT001
        """Turn the purifier on or off."""
        return await self.send_api_request(device_id, DeviceAction.POWER, {"power": power})

    async def set_fountain_mode(self, device_id: int, mode: int) -> Any:
        """Set the fountain mode through its settings."""
        return await self.send_api_request(device_id, DeviceCommand.UPDATE_SETTING, {"mode": mode})
