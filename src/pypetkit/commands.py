"""Command dispatch for PetKit devices."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pypetkit.actions import ACTIONS
from pypetkit.exceptions import (
    CommandError,
    DeviceInfoMissingError,
    PetKitError,
    UnsupportedActionError,
)


if TYPE_CHECKING:
    from collections.abc import Mapping

    from pypetkit.api import PetKitAPI
    from pypetkit.registry import DeviceRegistry

_LOGGER = logging.getLogger(__name__)


class CommandDispatcher:
    """Validate and send device commands.

    A command is checked against the registry and the action table before
    anything goes on the wire: unknown devices, devices without an info
    block, unknown actions and actions illegal for the device type all fail
    without an HTTP request.
    """

    def __init__(self, registry: DeviceRegistry, api: PetKitAPI) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Registry resolving device IDs to entities.
            api: PetKitAPI used to send the commands.
        """
        self._registry = registry
        self._api = api

    async def send_command(
        self,
        device_id: int,
        action: str,
        settings: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send an action to a device.

        Args:
            device_id: Device (or pet) ID.
            action: Action name, e.g. "manual_feed" or "start_action".
            settings: Optional action settings passed to the parameter builder.

        Returns:
            The vendor result of the command.

        Raises:
            DeviceNotFoundError: If the device is not in the registry.
            DeviceInfoMissingError: If the device has no info block.
            UnsupportedActionError: If the action is unknown or not supported
                by the device type.
            CommandError: If sending the command fails.
        """
        device = self._registry.get_device(device_id)
        if device.info is None:
            msg = f"Device {device_id} has no device info"
            raise DeviceInfoMissingError(msg, device_id=device_id)

        device_type = device.info.device_type.lower()

        config = ACTIONS.get(str(action))
        if config is None:
            msg = f"Action '{action}' is not supported"
            raise UnsupportedActionError(msg, device_id=device_id, action=str(action), device_type=device_type)

        if not config.supports(device_type):
            msg = (
                f"Action '{action}' is not supported for device type '{device_type}'. "
                f"Supported devices: {', '.join(config.supported_types)}"
            )
            raise UnsupportedActionError(
                msg,
                device_id=device_id,
                action=config.name,
                device_type=device_type,
                supported_types=config.supported_types,
            )

        endpoint = config.resolve_endpoint(device_type)
        params = config.build_params(device, settings)

        _LOGGER.debug("Sending command %s to device %s (%s/%s)", config.name, device_id, device_type, endpoint)
        _LOGGER.debug("Command params: %s", params)

        try:
            result = await self._api.send_command(device_type, endpoint, params)
        except PetKitError as exc:
            msg = f"Failed to send command '{config.name}': {exc}"
            raise CommandError(msg, device_id=device_id) from exc

        _LOGGER.info("Command %s sent to device %s", config.name, device_id)
        return result
