"""Low-level API client for PetKit cloud endpoints.

This module provides authenticated HTTP communication with the regional
PetKit gateway. All methods return the unwrapped ``result`` member of the
vendor response and raise typed errors for vendor-reported failures.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pypetkit.auth import vendor_request
from pypetkit.const import (
    ENDPOINT_CLOUD_VIDEO,
    ENDPOINT_DETAILS,
    ENDPOINT_DEVICE_RECORD,
    ENDPOINT_FAMILY_LIST,
    ENDPOINT_LIVE,
    ENDPOINT_OWN_DEVICES,
    ENDPOINT_PET_OUT_GRAPH,
    ENDPOINT_STATISTIC,
)
from pypetkit.exceptions import SessionExpiredError


if TYPE_CHECKING:
    from collections.abc import Mapping

    from pypetkit.auth import SessionManager
    from pypetkit.transport import Transport

_LOGGER = logging.getLogger(__name__)


class PetKitAPI:
    """Low-level API client for the PetKit regional gateway.

    Every request first goes through the session manager's validity check,
    so callers never deal with login or session expiry themselves.

    Example:
        ```python
        async with Transport() as transport:
            sessions = SessionManager("user@example.com", "pass", transport, region="DE")
            api = PetKitAPI(transport=transport, session_manager=sessions)

            families = await api.get_family_list()
            litter_boxes = await api.get_own_devices("t4")
        ```
    """

    def __init__(self, *, transport: Transport, session_manager: SessionManager) -> None:
        """Initialize the API client.

        Args:
            transport: Transport executing HTTP requests.
            session_manager: SessionManager providing session headers and the base URL.
        """
        self._transport = transport
        self._session_manager = session_manager

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        data: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Make an authenticated API request.

        Args:
            method: HTTP method (GET, POST).
            endpoint: Endpoint path relative to the regional base URL
                (e.g. "group/family/list" or "t4/owndevices").
            data: Optional form fields.
            params: Optional query parameters.

        Returns:
            The ``result`` member of the response.

        Raises:
            SessionExpiredError: If the API rejects the session. The session is
                dropped so the next request logs in again.
            APIError: For other vendor-reported errors.
            TransportError: If the HTTP exchange fails.
        """
        headers = await self._session_manager.session_headers()
        url = f"{self._session_manager.base_url}{endpoint}"

        try:
            return await vendor_request(self._transport, method, url, data=data, params=params, headers=headers)
        except SessionExpiredError:
            _LOGGER.warning("Session rejected by %s, dropping it", endpoint)
            self._session_manager.invalidate_session()
            raise

    # -------------------------------------------------------------------------
    # Account Endpoints
    # -------------------------------------------------------------------------

    async def get_family_list(self) -> list[dict[str, Any]]:
        """Get the family groupings with their device and pet stubs."""
        result = await self.request("GET", ENDPOINT_FAMILY_LIST)
        return result if isinstance(result, list) else []

    async def get_user_details(self) -> dict[str, Any]:
        """Get the account details, including pet profiles under "dogs"."""
        result = await self.request("GET", ENDPOINT_DETAILS)
        if not isinstance(result, dict):
            return {}
        return result.get("user") or {}

    # -------------------------------------------------------------------------
    # Device Endpoints
    # -------------------------------------------------------------------------

    async def get_own_devices(self, device_type: str) -> list[dict[str, Any]]:
        """Get detailed records of every device of a type code.

        Args:
            device_type: Device type code, e.g. "t4".

        Returns:
            List of device records with "id", "name", "state", "settings", ...
        """
        result = await self.request("GET", f"{device_type}/{ENDPOINT_OWN_DEVICES}")
        return result if isinstance(result, list) else []

    async def get_device_record(self, device_type: str, device_id: int, day: str) -> Any:
        """Get the event records of a device for a day (YYYYMMDD)."""
        return await self.request(
            "POST",
            f"{device_type}/{ENDPOINT_DEVICE_RECORD}",
            data={"date": day, "deviceId": device_id},
        )

    async def get_statistic(self, device_type: str, device_id: int, day: str) -> Any:
        """Get the usage statistics of a device for a day (YYYYMMDD)."""
        return await self.request(
            "POST",
            f"{device_type}/{ENDPOINT_STATISTIC}",
            data={"deviceId": device_id, "startDate": day, "endDate": day, "type": 0},
        )

    async def get_pet_out_graph(self, device_type: str, device_id: int, day: str) -> Any:
        """Get the pet activity graph of a camera litter box for a day."""
        return await self.request(
            "POST",
            f"{device_type}/{ENDPOINT_PET_OUT_GRAPH}",
            data={"deviceId": device_id, "startDate": day, "endDate": day},
        )

    async def get_cloud_video(self, device_type: str, device_id: int) -> Any:
        """Get the cloud video descriptors of a camera device."""
        return await self.request(
            "POST",
            f"{device_type}/{ENDPOINT_CLOUD_VIDEO}",
            data={"deviceId": device_id},
        )

    async def start_live(self, device_type: str, device_id: int) -> Any:
        """Get the live stream descriptor of a camera device."""
        return await self.request(
            "POST",
            f"{device_type}/{ENDPOINT_LIVE}",
            data={"deviceId": device_id},
        )

    async def send_command(self, device_type: str, endpoint: str, params: Mapping[str, Any]) -> Any:
        """Post a command to a device endpoint.

        Args:
            device_type: Device type code used as the path prefix.
            endpoint: Command endpoint, e.g. "controlDevice".
            params: Flat form fields of the command.

        Returns:
            The vendor result of the command.
        """
        return await self.request("POST", f"{device_type}/{endpoint}", data=params)
