"""Custom exceptions for pypetkit library."""

from __future__ import annotations

from typing import Any

from pypetkit.const import (
    ERROR_CODE_AUTH_FAILED,
    ERROR_CODE_SERVER_BUSY,
    ERROR_CODE_SESSION_EXPIRED,
    ERROR_CODE_UNREGISTERED,
)


class PetKitError(Exception):
    """Base exception for all PetKit errors."""


class TransportError(PetKitError):
    """Exception raised when an HTTP exchange fails after retries.

    Attributes:
        status: HTTP status code, if a response was received.
        payload: Decoded JSON body of the failed response, if any.
    """

    def __init__(
        self,
        message: str = "",
        status: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Initialize TransportError.

        Args:
            message: Error message.
            status: Optional HTTP status code.
            payload: Optional decoded response body.
        """
        super().__init__(message)
        self.status = status
        self.payload = payload


class RegionNotFoundError(PetKitError):
    """Exception raised when the configured region has no regional server.

    Attributes:
        region: The region that could not be resolved.
    """

    def __init__(self, region: str) -> None:
        """Initialize RegionNotFoundError.

        Args:
            region: The region that could not be resolved.
        """
        super().__init__(f"Regional server not found for region: {region}")
        self.region = region


class APIError(PetKitError):
    """Exception raised for errors reported by the PetKit API.

    Attributes:
        code: Optional vendor error code.
    """

    def __init__(self, message: str = "", code: int | None = None) -> None:
        """Initialize APIError.

        Args:
            message: Error message.
            code: Optional vendor error code.
        """
        super().__init__(message)
        self.code = code


class AuthenticationError(APIError):
    """Exception raised for authentication failures."""


class UnregisteredAccountError(AuthenticationError):
    """Exception raised when the account is not registered."""


class SessionExpiredError(APIError):
    """Exception raised when the API reports an expired session."""


class ServerBusyError(APIError):
    """Exception raised when the API reports that the server is busy."""


class DeviceError(PetKitError):
    """Exception raised for device-related errors.

    Attributes:
        device_id: Optional device ID associated with the error.
    """

    def __init__(self, message: str = "", device_id: int | None = None) -> None:
        """Initialize DeviceError.

        Args:
            message: Error message.
            device_id: Optional device ID associated with the error.
        """
        super().__init__(message)
        self.device_id = device_id


class DeviceNotFoundError(DeviceError):
    """Exception raised when a device is not in the registry."""


class DeviceInfoMissingError(DeviceError):
    """Exception raised when a device has no device info block yet."""


class UnsupportedActionError(DeviceError):
    """Exception raised when an action is unknown or illegal for a device type.

    Attributes:
        action: The requested action name.
        device_type: Device type code of the target device, if known.
        supported_types: Device type codes the action is legal for.
    """

    def __init__(
        self,
        message: str = "",
        device_id: int | None = None,
        *,
        action: str | None = None,
        device_type: str | None = None,
        supported_types: tuple[str, ...] = (),
    ) -> None:
        """Initialize UnsupportedActionError.

        Args:
            message: Error message.
            device_id: Optional device ID associated with the error.
            action: The requested action name.
            device_type: Device type code of the target device.
            supported_types: Device type codes the action is legal for.
        """
        super().__init__(message, device_id)
        self.action = action
        self.device_type = device_type
        self.supported_types = supported_types


class CommandError(DeviceError):
    """Exception raised when sending a command fails."""


def error_from_response(error: dict[str, Any]) -> APIError:
    """Map a vendor error object to the matching exception.

    Args:
        error: The ``error`` object of an API response, e.g.
            ``{"code": 122, "msg": "Password error"}``.

    Returns:
        An APIError subclass instance carrying the vendor code.
    """
    code = error.get("code")
    if isinstance(code, str) and code.isdigit():
        code = int(code)
    msg = error.get("msg") or "Unknown error"

    if code == ERROR_CODE_SERVER_BUSY:
        return ServerBusyError(f"Server busy: {msg}", code)
    if code == ERROR_CODE_SESSION_EXPIRED:
        return SessionExpiredError(f"Session expired: {msg}", code)
    if code == ERROR_CODE_AUTH_FAILED:
        return AuthenticationError(f"Authentication failed: {msg}", code)
    if code == ERROR_CODE_UNREGISTERED:
        return UnregisteredAccountError("Unregistered email", code)
    return APIError(f"Request failed code: {code}, details: {msg}", code)
