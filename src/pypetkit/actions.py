"""Action configuration table for PetKit device commands.

Each action maps to an endpoint (fixed, or computed from the device type
code where the vendor endpoint differs by product line), a pure parameter
builder, and the closed set of device type codes the action is legal for.
The table is built once at import time and is read-only.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pypetkit.const import (
    D3,
    D4H,
    D4S,
    D4SH,
    DEVICES_FEEDER,
    DEVICES_LITTER_BOX,
    DEVICES_PURIFIER,
    DEVICES_WATER_FOUNTAIN,
    FEEDER,
    FEEDER_MINI,
    K2,
    K3,
    PET,
    T3,
    T4,
    T5,
    T6,
    T7,
)


if TYPE_CHECKING:
    from pypetkit.models import DeviceEntity


__all__ = [
    "ACTIONS",
    "ActionConfig",
    "DeviceAction",
    "DeviceCommand",
    "FeederCommand",
    "LitterCommand",
    "LitterBoxCommand",
    "PetCommand",
    "PurifierMode",
    "current_day",
]

Settings = Mapping[str, Any] | None
ParamsBuilder = Callable[["DeviceEntity", Settings], dict[str, Any]]


class DeviceCommand(StrEnum):
    """Generic device commands."""

    UPDATE_SETTING = "update_setting"
    CONTROL_DEVICE = "control_device"


class FeederCommand(StrEnum):
    """Feeder commands."""

    CALL_PET = "call_pet"
    CALIBRATION = "food_reset"
    MANUAL_FEED = "manual_feed"
    MANUAL_FEED_DUAL = "manual_feed_dual"
    CANCEL_MANUAL_FEED = "cancelRealtimeFeed"
    FOOD_REPLENISHED = "food_replenished"
    RESET_DESICCANT = "desiccant_reset"
    REMOVE_DAILY_FEED = "remove_daily_feed"
    RESTORE_DAILY_FEED = "restore_daily_feed"


class LitterCommand(StrEnum):
    """Litter box commands."""

    RESET_N50_DEODORIZER = "reset_deodorizer"


class PetCommand(StrEnum):
    """Pet commands."""

    PET_UPDATE_SETTING = "pet_update_setting"


class DeviceAction(StrEnum):
    """Actions sent through the controlDevice endpoint."""

    CONTINUE = "continue_action"
    END = "end_action"
    START = "start_action"
    STOP = "stop_action"
    MODE = "mode_action"  # K2 purifier only
    POWER = "power_action"


class LitterBoxCommand(IntEnum):
    """Values of the litter box start action."""

    CLEANING = 0
    DUMPING = 1
    ODOR_REMOVAL = 2
    RESETTING = 3
    LEVELING = 4
    CALIBRATING = 5
    RESET_DEODOR = 6
    LIGHT = 7
    RESET_N50_DEODOR = 8
    MAINTENANCE = 9
    RESET_N60_DEODOR = 10


class PurifierMode(IntEnum):
    """Air purifier working modes."""

    AUTO_MODE = 0
    SILENT_MODE = 1
    STANDARD_MODE = 2
    STRONG_MODE = 3


@dataclass(frozen=True)
class ActionConfig:
    """Static configuration of one action.

    Attributes:
        name: Action name.
        build_params: Pure function of (device entity, optional settings)
            returning the flat form fields of the request.
        supported_types: Device type codes the action is legal for.
        endpoint: Fixed endpoint, when it does not vary by product line.
        endpoint_for: Function computing the endpoint from the device type code.
    """

    name: str
    build_params: ParamsBuilder
    supported_types: tuple[str, ...]
    endpoint: str | None = None
    endpoint_for: Callable[[str], str] | None = None

    def supports(self, device_type: str) -> bool:
        """Check if the action is legal for a device type code."""
        return device_type.lower() in self.supported_types

    def resolve_endpoint(self, device_type: str) -> str:
        """Get the endpoint of the action for a device type code."""
        if self.endpoint_for is not None:
            return self.endpoint_for(device_type.lower())
        if self.endpoint is None:
            msg = f"Action {self.name} has no endpoint"
            raise ValueError(msg)
        return self.endpoint


def current_day() -> str:
    """Get the current local date as YYYYMMDD."""
    return datetime.now().strftime("%Y%m%d")  # noqa: DTZ005


def _kv(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _device_id(device: DeviceEntity) -> int:
    return device.info.device_id if device.info is not None else device.device_id


# -----------------------------------------------------------------------------
# Endpoints varying by product line
# -----------------------------------------------------------------------------


def _manual_feed_endpoint(device_type: str) -> str:
    return "saveDailyFeed" if device_type in (FEEDER, FEEDER_MINI) else "save_dailyfeed"


def _cancel_manual_feed_endpoint(device_type: str) -> str:
    return "removeDailyFeed" if device_type in (FEEDER, FEEDER_MINI) else "cancel_realtime_feed"


def _reset_desiccant_endpoint(device_type: str) -> str:
    return "desiccantReset" if device_type in (FEEDER, FEEDER_MINI) else "desiccant_reset"


def _update_setting_endpoint(device_type: str) -> str:
    return "saveSetting" if device_type in (FEEDER_MINI, K3) else "update_settings"


# -----------------------------------------------------------------------------
# Parameter builders
# -----------------------------------------------------------------------------


def _update_setting_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"id": _device_id(device), "kv": _kv(dict(setting or {}))}


def _control_device_params(device: DeviceEntity, command: Settings) -> dict[str, Any]:
    command = dict(command or {})
    first_key = next(iter(command), "")
    return {"id": _device_id(device), "kv": _kv(command), "type": first_key.split("_")[0]}


def _manual_feed_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {
        "deviceId": _device_id(device),
        "day": current_day(),
        "name": "",
        "time": "-1",
        **(setting or {}),
    }


def _manual_feed_dual_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    setting = setting or {}
    return {
        "deviceId": _device_id(device),
        "day": current_day(),
        "name": "",
        "time": "-1",
        "amount1": setting.get("amount1") or 1,
        "amount2": setting.get("amount2") or 1,
    }


def _cancel_manual_feed_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    params: dict[str, Any] = {"deviceId": _device_id(device), "day": current_day()}
    manual_feed_id = getattr(device, "manual_feed_id", None)
    if device.device_type in (D4H, D4S, D4SH) and manual_feed_id:
        params["id"] = manual_feed_id
    return params


def _device_id_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"deviceId": _device_id(device)}


def _daily_feed_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"deviceId": _device_id(device), "day": current_day(), **(setting or {})}


def _food_replenished_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"deviceId": _device_id(device), "noRemind": "3"}


def _calibration_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"deviceId": _device_id(device), "action": (setting or {}).get("action") or 0}


def _pet_update_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"petId": _device_id(device), "kv": _kv(dict(setting or {}))}


def _action_params(action: DeviceAction, value: Any) -> dict[str, Any]:
    return {"kv": _kv({action.value: value}), "type": action.value.split("_")[0]}


def _start_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    cmd = (setting or {}).get("cmd")
    return {
        "id": _device_id(device),
        **_action_params(DeviceAction.START, LitterBoxCommand.CLEANING if cmd is None else cmd),
    }


def _stop_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"id": _device_id(device), **_action_params(DeviceAction.STOP, LitterBoxCommand.RESETTING)}


def _continue_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"id": _device_id(device), **_action_params(DeviceAction.CONTINUE, 1)}


def _end_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    return {"id": _device_id(device), **_action_params(DeviceAction.END, 1)}


def _power_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    power = 1 if (setting or {}).get("power") else 0
    return {"id": _device_id(device), **_action_params(DeviceAction.POWER, power)}


def _mode_params(device: DeviceEntity, setting: Settings) -> dict[str, Any]:
    mode = (setting or {}).get("mode")
    return {
        "id": _device_id(device),
        **_action_params(DeviceAction.MODE, PurifierMode.AUTO_MODE if mode is None else mode),
    }


_ALL_DEVICES = DEVICES_FEEDER + DEVICES_LITTER_BOX + DEVICES_PURIFIER + DEVICES_WATER_FOUNTAIN
_LITTER_AND_PURIFIER = DEVICES_LITTER_BOX + DEVICES_PURIFIER

_CONFIGS = (
    ActionConfig(
        DeviceCommand.UPDATE_SETTING,
        _update_setting_params,
        _ALL_DEVICES,
        endpoint_for=_update_setting_endpoint,
    ),
    ActionConfig(
        DeviceCommand.CONTROL_DEVICE,
        _control_device_params,
        (K2, K3, T3, T4, T5, T6, T7),
        endpoint="controlDevice",
    ),
    ActionConfig(
        FeederCommand.MANUAL_FEED,
        _manual_feed_params,
        DEVICES_FEEDER,
        endpoint_for=_manual_feed_endpoint,
    ),
    ActionConfig(FeederCommand.MANUAL_FEED_DUAL, _manual_feed_dual_params, (D4S, D4SH), endpoint="save_dailyfeed"),
    ActionConfig(
        FeederCommand.CANCEL_MANUAL_FEED,
        _cancel_manual_feed_params,
        DEVICES_FEEDER,
        endpoint_for=_cancel_manual_feed_endpoint,
    ),
    ActionConfig(
        FeederCommand.RESET_DESICCANT,
        _device_id_params,
        DEVICES_FEEDER,
        endpoint_for=_reset_desiccant_endpoint,
    ),
    ActionConfig(FeederCommand.REMOVE_DAILY_FEED, _daily_feed_params, DEVICES_FEEDER, endpoint="remove_dailyfeed"),
    ActionConfig(FeederCommand.RESTORE_DAILY_FEED, _daily_feed_params, DEVICES_FEEDER, endpoint="restore_dailyfeed"),
    ActionConfig(
        FeederCommand.FOOD_REPLENISHED,
        _food_replenished_params,
        (D4H, D4S, D4SH),
        endpoint="food_replenished",
    ),
    ActionConfig(FeederCommand.CALIBRATION, _calibration_params, (FEEDER,), endpoint="food_reset"),
    ActionConfig(FeederCommand.CALL_PET, _device_id_params, (D3,), endpoint="call_pet"),
    ActionConfig(LitterCommand.RESET_N50_DEODORIZER, _device_id_params, (T4, T5, T6), endpoint="deodorizer_reset"),
    ActionConfig(PetCommand.PET_UPDATE_SETTING, _pet_update_params, (PET,), endpoint="updatePet"),
    ActionConfig(DeviceAction.START, _start_params, _LITTER_AND_PURIFIER, endpoint="controlDevice"),
    ActionConfig(DeviceAction.STOP, _stop_params, DEVICES_LITTER_BOX, endpoint="controlDevice"),
    ActionConfig(DeviceAction.CONTINUE, _continue_params, _LITTER_AND_PURIFIER, endpoint="controlDevice"),
    ActionConfig(DeviceAction.END, _end_params, _LITTER_AND_PURIFIER, endpoint="controlDevice"),
    ActionConfig(DeviceAction.POWER, _power_params, DEVICES_PURIFIER, endpoint="controlDevice"),
    ActionConfig(DeviceAction.MODE, _mode_params, (K2,), endpoint="controlDevice"),
)

ACTIONS: Mapping[str, ActionConfig] = MappingProxyType({str(config.name): config for config in _CONFIGS})
