"""Tests for the device action table."""

from __future__ import annotations

import dataclasses
import json
import re

import pytest

from pypetkit.actions import (
    ACTIONS,
    DeviceAction,
    DeviceCommand,
    FeederCommand,
    LitterBoxCommand,
    LitterCommand,
    PetCommand,
    current_day,
)
from pypetkit.models import DeviceEntity, Feeder
from pypetkit.parsers import parse_device_entity, parse_pet_entity


def device(device_type: str, device_id: int = 1001) -> DeviceEntity:
    """Create a device entity of a type code."""
    return parse_device_entity(device_type, {"id": device_id, "name": f"{device_type} device"})


class TestActionTable:
    """Test the action table structure."""

    def test_table_is_read_only(self) -> None:
        """Test that entries cannot be added or replaced."""
        with pytest.raises(TypeError):
            ACTIONS["new_action"] = ACTIONS["call_pet"]  # type: ignore[index]

    def test_entries_are_frozen(self) -> None:
        """Test that entries cannot be mutated."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            ACTIONS["call_pet"].supported_types = ("t4",)  # type: ignore[misc]

    def test_every_command_has_an_entry(self) -> None:
        """Test that every named command is in the table."""
        for commands in (DeviceCommand, FeederCommand, LitterCommand, PetCommand, DeviceAction):
            for command in commands:
                assert command in ACTIONS

    def test_supports_is_case_insensitive(self) -> None:
        """Test type checks against upper-case type codes."""
        assert ACTIONS[FeederCommand.CALL_PET].supports("D3") is True
        assert ACTIONS[FeederCommand.CALL_PET].supports("t4") is False

    def test_current_day_format(self) -> None:
        """Test that the current day is formatted as YYYYMMDD."""
        assert re.fullmatch(r"\d{8}", current_day())


class TestEndpoints:
    """Test endpoint resolution."""

    @pytest.mark.parametrize(
        ("action", "device_type", "endpoint"),
        [
            (FeederCommand.MANUAL_FEED, "feeder", "saveDailyFeed"),
            (FeederCommand.MANUAL_FEED, "feedermini", "saveDailyFeed"),
            (FeederCommand.MANUAL_FEED, "d4", "save_dailyfeed"),
            (FeederCommand.CANCEL_MANUAL_FEED, "feedermini", "removeDailyFeed"),
            (FeederCommand.CANCEL_MANUAL_FEED, "d4sh", "cancel_realtime_feed"),
            (FeederCommand.RESET_DESICCANT, "feeder", "desiccantReset"),
            (FeederCommand.RESET_DESICCANT, "d3", "desiccant_reset"),
            (DeviceCommand.UPDATE_SETTING, "feedermini", "saveSetting"),
            (DeviceCommand.UPDATE_SETTING, "k3", "saveSetting"),
            (DeviceCommand.UPDATE_SETTING, "t4", "update_settings"),
            (DeviceAction.START, "t6", "controlDevice"),
            (LitterCommand.RESET_N50_DEODORIZER, "t5", "deodorizer_reset"),
            (PetCommand.PET_UPDATE_SETTING, "pet", "updatePet"),
            (FeederCommand.MANUAL_FEED_DUAL, "d4s", "save_dailyfeed"),
        ],
    )
    def test_endpoint(self, action: str, device_type: str, endpoint: str) -> None:
        """Test fixed and per-product-line endpoints."""
        assert ACTIONS[action].resolve_endpoint(device_type) == endpoint


class TestParams:
    """Test parameter builders."""

    def test_update_setting(self) -> None:
        """Test that settings are sent as compact JSON."""
        params = ACTIONS[DeviceCommand.UPDATE_SETTING].build_params(device("t4"), {"lightMode": 1})

        assert params == {"id": 1001, "kv": '{"lightMode":1}'}

    def test_control_device_type_from_first_key(self) -> None:
        """Test that the command type is the prefix of the first key."""
        params = ACTIONS[DeviceCommand.CONTROL_DEVICE].build_params(device("t4"), {"start_action": 0})

        assert params == {"id": 1001, "kv": '{"start_action":0}', "type": "start"}

    def test_manual_feed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test manual feed fields merged with the settings."""
        monkeypatch.setattr("pypetkit.actions.current_day", lambda: "20240501")

        params = ACTIONS[FeederCommand.MANUAL_FEED].build_params(device("d4"), {"amount": 20})

        assert params == {"deviceId": 1001, "day": "20240501", "name": "", "time": "-1", "amount": 20}

    def test_manual_feed_dual_defaults(self) -> None:
        """Test that both hopper amounts default to 1."""
        params = ACTIONS[FeederCommand.MANUAL_FEED_DUAL].build_params(device("d4s"), {"amount1": 3})

        assert params["amount1"] == 3
        assert params["amount2"] == 1

    def test_cancel_manual_feed_with_feed_id(self) -> None:
        """Test that camera and dual-hopper feeders send the manual feed ID."""
        feeder = device("d4sh")
        assert isinstance(feeder, Feeder)
        feeder.manual_feed_id = "m2"

        params = ACTIONS[FeederCommand.CANCEL_MANUAL_FEED].build_params(feeder, None)

        assert params["id"] == "m2"
        assert params["deviceId"] == 1001

    def test_cancel_manual_feed_without_feed_id(self) -> None:
        """Test that other feeders send no feed ID."""
        feeder = device("d4")
        assert isinstance(feeder, Feeder)
        feeder.manual_feed_id = "m2"

        params = ACTIONS[FeederCommand.CANCEL_MANUAL_FEED].build_params(feeder, None)

        assert "id" not in params

    def test_food_replenished(self) -> None:
        """Test the fixed reminder flag."""
        params = ACTIONS[FeederCommand.FOOD_REPLENISHED].build_params(device("d4h"), None)

        assert params == {"deviceId": 1001, "noRemind": "3"}

    def test_calibration_default_action(self) -> None:
        """Test that calibration defaults to action 0."""
        assert ACTIONS[FeederCommand.CALIBRATION].build_params(device("feeder"), None)["action"] == 0

    def test_pet_update_setting(self) -> None:
        """Test that pet settings address the pet ID."""
        pet = parse_pet_entity({"petId": 9001, "petName": "Milo"})

        params = ACTIONS[PetCommand.PET_UPDATE_SETTING].build_params(pet, {"weight": 4.2})

        assert params == {"petId": 9001, "kv": '{"weight":4.2}'}

    @pytest.mark.parametrize(
        ("action", "settings", "kv", "command_type"),
        [
            (DeviceAction.START, None, {"start_action": 0}, "start"),
            (DeviceAction.START, {"cmd": LitterBoxCommand.MAINTENANCE}, {"start_action": 9}, "start"),
            (DeviceAction.STOP, None, {"stop_action": 3}, "stop"),
            (DeviceAction.CONTINUE, None, {"continue_action": 1}, "continue"),
            (DeviceAction.END, None, {"end_action": 1}, "end"),
            (DeviceAction.POWER, {"power": True}, {"power_action": 1}, "power"),
            (DeviceAction.POWER, {"power": False}, {"power_action": 0}, "power"),
            (DeviceAction.MODE, None, {"mode_action": 0}, "mode"),
            (DeviceAction.MODE, {"mode": 2}, {"mode_action": 2}, "mode"),
        ],
    )
    def test_control_actions(
        self,
        action: str,
        settings: dict[str, int] | None,
        kv: dict[str, int],
        command_type: str,
    ) -> None:
        """Test the controlDevice payload of each device action."""
        params = ACTIONS[action].build_params(device("k2"), settings)

        assert params["id"] == 1001
        assert json.loads(params["kv"]) == kv
        assert params["type"] == command_type

    def test_builders_do_not_mutate_settings(self) -> None:
        """Test that parameter builders leave their inputs untouched."""
        settings = {"amount": 5}
        entity = device("d4")

        ACTIONS[FeederCommand.MANUAL_FEED].build_params(entity, settings)

        assert settings == {"amount": 5}
        assert entity.state == {}


class TestSupportedTypes:
    """Test which device types accept which actions."""

    @pytest.mark.parametrize(
        ("action", "allowed", "rejected"),
        [
            (FeederCommand.CALL_PET, "d3", "d4"),
            (FeederCommand.MANUAL_FEED_DUAL, "d4sh", "d4h"),
            (FeederCommand.FOOD_REPLENISHED, "d4s", "d4"),
            (FeederCommand.CALIBRATION, "feeder", "feedermini"),
            (LitterCommand.RESET_N50_DEODORIZER, "t6", "t7"),
            (DeviceAction.STOP, "t3", "k2"),
            (DeviceAction.POWER, "k3", "t4"),
            (DeviceAction.MODE, "k2", "k3"),
            (DeviceCommand.CONTROL_DEVICE, "t7", "d4"),
            (PetCommand.PET_UPDATE_SETTING, "pet", "t4"),
            (DeviceCommand.UPDATE_SETTING, "w5", "pet"),
        ],
    )
    def test_supported_types(self, action: str, allowed: str, rejected: str) -> None:
        """Test one allowed and one rejected type per action."""
        assert ACTIONS[action].supports(allowed) is True
        assert ACTIONS[action].supports(rejected) is False
