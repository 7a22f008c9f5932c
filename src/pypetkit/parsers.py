"""Parsing utilities for PetKit API responses.

This module provides stateless functions used by the session manager and the
device registry to convert raw API payloads into data models, classify
devices into families, and project heterogeneous device state into
fixed-shape status records.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pypetkit.const import (
    D4,
    DEFAULT_SESSION_TTL,
    DEVICES_FEEDER,
    DEVICES_LITTER_BOX,
    DEVICES_PURIFIER,
    DEVICES_WATER_FOUNTAIN,
    K3,
    PET,
    T4,
    W5,
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


__all__ = [
    "FEEDER_STATUS_FIELDS",
    "FOUNTAIN_STATUS_FIELDS",
    "LITTER_STATUS_FIELDS",
    "PURIFIER_STATUS_FIELDS",
    "classify_device_type",
    "family_for_type",
    "latest_manual_feed_id",
    "latest_pet_visits",
    "parse_account_snapshot",
    "parse_device_entity",
    "parse_pet_entity",
    "parse_region_servers",
    "parse_session",
    "placeholder_entity",
    "project_feeder_status",
    "project_fountain_status",
    "project_litter_status",
    "project_purifier_status",
    "unwrap_list",
]

_LOGGER = logging.getLogger(__name__)

# Status projections: field -> (vendor keys in priority order, default).
# Vendor payloads changed naming over firmware generations, so each field
# lists every variant seen so far; the first present, non-null key wins.
LITTER_STATUS_FIELDS: dict[str, tuple[tuple[str, ...], int]] = {
    "litter_level": (("sandPercent", "sand_percent"), 0),
    "waste_level": (("box",), 0),
    "battery_level": (("battery",), 100),
}
FEEDER_STATUS_FIELDS: dict[str, tuple[tuple[str, ...], int]] = {
    "battery_level": (("batteryPower", "battery_power", "battery"), 0),
    "food_level": (("food", "food1"), 0),
}
FOUNTAIN_STATUS_FIELDS: dict[str, tuple[tuple[str, ...], int]] = {
    "water_level": (("filterPercent", "filter_percent"), 100),
    "filter_life": (("filterPercent", "filter_percent"), 100),
    "pump_running": (("runStatus", "run_status"), 0),
    "mode": (("mode",), 0),
}
PURIFIER_STATUS_FIELDS: dict[str, tuple[tuple[str, ...], int]] = {
    "air_quality": (("humidity",), 0),
    "filter_life": (("leftDay", "left_day"), 100),
    "mode": (("mode",), 0),
    "fan_speed": (("refresh",), 1),
}

# Name fragments used when a stub carries no recognised type code.
_NAME_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("litter", "pura"), T4),
    (("feeder", "fresh"), D4),
    (("fountain", "water"), W5),
    (("purifier", "air"), K3),
)

_FAMILY_CLASSES: dict[DeviceFamily, type[DeviceEntity]] = {
    DeviceFamily.FEEDER: Feeder,
    DeviceFamily.LITTER: Litter,
    DeviceFamily.WATER_FOUNTAIN: WaterFountain,
    DeviceFamily.PURIFIER: Purifier,
    DeviceFamily.UNKNOWN: UnknownDevice,
}


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_timestamp(value: Any) -> datetime:
    """Parse a vendor timestamp, falling back to the current time."""
    if isinstance(value, (int, float)):
        # Millisecond epochs are common in vendor payloads
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, UTC)

    if isinstance(value, str) and value:
        for parse in (
            datetime.fromisoformat,
            lambda v: datetime.strptime(v, "%Y-%m-%dT%H:%M:%S.%f%z"),
        ):
            try:
                parsed = parse(value)
            except ValueError:
                continue
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    _LOGGER.debug("Could not parse timestamp %r, using current time", value)
    return datetime.now(UTC)


def parse_session(data: dict[str, Any]) -> Session:
    """Parse the session block of a login or refresh response.

    A missing or non-positive lifetime falls back to DEFAULT_SESSION_TTL.

    Args:
        data: Raw session data in format:
              {"id": str, "userId": str, "expiresIn": int,
               "region": str, "createdAt": str}

    Returns:
        Session instance.
    """
    expires_in = _to_int(data.get("expiresIn"))
    if expires_in is None or expires_in <= 0:
        _LOGGER.warning(
            "Session has no valid lifetime (%r), assuming %d seconds",
            data.get("expiresIn"),
            DEFAULT_SESSION_TTL,
        )
        expires_in = DEFAULT_SESSION_TTL

    return Session(
        id=str(data["id"]),
        user_id=str(data.get("userId", "")),
        expires_in=expires_in,
        region=data.get("region"),
        created_at=_parse_timestamp(data.get("createdAt")),
    )


def parse_region_servers(data: dict[str, Any] | None) -> list[RegionServer]:
    """Parse the regional server directory.

    Args:
        data: Result of the region servers endpoint:
              {"list": [{"id": "DE", "name": "Germany", "gateway": "https://..."}]}

    Returns:
        List of RegionServer instances; entries missing an id or gateway are skipped.
    """
    servers: list[RegionServer] = []
    for entry in (data or {}).get("list", []):
        if not entry.get("id") or not entry.get("gateway"):
            continue
        servers.append(
            RegionServer(
                id=str(entry["id"]),
                name=str(entry.get("name", "")),
                gateway=str(entry["gateway"]),
            )
        )
    return servers


def parse_account_snapshot(data: list[dict[str, Any]] | None) -> AccountSnapshot:
    """Parse the family list into an account snapshot.

    Args:
        data: Result of the family list endpoint, a list of families each
              holding "deviceList" and "petList" arrays.

    Returns:
        AccountSnapshot instance.
    """
    families: list[Family] = []
    for family_data in data or []:
        devices = [
            DeviceStub(
                device_id=int(stub["deviceId"]),
                device_name=str(stub.get("deviceName") or ""),
                device_type=str(stub.get("deviceType") or ""),
                raw=stub,
            )
            for stub in family_data.get("deviceList") or []
            if _to_int(stub.get("deviceId")) is not None
        ]
        families.append(
            Family(
                family_id=_to_int(family_data.get("groupId")),
                name=str(family_data.get("groupName") or ""),
                devices=devices,
                pets=list(family_data.get("petList") or []),
            )
        )
    return AccountSnapshot(families=families)


def classify_device_type(stub: DeviceStub) -> str:
    """Determine the device type code of a device stub.

    Known type codes are used as-is. Otherwise the device name is matched
    against family hints ("litter"/"pura", "feeder"/"fresh",
    "fountain"/"water", "purifier"/"air") and the family's default code is
    returned. Unrecognised devices default to the litter box code.

    Args:
        stub: Device stub from the family list.

    Returns:
        Device type code, e.g. "t6" or "d4".
    """
    device_type = stub.device_type.lower()
    if device_type in DEVICES_LITTER_BOX + DEVICES_FEEDER + DEVICES_WATER_FOUNTAIN + DEVICES_PURIFIER:
        return device_type

    name = stub.device_name.lower()
    for fragments, code in _NAME_HINTS:
        if any(fragment in name for fragment in fragments):
            return code

    _LOGGER.debug("Unknown device type for %s, defaulting to %s", stub.device_name, T4)
    return T4


def family_for_type(device_type: str) -> DeviceFamily:
    """Map a device type code to its family."""
    device_type = device_type.lower()
    if device_type in DEVICES_FEEDER:
        return DeviceFamily.FEEDER
    if device_type in DEVICES_LITTER_BOX:
        return DeviceFamily.LITTER
    if device_type in DEVICES_WATER_FOUNTAIN:
        return DeviceFamily.WATER_FOUNTAIN
    if device_type in DEVICES_PURIFIER:
        return DeviceFamily.PURIFIER
    if device_type == PET:
        return DeviceFamily.PET
    return DeviceFamily.UNKNOWN


def placeholder_entity(device_type: str, device_id: int) -> DeviceEntity:
    """Build an entity without an info block for a device awaiting its details."""
    return _FAMILY_CLASSES[family_for_type(device_type)](device_id=device_id)


def parse_device_entity(device_type: str, data: dict[str, Any]) -> DeviceEntity:
    """Build a device entity from a detailed device record.

    Args:
        device_type: Resolved device type code of the device.
        data: One record of the type's owndevices result, carrying "id",
              "name", "state", "settings" and identity fields.

    Returns:
        Entity of the family matching the device type.
    """
    device_id = int(data["id"])
    info = DeviceInfo(
        device_id=device_id,
        device_type=device_type,
        name=str(data.get("name") or ""),
        created_at=data.get("createdAt"),
        mac=data.get("mac"),
        sn=data.get("sn"),
        hardware=data.get("hardware"),
        firmware=data.get("firmware"),
        timezone=data.get("timezone"),
        locale=data.get("locale"),
        type_code=_to_int(data.get("typeCode")),
        family_id=_to_int(data.get("familyId")),
        unique_id=data.get("sn"),
    )

    entity_cls = _FAMILY_CLASSES[family_for_type(device_type)]
    entity = entity_cls(
        device_id=device_id,
        info=info,
        state=dict(data.get("state") or {}),
        settings=data.get("settings"),
        raw=data,
    )
    if isinstance(entity, Litter):
        entity.k3_device = data.get("k3Device")
    return entity


def parse_pet_entity(data: dict[str, Any]) -> Pet:
    """Build a pet entity from a pet stub of the family list.

    Args:
        data: Pet stub in format {"petId": int, "petName": str, "sn": ..., ...}

    Returns:
        Pet instance with a populated info block.
    """
    pet_id = int(data["petId"])
    sn = data.get("sn")
    return Pet(
        device_id=pet_id,
        info=DeviceInfo(
            device_id=pet_id,
            device_type=PET,
            name=str(data.get("petName") or ""),
            created_at=data.get("createdAt"),
            family_id=0,
            type_code=0,
            unique_id=str(sn) if sn is not None else None,
        ),
        profile=data,
    )


def _pick(sources: tuple[dict[str, Any], ...], keys: tuple[str, ...], default: Any) -> Any:
    """Return the first non-null value of keys across sources."""
    for source in sources:
        for key in keys:
            value = source.get(key)
            if value is not None:
                return value
    return default


def _state_sources(entity: DeviceEntity) -> tuple[dict[str, Any], ...]:
    raw = entity.raw or {}
    return (entity.state, raw)


def project_litter_status(entity: DeviceEntity) -> LitterStatus:
    """Project a litter box entity onto LitterStatus."""
    sources = _state_sources(entity)
    values = {name: _pick(sources, keys, default) for name, (keys, default) in LITTER_STATUS_FIELDS.items()}
    return LitterStatus(raw=entity, **values)


def project_feeder_status(entity: DeviceEntity) -> FeederStatus:
    """Project a feeder entity onto FeederStatus."""
    sources = _state_sources(entity)
    values = {name: _pick(sources, keys, default) for name, (keys, default) in FEEDER_STATUS_FIELDS.items()}
    return FeederStatus(raw=entity, **values)


def project_fountain_status(entity: DeviceEntity) -> FountainStatus:
    """Project a water fountain entity onto FountainStatus.

    The pump is reported running when any run status field equals 1. The
    mode is returned as a string.
    """
    sources = _state_sources(entity)
    values = {name: _pick(sources, keys, default) for name, (keys, default) in FOUNTAIN_STATUS_FIELDS.items()}
    run_keys, _ = FOUNTAIN_STATUS_FIELDS["pump_running"]
    return FountainStatus(
        water_level=values["water_level"],
        filter_life=values["filter_life"],
        pump_running=any(source.get(key) == 1 for source in sources for key in run_keys),
        mode=str(values["mode"]),
        raw=entity,
    )


def project_purifier_status(entity: DeviceEntity) -> PurifierStatus:
    """Project an air purifier entity onto PurifierStatus.

    Purifiers report their live readings in the nested "state" block of the
    raw payload, which takes precedence over the flattened entity state.
    """
    raw_state = (entity.raw or {}).get("state")
    sources = (raw_state,) if isinstance(raw_state, dict) else _state_sources(entity)
    values = {name: _pick(sources, keys, default) for name, (keys, default) in PURIFIER_STATUS_FIELDS.items()}
    return PurifierStatus(raw=entity, **values)


def unwrap_list(result: Any) -> Any:
    """Return the "list" member of a result object, or the result itself."""
    if isinstance(result, dict) and "list" in result:
        return result["list"]
    return result


def _flatten_records(records: Any) -> list[dict[str, Any]]:
    flat: list[dict[str, Any]] = []
    for record in records if isinstance(records, list) else []:
        if not isinstance(record, dict):
            continue
        flat.append(record)
        flat.extend(_flatten_records(record.get("subContent")))
    return flat


def latest_pet_visits(records: Any) -> dict[int, dict[str, Any]]:
    """Find the latest litter box visit of each pet in a day of records.

    Args:
        records: Litter box event records; visits grouped under a parent
                 event are listed in its "subContent" array.

    Returns:
        Mapping of pet ID to {"timestamp", "weight", "duration"} of the
        pet's most recent visit.
    """
    latest: dict[int, dict[str, Any]] = {}
    for record in _flatten_records(records):
        pet_id = _to_int(record.get("petId"))
        timestamp = _to_int(record.get("timestamp"))
        if pet_id is None or timestamp is None:
            continue
        if pet_id in latest and latest[pet_id]["timestamp"] >= timestamp:
            continue

        content = record.get("content") or {}
        time_in = _to_int(content.get("timeIn"))
        time_out = _to_int(content.get("timeOut"))
        latest[pet_id] = {
            "timestamp": timestamp,
            "weight": _to_int(content.get("petWeight")),
            "duration": time_out - time_in if time_in is not None and time_out is not None else None,
        }
    return latest


def latest_manual_feed_id(records: Any) -> Any:
    """Get the ID of the latest manual feed in a day of feeder records.

    Feeder records are day entries whose feed events are listed under
    "items" (or "feed" on dual-hopper models); manual feeds have src 4.
    """
    feed_id = None
    for day in records if isinstance(records, list) else []:
        if not isinstance(day, dict):
            continue
        for item in day.get("items") or day.get("feed") or []:
            if isinstance(item, dict) and item.get("src") == 4 and item.get("id") is not None:
                feed_id = item["id"]
    return feed_id
