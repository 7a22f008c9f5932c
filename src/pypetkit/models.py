"""Data models for PetKit API requests and responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar


__all__ = [
    "AccountSnapshot",
    "DeviceEntity",
    "DeviceFamily",
    "DeviceInfo",
    "DeviceStub",
    "Family",
    "Feeder",
    "FeederStatus",
    "FountainStatus",
    "Litter",
    "LitterStatus",
    "Pet",
    "Purifier",
    "PurifierStatus",
    "RegionServer",
    "Session",
    "UnknownDevice",
    "WaterFountain",
]


class DeviceFamily(Enum):
    """Device families exposed by the PetKit API."""

    FEEDER = "Feeder"
    LITTER = "Litter"
    WATER_FOUNTAIN = "WaterFountain"
    PURIFIER = "Purifier"
    PET = "Pet"
    UNKNOWN = "Unknown"


@dataclass
class Session:
    """Session returned by the login endpoint.

    Attributes:
        id: Session token sent in the F-Session/X-Session headers.
        user_id: ID of the account owning the session.
        expires_in: Declared session lifetime in seconds.
        region: Region identifier the session was issued for.
        created_at: Issuance timestamp (timezone-aware).
    """

    id: str
    user_id: str
    expires_in: int
    region: str | None
    created_at: datetime

    def age_seconds(self, now: datetime | None = None) -> float:
        """Get the number of seconds since the session was issued."""
        current = now or datetime.now(UTC)
        return (current - self.created_at).total_seconds()

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the session has outlived its declared lifetime."""
        return self.age_seconds(now) >= self.expires_in


@dataclass
class RegionServer:
    """Entry of the regional server directory.

    Attributes:
        id: Region code (e.g. "DE").
        name: Human-readable region name (e.g. "Germany").
        gateway: Base URL of the regional API gateway.
    """

    id: str
    name: str
    gateway: str


@dataclass
class DeviceStub:
    """Basic device record from the family list.

    Attributes:
        device_id: Numeric device identifier.
        device_name: User-assigned device name.
        device_type: Vendor device type as reported (may be empty).
        raw: Original stub payload.
    """

    device_id: int
    device_name: str
    device_type: str
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class Family:
    """Family grouping holding device and pet stubs."""

    family_id: int | None
    name: str
    devices: list[DeviceStub] = field(default_factory=list)
    pets: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class AccountSnapshot:
    """All family groupings of the account."""

    families: list[Family] = field(default_factory=list)

    @property
    def devices(self) -> list[DeviceStub]:
        """Get every device stub across all families."""
        return [stub for family in self.families for stub in family.devices]

    @property
    def pets(self) -> list[dict[str, Any]]:
        """Get every pet stub across all families."""
        return [pet for family in self.families for pet in family.pets]


@dataclass
class DeviceInfo:
    """Identity block of a device entity.

    Attributes:
        device_id: Numeric device identifier.
        device_type: Device type code (e.g. "t4", "d4s", "pet") used for
            endpoint paths and action validation.
        name: Human-readable device name.
        created_at: Creation timestamp as reported by the API.
        mac: MAC address.
        sn: Serial number.
        hardware: Hardware revision.
        firmware: Firmware version.
        timezone: Device timezone offset.
        locale: Device locale.
        type_code: Vendor numeric sub-type.
        family_id: Owning family ID.
        unique_id: Stable unique identifier (serial number).
    """

    device_id: int
    device_type: str
    name: str
    created_at: str | None = None
    mac: str | None = None
    sn: str | None = None
    hardware: int | str | None = None
    firmware: int | float | str | None = None
    timezone: float | str | None = None
    locale: str | None = None
    type_code: int | None = None
    family_id: int | None = None
    unique_id: str | None = None


@dataclass
class DeviceEntity:
    """Common base of every registry entity.

    Attributes:
        device_id: Registry key.
        info: Identity block, None until a detail fetch completes.
        state: Current state fields as reported by the vendor.
        settings: Device settings block.
        raw: Full vendor payload the entity was built from.
        records: Event records of the current day.
        statistics: Device statistics.
        pet_out_graph: Pet activity graph (camera litter boxes).
        live_feed: Live stream descriptor (camera models).
        media: Cloud video descriptors (camera models).
    """

    family: ClassVar[DeviceFamily] = DeviceFamily.UNKNOWN

    device_id: int
    info: DeviceInfo | None = None
    state: dict[str, Any] = field(default_factory=dict)
    settings: dict[str, Any] | None = None
    raw: dict[str, Any] | None = None
    records: Any = None
    statistics: Any = None
    pet_out_graph: Any = None
    live_feed: Any = None
    media: Any = None

    @property
    def type(self) -> str:
        """Get the family tag of this entity."""
        return self.family.value

    @property
    def device_type(self) -> str | None:
        """Get the device type code, if the info block is present."""
        return self.info.device_type if self.info else None

    @property
    def name(self) -> str | None:
        """Get the device name, if the info block is present."""
        return self.info.name if self.info else None


@dataclass
class Feeder(DeviceEntity):
    """Feeder entity.

    Attributes:
        manual_feed_id: ID of the latest manual feed, required to cancel it
            on dual-hopper and camera models.
    """

    family: ClassVar[DeviceFamily] = DeviceFamily.FEEDER

    manual_feed_id: int | str | None = None


@dataclass
class Litter(DeviceEntity):
    """Litter box entity.

    Attributes:
        k3_device: Attached spray deodorizer, if any.
    """

    family: ClassVar[DeviceFamily] = DeviceFamily.LITTER

    k3_device: dict[str, Any] | None = None


@dataclass
class WaterFountain(DeviceEntity):
    """Water fountain entity."""

    family: ClassVar[DeviceFamily] = DeviceFamily.WATER_FOUNTAIN


@dataclass
class Purifier(DeviceEntity):
    """Air purifier entity."""

    family: ClassVar[DeviceFamily] = DeviceFamily.PURIFIER


@dataclass
class UnknownDevice(DeviceEntity):
    """Entity of an unrecognised device family."""


@dataclass
class Pet(DeviceEntity):
    """Pet entity.

    Attributes:
        profile: Pet stub from the family list.
        details: Pet profile from the user details endpoint.
        last_litter_usage: Timestamp of the latest litter box visit.
        last_device_used: Name of the litter box visited last.
        last_measured_weight: Weight measured on the latest visit (grams).
        last_duration_usage: Duration of the latest visit in seconds.
    """

    family: ClassVar[DeviceFamily] = DeviceFamily.PET

    profile: dict[str, Any] = field(default_factory=dict)
    details: dict[str, Any] | None = None
    last_litter_usage: int | None = None
    last_device_used: str | None = None
    last_measured_weight: int | None = None
    last_duration_usage: int | None = None


@dataclass
class LitterStatus:
    """Normalised litter box status."""

    litter_level: int | float
    waste_level: int | float
    battery_level: int | float
    raw: DeviceEntity


@dataclass
class FeederStatus:
    """Normalised feeder status."""

    battery_level: int | float
    food_level: int | float
    raw: DeviceEntity


@dataclass
class FountainStatus:
    """Normalised water fountain status."""

    water_level: int | float
    filter_life: int | float
    pump_running: bool
    mode: str
    raw: DeviceEntity


@dataclass
class PurifierStatus:
    """Normalised air purifier status."""

    air_quality: int | float
    filter_life: int | float
    mode: int
    fan_speed: int
    raw: DeviceEntity
