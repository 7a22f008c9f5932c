"""Device registry for the PetKit API.

The registry keeps one entity per device and pet of the account, keyed by
numeric ID. A population pass rebuilds it from the API in stages: account
snapshot, per-type device details, auxiliary data (records, media and live
feeds) and finally per-pet litter statistics.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from pypetkit.actions import current_day
from pypetkit.const import (
    DEVICES_FEEDER,
    DEVICES_LITTER_BOX,
    DEVICES_WATER_FOUNTAIN,
    DEVICES_WITH_CAMERA,
    LITTER_NO_CAMERA,
    LITTER_WITH_CAMERA,
)
from pypetkit.exceptions import DeviceNotFoundError, PetKitError
from pypetkit.models import DeviceEntity, Feeder, Litter, Pet
from pypetkit.parsers import (
    classify_device_type,
    latest_manual_feed_id,
    latest_pet_visits,
    parse_account_snapshot,
    parse_device_entity,
    parse_pet_entity,
    placeholder_entity,
    project_feeder_status,
    project_fountain_status,
    project_litter_status,
    project_purifier_status,
    unwrap_list,
)


if TYPE_CHECKING:
    from collections.abc import Awaitable, Coroutine

    from pypetkit.api import PetKitAPI
    from pypetkit.models import (
        AccountSnapshot,
        DeviceStub,
        FeederStatus,
        FountainStatus,
        LitterStatus,
        PurifierStatus,
    )

_LOGGER = logging.getLogger(__name__)


class DeviceRegistry:
    """Registry of device and pet entities of a PetKit account.

    Concurrent populate() calls share a single in-flight population task, so
    the API is walked at most once at a time. Entities whose IDs disappear
    from the account snapshot are dropped at the start of each pass.

    Example:
        ```python
        registry = DeviceRegistry(api)
        await registry.populate()

        for device in registry.get_devices():
            print(device.name, device.type)
        ```
    """

    def __init__(self, api: PetKitAPI) -> None:
        """Initialize the registry.

        Args:
            api: PetKitAPI used to fetch account and device data.
        """
        self._api = api
        self._entities: dict[int, DeviceEntity] = {}
        self._snapshot: AccountSnapshot | None = None
        self._populate_task: asyncio.Task[None] | None = None
        self._populate_refreshes = False
        self.populated = False

    @property
    def snapshot(self) -> AccountSnapshot | None:
        """Get the cached account snapshot."""
        return self._snapshot

    async def populate(self, *, refresh_account: bool = False) -> None:
        """Populate the registry from the API.

        Joins the population pass already in flight, if any. A refresh
        request joining a pass that keeps the cached snapshot runs one more
        pass once it finishes.

        Args:
            refresh_account: Re-fetch the account snapshot even if one is cached.

        Raises:
            APIError: If the account snapshot cannot be fetched.
            TransportError: If the account snapshot request fails.
        """
        task = self._populate_task
        if task is not None:
            _LOGGER.debug("Joining population already in progress")
            refreshes = self._populate_refreshes
            await asyncio.shield(task)
            if refreshes or not refresh_account:
                return
            # The joined pass kept the cached snapshot, run another one
            await self.populate(refresh_account=True)
            return

        task = asyncio.create_task(self._populate(refresh_account=refresh_account))
        task.add_done_callback(self._on_populate_done)
        self._populate_task = task
        self._populate_refreshes = refresh_account
        await asyncio.shield(task)

    def _on_populate_done(self, task: asyncio.Task[None]) -> None:
        if self._populate_task is task:
            self._populate_task = None

    async def _populate(self, *, refresh_account: bool) -> None:
        if self._snapshot is None or refresh_account:
            await self._load_account()

        snapshot = self._snapshot
        if snapshot is None:
            return

        self._prune(snapshot)
        await self._fetch_device_details(snapshot.devices)
        await self._fetch_auxiliary_data()
        self._populate_pet_stats()

        self.populated = True
        _LOGGER.info(
            "Registry populated: %d devices, %d pets",
            len(self.get_devices()),
            len(self.get_pets()),
        )

    # -------------------------------------------------------------------------
    # Population stages
    # -------------------------------------------------------------------------

    async def _load_account(self) -> None:
        snapshot = parse_account_snapshot(await self._api.get_family_list())
        self._snapshot = snapshot
        _LOGGER.debug(
            "Account snapshot: %d families, %d devices, %d pets",
            len(snapshot.families),
            len(snapshot.devices),
            len(snapshot.pets),
        )

        for pet_data in snapshot.pets:
            try:
                pet = parse_pet_entity(pet_data)
            except (KeyError, TypeError, ValueError):
                _LOGGER.warning("Skipping pet without a valid ID: %s", pet_data)
                continue
            self._entities[pet.device_id] = pet

        try:
            user = await self._api.get_user_details()
        except PetKitError as exc:
            _LOGGER.warning("Failed to fetch pet profiles: %s", exc)
            return

        profiles = {str(dog.get("id")): dog for dog in user.get("dogs") or [] if isinstance(dog, dict)}
        for pet in self.get_pets():
            pet.details = profiles.get(str(pet.device_id), pet.details)

    def _prune(self, snapshot: AccountSnapshot) -> None:
        known_ids = {stub.device_id for stub in snapshot.devices} | {
            int(pet["petId"]) for pet in snapshot.pets if str(pet.get("petId", "")).isdigit()
        }
        for entity_id in list(self._entities):
            if entity_id not in known_ids:
                _LOGGER.debug("Dropping entity %s no longer in the account", entity_id)
                del self._entities[entity_id]

    async def _fetch_device_details(self, stubs: list[DeviceStub]) -> None:
        by_type: dict[str, list[DeviceStub]] = defaultdict(list)
        for stub in stubs:
            by_type[classify_device_type(stub)].append(stub)

        for device_type, group in by_type.items():
            for stub in group:
                if stub.device_id not in self._entities:
                    self._entities[stub.device_id] = placeholder_entity(device_type, stub.device_id)

            try:
                records = await self._api.get_own_devices(device_type)
            except PetKitError as exc:
                _LOGGER.warning("Failed to fetch details for device type %s: %s", device_type, exc)
                continue

            by_id: dict[int, dict[str, Any]] = {}
            for record in records:
                try:
                    by_id[int(record["id"])] = record
                except (KeyError, TypeError, ValueError):
                    continue

            for stub in group:
                record = by_id.get(stub.device_id)
                if record is None:
                    _LOGGER.debug("No %s details for device %s", device_type, stub.device_id)
                    continue
                self._entities[stub.device_id] = parse_device_entity(device_type, record)

    async def _fetch_auxiliary_data(self) -> None:
        day = current_day()
        records: list[Coroutine[Any, Any, None]] = []
        media: list[Coroutine[Any, Any, None]] = []
        live: list[Coroutine[Any, Any, None]] = []

        for entity in self.get_devices():
            if isinstance(entity, Pet) or entity.info is None:
                continue
            code = entity.info.device_type
            device_id = entity.info.device_id

            if code in DEVICES_FEEDER + DEVICES_LITTER_BOX + DEVICES_WATER_FOUNTAIN:
                records.append(
                    self._fetch_into(entity, "records", self._api.get_device_record(code, device_id, day))
                )
            if code in LITTER_NO_CAMERA:
                records.append(
                    self._fetch_into(entity, "statistics", self._api.get_statistic(code, device_id, day))
                )
            if code in LITTER_WITH_CAMERA:
                records.append(
                    self._fetch_into(entity, "pet_out_graph", self._api.get_pet_out_graph(code, device_id, day))
                )
            if code in DEVICES_WITH_CAMERA:
                media.append(self._fetch_into(entity, "media", self._api.get_cloud_video(code, device_id)))
                live.append(self._fetch_into(entity, "live_feed", self._api.start_live(code, device_id)))

        # Phases run in sequence; fetches within a phase run concurrently
        for phase in (records, media, live):
            if phase:
                await asyncio.gather(*phase)

        for entity in self._entities.values():
            if isinstance(entity, Feeder):
                entity.manual_feed_id = latest_manual_feed_id(entity.records)

    @staticmethod
    async def _fetch_into(entity: DeviceEntity, attribute: str, fetch: Awaitable[Any]) -> None:
        try:
            result = await fetch
        except PetKitError as exc:
            _LOGGER.warning("Failed to fetch %s for device %s: %s", attribute, entity.device_id, exc)
            return
        setattr(entity, attribute, unwrap_list(result))

    def _populate_pet_stats(self) -> None:
        pets = {pet.device_id: pet for pet in self.get_pets()}
        if not pets:
            return

        for entity in self._entities.values():
            if not isinstance(entity, Litter):
                continue
            for pet_id, visit in latest_pet_visits(entity.records).items():
                pet = pets.get(pet_id)
                if pet is None:
                    continue
                if pet.last_litter_usage is not None and pet.last_litter_usage > visit["timestamp"]:
                    continue
                pet.last_litter_usage = visit["timestamp"]
                pet.last_device_used = entity.name
                pet.last_measured_weight = visit["weight"]
                pet.last_duration_usage = visit["duration"]

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def get_devices(self) -> list[DeviceEntity]:
        """Get every entity with a device info block, pets included."""
        return [entity for entity in self._entities.values() if entity.info is not None]

    def get_device(self, device_id: int) -> DeviceEntity:
        """Get an entity by ID.

        Raises:
            DeviceNotFoundError: If no entity has this ID.
        """
        entity = self._entities.get(device_id)
        if entity is None:
            msg = f"Device {device_id} not found"
            raise DeviceNotFoundError(msg, device_id=device_id)
        return entity

    def get_pets(self) -> list[Pet]:
        """Get every pet entity."""
        return [entity for entity in self._entities.values() if isinstance(entity, Pet)]

    def clear_account_data(self) -> None:
        """Drop the cached account snapshot so the next pass re-fetches it."""
        self._snapshot = None

    def get_litter_status(self, device_id: int) -> LitterStatus:
        """Get the normalised status of a litter box."""
        return project_litter_status(self.get_device(device_id))

    def get_feeder_status(self, device_id: int) -> FeederStatus:
        """Get the normalised status of a feeder."""
        return project_feeder_status(self.get_device(device_id))

    def get_fountain_status(self, device_id: int) -> FountainStatus:
        """Get the normalised status of a water fountain."""
        return project_fountain_status(self.get_device(device_id))

    def get_purifier_status(self, device_id: int) -> PurifierStatus:
        """Get the normalised status of an air purifier."""
        return project_purifier_status(self.get_device(device_id))
