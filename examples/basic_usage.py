"""Basic usage example for pypetkit library."""

import asyncio

from pypetkit import PetKitClient
from pypetkit.models import Feeder, Litter, Pet, WaterFountain


async def main() -> None:
    """Demonstrate basic usage of pypetkit."""
    # Region and timezone select the regional API gateway
    async with PetKitClient(
        username="your@email.com",
        password="your_password",
        region="DE",
        timezone="Europe/Berlin",
    ) as client:
        session = await client.login()
        print(f"Logged in as user {session.user_id}")

        devices = await client.get_devices()
        print(f"Found {len(devices)} device(s)")

        for device in devices:
            print(f"\n{device.type}: {device.name}")
            print(f"  ID: {device.device_id}")
            print(f"  Type: {device.device_type}")

            if isinstance(device, Litter):
                status = await client.get_litter_status(device.device_id)
                print(f"  Litter level: {status.litter_level}%")
                print(f"  Waste level: {status.waste_level}")

                print("Starting a cleaning cycle...")
                await client.start_cleaning(device.device_id)

            elif isinstance(device, Feeder):
                status = await client.get_feeder_status(device.device_id)
                print(f"  Food level: {status.food_level}")

                print("Dispensing one portion...")
                await client.feed_manual(device.device_id, amount=1)

            elif isinstance(device, WaterFountain):
                status = await client.get_fountain_status(device.device_id)
                print(f"  Filter life: {status.filter_life}%")
                print(f"  Pump running: {status.pump_running}")

            elif isinstance(device, Pet):
                print(f"  Last litter box visit: {device.last_litter_usage}")
                print(f"  Last measured weight: {device.last_measured_weight} g")


if __name__ == "__main__":
    asyncio.run(main())
