"""Example showing session injection for Home Assistant integration."""

import asyncio

from aiohttp import ClientSession

from pypetkit import PetKitClient, SessionManager


def save_session(manager: SessionManager) -> None:
    """Persist the session token after login or refresh."""
    if manager.session is not None:
        print(f"New session for user {manager.session.user_id}, valid {manager.session.expires_in}s")


async def main() -> None:
    """Demonstrate session injection pattern for HA integration."""
    # The application owns the aiohttp session
    async with ClientSession() as session:
        client = PetKitClient(
            username="your@email.com",
            password="your_password",
            region="US",
            timezone="America/New_York",
            session=session,
            on_session_updated=save_session,
        )

        async with client:
            devices = await client.get_devices()
            print(f"Found {len(devices)} device(s) using injected session")

            for device in devices:
                print(f"  - {device.name} ({device.device_id})")

        # Session remains open after client exits
        print("\nClient closed, but session still available for other requests")


if __name__ == "__main__":
    asyncio.run(main())
