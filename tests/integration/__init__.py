"""Integration tests for pypetkit.

These tests log in to the real PetKit cloud with credentials from a .env file.
They are marked with @pytest.mark.integration and skipped by default.

To run integration tests:
    pytest tests/integration -v -m integration

Environment variables read from .env:
    PETKIT_USERNAME: Account email or phone number
    PETKIT_PASSWORD: Account password
    PETKIT_REGION: Account region (optional, defaults to DE)
    PETKIT_TIMEZONE: IANA timezone name (optional, defaults to Europe/Berlin)
    PETKIT_TEST_DEVICE_ID: Device to read (optional, defaults to the first device)
"""
