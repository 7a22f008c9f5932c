"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from pypetkit.const import DEFAULT_REGION, DEFAULT_TIMEZONE


# Load .env file from project root
env_path = Path(__file__).parents[2] / ".env"
load_dotenv(env_path)


@pytest.fixture(scope="session")
def integration_config() -> dict[str, str]:
    """Load integration test configuration from environment.

    Returns:
        Dictionary with account credentials, region and timezone.
    """
    username = os.getenv("PETKIT_USERNAME")
    password = os.getenv("PETKIT_PASSWORD")

    if not username or not password:
        pytest.skip("PETKIT_USERNAME and PETKIT_PASSWORD are not set")

    return {
        "username": username,
        "password": password,
        "region": os.getenv("PETKIT_REGION", DEFAULT_REGION),
        "timezone": os.getenv("PETKIT_TIMEZONE", DEFAULT_TIMEZONE),
    }


@pytest.fixture(scope="session")
def test_device_id() -> int | None:
    """Get the device ID to read from the environment, if set."""
    device_id = os.getenv("PETKIT_TEST_DEVICE_ID")
    return int(device_id) if device_id else None


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for integration tests."""
    config.addinivalue_line("markers", "integration: Integration tests requiring real API access")
