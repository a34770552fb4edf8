"""Fixtures for integration tests."""

from pathlib import Path

import pytest

from launch_probe.testing.adb import FakeAdb

PACKAGE = "com.example.signin"


@pytest.fixture
def package() -> str:
    """Package of the application under test."""
    return PACKAGE


@pytest.fixture
def fake_adb(tmp_path: Path, package: str) -> FakeAdb:
    """Install a fake adb executable."""
    return FakeAdb(tmp_path, package)
