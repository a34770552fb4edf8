"""Lookup of installed application drivers by key."""

from importlib.metadata import entry_points
from typing import Any

from launch_probe.drivers.manifest import DriverManifest

ENTRY_POINT_GROUP = "launch_probe.drivers"


class DriverNotFoundError(Exception):
    """Raised when no installed driver matches the requested key."""


def load_driver_manifest(key: str) -> DriverManifest[Any, Any]:
    """Import the manifest of the driver registered as key.

    Only the requested driver package is imported.

    Args:
        key: Name of the driver, such as "ios-simulator", "android-emulator"
             or "browser"

    Returns:
        The driver's manifest

    Raises:
        DriverNotFoundError: If no installed package registers the key

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)
    matches = entries.select(name=key)
    if not matches:
        installed = sorted(entries.names)
        raise DriverNotFoundError(
            f"Driver '{key}' not found. Available drivers: {installed}"
        )

    manifest: DriverManifest[Any, Any] = next(iter(matches)).load()
    return manifest
