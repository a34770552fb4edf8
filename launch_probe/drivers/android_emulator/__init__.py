"""Android emulator driver module."""

from launch_probe.drivers.android_emulator.config import AndroidEmulatorConfig
from launch_probe.drivers.android_emulator.driver import AndroidEmulatorDriver
from launch_probe.drivers.android_emulator.manifest import android_emulator_manifest

__all__ = [
    "AndroidEmulatorConfig",
    "AndroidEmulatorDriver",
    "android_emulator_manifest",
]
