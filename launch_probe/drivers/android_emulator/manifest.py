"""Android emulator driver manifest."""

from launch_probe.drivers.android_emulator.config import AndroidEmulatorConfig
from launch_probe.drivers.android_emulator.driver import AndroidEmulatorDriver
from launch_probe.drivers.manifest import DriverManifest

android_emulator_manifest = DriverManifest(
    config_cls=AndroidEmulatorConfig,
    driver_factory=AndroidEmulatorDriver.from_config,
)
