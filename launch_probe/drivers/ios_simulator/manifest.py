"""iOS Simulator driver manifest."""

from launch_probe.drivers.ios_simulator.config import IOSSimulatorConfig
from launch_probe.drivers.ios_simulator.driver import IOSSimulatorDriver
from launch_probe.drivers.manifest import DriverManifest

ios_simulator_manifest = DriverManifest(
    config_cls=IOSSimulatorConfig,
    driver_factory=IOSSimulatorDriver.from_config,
)
