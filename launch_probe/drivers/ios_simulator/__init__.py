"""iOS Simulator driver module."""

from launch_probe.drivers.ios_simulator.config import IOSSimulatorConfig
from launch_probe.drivers.ios_simulator.driver import IOSSimulatorDriver
from launch_probe.drivers.ios_simulator.manifest import ios_simulator_manifest

__all__ = ["IOSSimulatorConfig", "IOSSimulatorDriver", "ios_simulator_manifest"]
