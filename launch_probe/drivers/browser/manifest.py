"""Browser driver manifest."""

from launch_probe.drivers.browser.config import BrowserConfig
from launch_probe.drivers.browser.driver import BrowserDriver
from launch_probe.drivers.manifest import DriverManifest

browser_manifest = DriverManifest(
    config_cls=BrowserConfig,
    driver_factory=BrowserDriver.from_config,
)
