"""Browser driver module."""

from launch_probe.drivers.browser.config import BrowserConfig
from launch_probe.drivers.browser.driver import BrowserDriver
from launch_probe.drivers.browser.manifest import browser_manifest

__all__ = ["BrowserConfig", "BrowserDriver", "browser_manifest"]
