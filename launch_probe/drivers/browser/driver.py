"""Browser driver implementation built on Playwright."""

import asyncio
import logging
import os
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from launch_probe.drivers.base import ApplicationDriver
from launch_probe.drivers.browser.config import BrowserConfig
from launch_probe.errors import CaptureError, LaunchError
from launch_probe.models.definition import TargetConfiguration
from launch_probe.models.run import TestRun

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class BrowserHandle:
    """A browser page showing the application, plus its server process."""

    instance_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    context: BrowserContext
    page: Page
    server: asyncio.subprocess.Process | None = None
    navigated: bool = False


@dataclass(frozen=True, kw_only=True)
class BrowserDriver(ApplicationDriver[BrowserHandle]):
    """Drives a web application in a Playwright-controlled browser."""

    config: BrowserConfig
    browser: Browser = field(repr=False)
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: BrowserConfig
    ) -> AsyncGenerator["BrowserDriver", None]:
        """Create driver with managed browser and HTTP session lifecycle."""
        async with async_playwright() as playwright:
            browser_type = getattr(playwright, config.browser)
            browser = await browser_type.launch(headless=config.headless)
            try:
                async with aiohttp.ClientSession() as session:
                    yield cls(config=config, browser=browser, session=session)
            finally:
                await browser.close()

    def context_options(
        self, configuration: TargetConfiguration | None
    ) -> dict[str, Any]:
        """Browser context options for the target configuration."""
        options: dict[str, Any] = {
            "viewport": {
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
        }
        if configuration is not None:
            if configuration.appearance:
                options["color_scheme"] = configuration.appearance
            if configuration.locale:
                options["locale"] = configuration.locale.replace("_", "-")
        return options

    async def launch(self, run: TestRun) -> BrowserHandle:
        """Start the application server, if any, and open a fresh page."""
        configuration = run.configuration
        server = await self.start_server(configuration)

        try:
            context = await self.browser.new_context(
                **self.context_options(configuration)
            )
            page = await context.new_page()
        except PlaywrightError as e:
            if server is not None:
                await self.stop_server(server)
            raise LaunchError(f"Failed to open browser page: {e}") from e

        return BrowserHandle(context=context, page=page, server=server)

    async def poll_ready(self, handle: BrowserHandle) -> bool:
        """Ready once the server is healthy and the page reaches network idle.

        Raises:
            LaunchError: If the application server exits during startup

        """
        if handle.server is not None and handle.server.returncode is not None:
            raise LaunchError(
                "Application server exited with code "
                f"{handle.server.returncode} during startup"
            )

        if self.config.health_url and not await self.is_healthy(self.config.health_url):
            return False

        if not handle.navigated:
            try:
                await handle.page.goto(
                    self.config.url,
                    wait_until="networkidle",
                    timeout=self.config.navigation_timeout,
                )
            except PlaywrightError as e:
                log.info("Page %s not ready yet: %s", self.config.url, e)
                return False
            handle.navigated = True

        return True

    async def capture_surface(self, handle: BrowserHandle) -> bytes:
        """Take a PNG screenshot of the page."""
        if handle.page.is_closed():
            raise CaptureError("Browser page is closed")
        if handle.server is not None and handle.server.returncode is not None:
            raise CaptureError(
                f"Application server exited with code {handle.server.returncode}"
            )

        try:
            return await handle.page.screenshot(
                type="png", full_page=self.config.full_page
            )
        except PlaywrightError as e:
            raise CaptureError(f"Screenshot failed: {e}") from e

    async def terminate(self, handle: BrowserHandle) -> None:
        """Close the page's browser context and stop the server."""
        try:
            await handle.context.close()
        except PlaywrightError as e:
            log.warning("Failed to close browser context: %s", e)

        if handle.server is not None:
            await self.stop_server(handle.server)

    async def is_healthy(self, url: str) -> bool:
        """Check whether the health URL answers with a 2xx status."""
        try:
            async with self.session.get(url) as response:
                log.debug("Health check %s returned %d", url, response.status)
                return 200 <= response.status < 300
        except aiohttp.ClientError as e:
            log.debug("Health check %s failed: %s", url, e)
            return False

    async def start_server(
        self, configuration: TargetConfiguration | None
    ) -> asyncio.subprocess.Process | None:
        """Start the configured application server."""
        if not self.config.server_command:
            return None

        command = list(self.config.server_command)
        env = None
        if configuration is not None:
            command += configuration.launch_arguments
            if configuration.environment:
                env = {**os.environ, **configuration.environment}

        log.info("Starting application server: %s", " ".join(command))
        try:
            return await asyncio.create_subprocess_exec(
                *command,
                env=env,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise LaunchError(f"Cannot start application server: {e}") from e

    async def stop_server(self, server: asyncio.subprocess.Process) -> None:
        """Stop the server, killing it if it does not exit in time."""
        if server.returncode is not None:
            return
        try:
            server.terminate()
            await asyncio.wait_for(server.wait(), self.config.server_stop_timeout)
        except TimeoutError:
            log.warning("Application server did not stop, killing it")
            server.kill()
            await server.wait()
        except ProcessLookupError:
            log.debug("Application server already exited")
