"""Configuration for the browser driver."""

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, Field


class BrowserConfig(BaseModel):
    """Configuration for the browser driver."""

    url: str
    # Command starting the application server; empty when it is already served
    server_command: Sequence[str] = ()
    health_url: str | None = None
    browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    viewport_width: int = Field(default=390, gt=0)
    viewport_height: int = Field(default=844, gt=0)
    full_page: bool = False
    # Milliseconds, as Playwright expects
    navigation_timeout: float = Field(default=30_000, gt=0)
    server_stop_timeout: float = Field(default=10, gt=0)
