"""Configuration for the Android emulator driver."""

from pydantic import BaseModel, Field


class AndroidEmulatorConfig(BaseModel):
    """Configuration for the Android emulator driver."""

    package: str
    activity: str
    serial: str | None = None
    adb: str = "adb"
    # Consecutive polls the app window must hold focus before it is ready
    settle_polls: int = Field(default=2, ge=1)
    command_timeout: float = Field(default=60, gt=0)

    @property
    def component(self) -> str:
        """Activity component name passed to 'am start'."""
        return f"{self.package}/{self.activity}"
