"""Configuration for the iOS Simulator driver."""

from pydantic import BaseModel, Field


class IOSSimulatorConfig(BaseModel):
    """Configuration for the iOS Simulator driver."""

    bundle_id: str
    device: str = "booted"
    xcrun: str = "xcrun"
    # Consecutive polls the launched process must be seen before it is ready
    settle_polls: int = Field(default=2, ge=1)
    command_timeout: float = Field(default=60, gt=0)
