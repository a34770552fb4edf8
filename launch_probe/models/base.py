"""Shared base for models read from launch definitions."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model that rejects keys it does not declare.

    Unknown keys in launch.yaml are almost always typos, such as
    ``appearence``, and would otherwise be silently ignored.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")
