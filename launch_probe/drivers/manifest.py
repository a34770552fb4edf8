"""What a driver package registers under the launch_probe.drivers group."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from launch_probe.drivers.base import ApplicationDriver


@dataclass(frozen=True, kw_only=True)
class DriverManifest[ConfigT: BaseModel, HandleT]:
    """Entry point object of a driver package.

    config_cls validates the --driver-config JSON. driver_factory opens the
    driver for a validated config and holds whatever the driver shares
    across runs, such as a browser process, until the last run is reported.
    """

    config_cls: type[ConfigT]
    driver_factory: Callable[
        [ConfigT], AbstractAsyncContextManager[ApplicationDriver[HandleT]]
    ]
