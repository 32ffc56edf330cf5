# This file is part of cloudboot. See LICENSE file for license information.

import abc
import functools
import importlib
import logging
from enum import Enum
from typing import Callable, List, Optional, Type

from cloudboot import cmdline, net, settings, util
from cloudboot.channel import Channel
from cloudboot.context import Context
from cloudboot.exceptions import CloudbootError

LOG = logging.getLogger(__name__)

# Platform name -> "module.ClassName" of its implementation
PLATFORMS = {
    "alibabacloud": "cloudboot.platforms.alibabacloud.AlibabaCloud",
}

NetworkWait = Callable[[Context], None]


class Mode(Enum):
    CLOUD = "cloud"
    METAL = "metal"
    CONTAINER = "container"

    def __str__(self):
        return self.value


class NoConfigSourceError(CloudbootError):
    """The platform has no machine configuration to offer."""


class PlatformNotFoundError(CloudbootError):
    pass


class Platform(metaclass=abc.ABCMeta):
    """Capabilities every cloud platform provides to the boot sequence."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Return the registry name of the platform."""

    @abc.abstractmethod
    def mode(self) -> Mode:
        """Return the boot mode the platform runs in."""

    @abc.abstractmethod
    def configuration(self, ctx: Context) -> bytes:
        """Return the raw machine configuration document.

        @raises: NoConfigSourceError when the platform has none.
        """

    @abc.abstractmethod
    def kernel_args(self, arch: str = "") -> List[cmdline.KernelParameter]:
        """Return the kernel parameters the platform needs."""

    @abc.abstractmethod
    def network_configuration(self, ctx: Context, channel: Channel):
        """Publish the platform network configuration on channel once."""


def fetch(name: str) -> Type[Platform]:
    """Return the Platform class registered under name."""
    try:
        location = PLATFORMS[name]
    except KeyError:
        raise PlatformNotFoundError(
            "No platform found for %r (known: %s)"
            % (name, ", ".join(sorted(PLATFORMS)))
        ) from None
    mod_name, _, cls_name = location.rpartition(".")
    mod = importlib.import_module(mod_name)
    return getattr(mod, cls_name)


def network_wait_from_config(sys_cfg: dict) -> NetworkWait:
    wait_cfg = util.get_cfg_by_path(sys_cfg, ("network_wait",), {}) or {}
    return functools.partial(
        net.wait_for_network,
        timeout=util.get_cfg_option_float(wait_cfg, "timeout", None),
        interval=util.get_cfg_option_float(wait_cfg, "interval", 1.0),
    )


def get_platform(name: str, sys_cfg: Optional[dict] = None) -> Platform:
    """Instantiate the platform name configured from sys_cfg."""
    if sys_cfg is None:
        sys_cfg = {}
    cls = fetch(name)
    platform_cfg = util.get_cfg_by_path(sys_cfg, ("platforms", name), {})
    LOG.debug("Using platform %s with config %s", name, platform_cfg)
    return cls(platform_cfg, network_wait=network_wait_from_config(sys_cfg))


def platform_from_cmdline(cmdline_str: Optional[str] = None) -> Optional[str]:
    if cmdline_str is None:
        cmdline_str = util.get_cmdline()
    return cmdline.get_value(cmdline_str, settings.CMDLINE_PLATFORM_KEY)


def current_platform_name(sys_cfg: dict) -> str:
    """Return the platform named by config, falling back to the cmdline."""
    name = sys_cfg.get("platform") or platform_from_cmdline()
    if not name:
        raise PlatformNotFoundError(
            "No platform configured and no %s= kernel argument found"
            % settings.CMDLINE_PLATFORM_KEY
        )
    return name
