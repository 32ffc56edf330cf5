# This file is part of cloudboot. See LICENSE file for license information.

"""Canonical network configuration produced by a platform.

Every record is an immutable NamedTuple. Entities that take part in merging
carry the ConfigLayer they originate from so the orchestrator can order
them against other configuration sources.
"""

from enum import IntEnum
from typing import NamedTuple, Optional, Tuple

from cloudboot.net import IPAddress

MAX_HOSTNAME_LENGTH = 63
MAX_DOMAINNAME_LENGTH = 253


class ParseError(ValueError):
    pass


class ConfigLayer(IntEnum):
    """Configuration sources, lowest precedence first."""

    DEFAULT = 0
    CMDLINE = 1
    PLATFORM = 2
    OPERATOR = 3
    CONFIGURATION = 4

    def __str__(self):
        return self.name.lower()


class TimeServerSpec(NamedTuple):
    ntp_servers: Tuple[str, ...]
    config_layer: ConfigLayer = ConfigLayer.PLATFORM

    def to_dict(self) -> dict:
        return {
            "ntp_servers": list(self.ntp_servers),
            "layer": str(self.config_layer),
        }


class HostnameSpec(NamedTuple):
    hostname: str
    domainname: str = ""
    config_layer: ConfigLayer = ConfigLayer.PLATFORM

    @classmethod
    def parse_fqdn(
        cls, fqdn: str, config_layer: ConfigLayer = ConfigLayer.PLATFORM
    ) -> "HostnameSpec":
        """Split fqdn at the first dot into hostname and domainname.

        @raises: ParseError when the hostname part is empty or too long,
            or the domainname is too long.
        """
        hostname, _, domainname = fqdn.partition(".")
        if not hostname:
            raise ParseError("hostname can't be empty: %r" % fqdn)
        if len(hostname) > MAX_HOSTNAME_LENGTH:
            raise ParseError(
                "hostname can't be longer than %d characters: %r"
                % (MAX_HOSTNAME_LENGTH, hostname)
            )
        if len(domainname) > MAX_DOMAINNAME_LENGTH:
            raise ParseError(
                "domainname can't be longer than %d characters: %r"
                % (MAX_DOMAINNAME_LENGTH, domainname)
            )
        return cls(hostname, domainname, config_layer)

    def fqdn(self) -> str:
        if not self.domainname:
            return self.hostname
        return "%s.%s" % (self.hostname, self.domainname)

    def to_dict(self) -> dict:
        return {
            "hostname": self.hostname,
            "domainname": self.domainname,
            "layer": str(self.config_layer),
        }


class ResolverSpec(NamedTuple):
    dns_servers: Tuple[IPAddress, ...]
    config_layer: ConfigLayer = ConfigLayer.PLATFORM

    def to_dict(self) -> dict:
        return {
            "dns_servers": [str(ip) for ip in self.dns_servers],
            "layer": str(self.config_layer),
        }


class PlatformMetadata(NamedTuple):
    platform: str
    hostname: str = ""
    region: str = ""
    zone: str = ""
    instance_type: str = ""
    instance_id: str = ""
    provider_id: str = ""

    def to_dict(self) -> dict:
        return self._asdict()


class PlatformNetworkConfig(NamedTuple):
    time_servers: Tuple[TimeServerSpec, ...] = ()
    hostnames: Tuple[HostnameSpec, ...] = ()
    resolvers: Tuple[ResolverSpec, ...] = ()
    external_ips: Tuple[IPAddress, ...] = ()
    metadata: Optional[PlatformMetadata] = None

    def to_dict(self) -> dict:
        return {
            "time_servers": [spec.to_dict() for spec in self.time_servers],
            "hostnames": [spec.to_dict() for spec in self.hostnames],
            "resolvers": [spec.to_dict() for spec in self.resolvers],
            "external_ips": [str(ip) for ip in self.external_ips],
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }
