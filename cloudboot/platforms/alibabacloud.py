# This file is part of cloudboot. See LICENSE file for license information.

"""Alibaba Cloud ECS platform."""

import logging
from typing import List, Optional

from cloudboot import download, net, platforms, util
from cloudboot.channel import Channel
from cloudboot.cmdline import (
    KERNEL_PARAM_CONSOLE,
    KERNEL_PARAM_NET_IFNAMES,
    KernelParameter,
)
from cloudboot.context import Context
from cloudboot.net.platform_config import (
    ConfigLayer,
    HostnameSpec,
    PlatformMetadata,
    PlatformNetworkConfig,
    ResolverSpec,
    TimeServerSpec,
)
from cloudboot.platforms.helpers import alibabacloud

LOG = logging.getLogger(__name__)


class AlibabaCloud(platforms.Platform):
    def __init__(
        self,
        platform_cfg: Optional[dict] = None,
        network_wait: Optional[platforms.NetworkWait] = None,
    ):
        cfg = platform_cfg or {}
        self.metadata_url = util.get_cfg_option_str(
            cfg, "metadata_url", alibabacloud.METADATA_ENDPOINT
        )
        self.user_data_url = util.get_cfg_option_str(
            cfg, "user_data_url", alibabacloud.USER_DATA_ENDPOINT
        )
        self.timeout = util.get_cfg_option_float(
            cfg, "timeout", alibabacloud.DEFAULT_TIMEOUT
        )
        if self.timeout is None:
            self.timeout = float(alibabacloud.DEFAULT_TIMEOUT)
        self._network_wait = network_wait or net.wait_for_network

    @property
    def name(self) -> str:
        return "alibabacloud"

    def mode(self) -> platforms.Mode:
        return platforms.Mode.CLOUD

    def configuration(self, ctx: Context) -> bytes:
        self._network_wait(ctx)

        LOG.info("fetching machine config from: %r", self.user_data_url)

        return download.download(
            ctx,
            self.user_data_url,
            timeout=self.timeout,
            not_found_error=platforms.NoConfigSourceError,
            empty_response_error=platforms.NoConfigSourceError,
        )

    def kernel_args(self, arch: str = "") -> List[KernelParameter]:
        return [
            KernelParameter(KERNEL_PARAM_CONSOLE, ["tty1", "ttyS0"]),
            KernelParameter(KERNEL_PARAM_NET_IFNAMES, ["0"]),
        ]

    def network_configuration(self, ctx: Context, channel: Channel):
        LOG.info("fetching alibabacloud instance config")

        metadata = alibabacloud.get_metadata(
            ctx, metadata_url=self.metadata_url, timeout=self.timeout
        )
        network_config = self.parse_metadata(metadata)

        channel.send(ctx, network_config)

    def parse_metadata(
        self, metadata: alibabacloud.MetadataConfig
    ) -> PlatformNetworkConfig:
        """Translate raw metadata into the canonical network config.

        Nameservers and the public address that do not parse as IP
        addresses are dropped. A hostname that is not a valid FQDN fails
        the whole translation.

        @raises: ParseError for an invalid hostname.
        """
        time_servers = (
            TimeServerSpec(
                ntp_servers=tuple(metadata.ntp_servers),
                config_layer=ConfigLayer.PLATFORM,
            ),
        )

        hostnames = ()
        if metadata.hostname:
            hostnames = (
                HostnameSpec.parse_fqdn(
                    metadata.hostname, config_layer=ConfigLayer.PLATFORM
                ),
            )

        resolvers = ()
        if metadata.nameservers:
            dns_ips = []
            for dns_ip in metadata.nameservers:
                ip = net.parse_ip_address(dns_ip)
                if ip is None:
                    LOG.debug("Ignoring invalid nameserver %r", dns_ip)
                    continue
                dns_ips.append(ip)
            resolvers = (
                ResolverSpec(
                    dns_servers=tuple(dns_ips),
                    config_layer=ConfigLayer.PLATFORM,
                ),
            )

        external_ips = ()
        if metadata.public_ipv4:
            ip = net.parse_ip_address(metadata.public_ipv4)
            if ip is None:
                LOG.debug(
                    "Ignoring invalid public address %r", metadata.public_ipv4
                )
            else:
                external_ips = (ip,)

        return PlatformNetworkConfig(
            time_servers=time_servers,
            hostnames=hostnames,
            resolvers=resolvers,
            external_ips=external_ips,
            metadata=PlatformMetadata(
                platform=self.name,
                hostname=metadata.hostname,
                region=metadata.region,
                zone=metadata.zone,
                instance_type=metadata.instance_type,
                instance_id=metadata.instance_id,
                provider_id="%s.%s" % (metadata.region, metadata.instance_id),
            ),
        )
