# This file is part of cloudboot. See LICENSE file for license information.

import ipaddress
import logging
import time
from typing import Callable, Optional, Union

from cloudboot import util
from cloudboot.context import Context
from cloudboot.exceptions import CloudbootError

LOG = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

ROUTE_FILE = "/proc/net/route"
IPV6_ROUTE_FILE = "/proc/net/ipv6_route"
# RTF_UP from linux/route.h
RTF_UP = 0x0001


class NetworkNotReadyError(CloudbootError):
    pass


def maybe_get_address(convert_to_address: Callable, address: str, **kwargs):
    """Use a function to return an address. If conversion throws a ValueError
    exception return False.

    :param check_cb:
        Test function, must return a truthy value
    :param address:
        The string to test.

    :return:
        Address or False

    """
    try:
        return convert_to_address(address, **kwargs)
    except ValueError:
        return False


def is_ip_address(address: str) -> bool:
    """Returns a bool indicating if ``s`` is an IP address.

    :param address:
        The string to test.

    :return:
        A bool indicating if the string is an IP address or not.
    """
    return bool(maybe_get_address(ipaddress.ip_address, address))


def parse_ip_address(address: str) -> Optional[IPAddress]:
    """Return the ipaddress object for address, or None if it is not one."""
    try:
        return ipaddress.ip_address(address)
    except ValueError:
        return None


def _has_default_ipv4_route(route_file: str) -> bool:
    try:
        lines = util.load_text_file(route_file).splitlines()
    except OSError:
        return False
    for line in lines[1:]:
        items = line.split()
        if len(items) < 4 or items[0] == "lo":
            continue
        if items[1] == "00000000" and int(items[3], 16) & RTF_UP:
            LOG.debug("Found default IPv4 route via %s", items[0])
            return True
    return False


def _has_default_ipv6_route(route_file: str) -> bool:
    try:
        lines = util.load_text_file(route_file).splitlines()
    except OSError:
        return False
    for line in lines:
        items = line.split()
        if len(items) < 10 or items[9] == "lo":
            continue
        if items[0] == "0" * 32 and items[1] == "00":
            if int(items[8], 16) & RTF_UP:
                LOG.debug("Found default IPv6 route via %s", items[9])
                return True
    return False


def has_default_route(
    route_file: str = ROUTE_FILE, ipv6_route_file: str = IPV6_ROUTE_FILE
) -> bool:
    """Return True if a non-loopback default route is up."""
    return _has_default_ipv4_route(route_file) or _has_default_ipv6_route(
        ipv6_route_file
    )


def wait_for_network(
    ctx: Context,
    *,
    timeout: Optional[float] = None,
    interval: float = 1.0,
    check: Callable[[], bool] = has_default_route,
):
    """Block until check() reports basic connectivity.

    @param timeout: give up after this many seconds; None waits until ctx
        is cancelled.
    @raises: CancellationError if ctx is cancelled while waiting,
        NetworkNotReadyError once timeout expires.
    """
    start_time = time.monotonic()
    loop_n = 0
    while True:
        ctx.raise_if_cancelled()
        if check():
            LOG.debug(
                "Network ready after %.3f seconds",
                time.monotonic() - start_time,
            )
            return
        sleep_time = interval
        if timeout is not None:
            remaining = start_time + timeout - time.monotonic()
            if remaining <= 0:
                raise NetworkNotReadyError(
                    "network not ready after %s seconds" % timeout
                )
            sleep_time = min(interval, remaining)
        if loop_n % 10 == 0:
            LOG.debug("Waiting for network to become ready")
        loop_n += 1
        ctx.wait(sleep_time)
