# This file is part of cloudboot. See LICENSE file for license information.

import logging
from http.client import OK
from typing import NamedTuple, Tuple

import requests

from cloudboot import url_helper, util
from cloudboot.context import Context

LOG = logging.getLogger(__name__)

METADATA_ENDPOINT = "http://100.100.100.200/latest/meta-data"
USER_DATA_ENDPOINT = "http://100.100.100.200/latest/user-data"

# Client side bound on each metadata request, in seconds
DEFAULT_TIMEOUT = 10

# (metadata key, MetadataConfig field) in the order they are requested.
# https://www.alibabacloud.com/help/doc-detail/49122.htm
METADATA_KEYS = (
    ("hostname", "hostname"),
    ("instance/instance-type", "instance_type"),
    ("instance-id", "instance_id"),
    ("public-ipv4", "public_ipv4"),
    ("region-id", "region"),
    ("zone-id", "zone"),
    ("ntp-conf/ntp-servers", "ntp_servers"),
    ("dns-conf/nameservers", "nameservers"),
)

# Keys whose body is a newline separated list
MULTI_VALUED_FIELDS = ("ntp_servers", "nameservers")


class MetadataConfig(NamedTuple):
    hostname: str = ""
    instance_id: str = ""
    instance_type: str = ""
    public_ipv4: str = ""
    region: str = ""
    zone: str = ""
    ntp_servers: Tuple[str, ...] = ()
    nameservers: Tuple[str, ...] = ()


def get_metadata(
    ctx: Context,
    metadata_url: str = METADATA_ENDPOINT,
    timeout: float = DEFAULT_TIMEOUT,
) -> MetadataConfig:
    """Read the instance metadata, one request per key.

    The first failing key aborts the whole read; the keys after it are
    never requested.

    @raises: url_helper.StatusError on any status other than 200,
        url_helper.TransportError when a request fails,
        CancellationError when ctx is cancelled.
    """
    fields = {}
    with requests.Session() as session:
        for key, field in METADATA_KEYS:
            url = url_helper.combine_url(metadata_url, key)
            response = url_helper.readurl(
                url,
                ctx=ctx,
                timeout=timeout,
                session=session,
                check_status=False,
            )
            if response.code != OK:
                raise url_helper.status_error(
                    response, url, "metadata service"
                )
            value = util.decode_binary(response.contents, errors="replace")
            if field in MULTI_VALUED_FIELDS:
                fields[field] = tuple(value.split("\n"))
            else:
                fields[field] = value
    LOG.debug("Read %d metadata keys from %s", len(fields), metadata_url)
    return MetadataConfig(**fields)
