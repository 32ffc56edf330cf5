# This file is part of cloudboot. See LICENSE file for license information.

import threading

import responses

METADATA_URL = "http://100.100.100.200/latest/meta-data"
USER_DATA_URL = "http://100.100.100.200/latest/user-data"

# Bodies as served by the metadata service, keyed by path
DEFAULT_METADATA = {
    "hostname": "aliyun-test-vm-00.example.com",
    "instance/instance-type": "ecs.g8i.large",
    "instance-id": "i-bp15ojxppkmsnyjxxxxx",
    "public-ipv4": "47.96.123.45",
    "region-id": "cn-hangzhou",
    "zone-id": "cn-hangzhou-i",
    "ntp-conf/ntp-servers": "ntp1.aliyun.com\nntp1.cloud.aliyuncs.com",
    "dns-conf/nameservers": "100.100.2.136\n100.100.2.138",
}


def metadata_url(key, base_url=METADATA_URL):
    return "%s/%s" % (base_url, key)


def register_metadata(metadata=None, status=None, base_url=METADATA_URL):
    """Register one responses GET per metadata key.

    @param status: optional dict of key -> HTTP status overriding 200.
    """
    if metadata is None:
        metadata = DEFAULT_METADATA
    status = status or {}
    for key, body in metadata.items():
        responses.add(
            responses.GET,
            metadata_url(key, base_url),
            body=body,
            status=status.get(key, 200),
        )


class BlockingCallback:
    """responses callback that holds the request until released."""

    def __init__(self, body="late", status=200):
        self.body = body
        self.status = status
        self.started = threading.Event()
        self.released = threading.Event()

    def __call__(self, request):
        self.started.set()
        self.released.wait(5)
        return (self.status, {}, self.body)

    def release(self):
        self.released.set()
