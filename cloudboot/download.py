# This file is part of cloudboot. See LICENSE file for license information.

"""Single-shot byte download with classified "nothing there" signals."""

import logging
from http.client import NOT_FOUND, OK
from typing import Callable, Optional

from cloudboot import url_helper
from cloudboot.context import Context

LOG = logging.getLogger(__name__)

ErrorFactory = Optional[Callable[[str], Exception]]


def download(
    ctx: Context,
    url: str,
    *,
    timeout=None,
    headers=None,
    session=None,
    not_found_error: ErrorFactory = None,
    empty_response_error: ErrorFactory = None,
) -> bytes:
    """Fetch url once and return the response body.

    @param not_found_error: raised (called with a message) instead of a
        StatusError when the server answers 404.
    @param empty_response_error: raised (called with a message) when the
        server answers 200 with an empty body. Without it an empty body is
        returned as is.

    @raises: url_helper.TransportError, url_helper.StatusError,
        CancellationError or one of the supplied errors.
    """
    response = url_helper.readurl(
        url,
        ctx=ctx,
        timeout=timeout,
        headers=headers,
        session=session,
        check_status=False,
    )
    if response.code == NOT_FOUND and not_found_error is not None:
        raise not_found_error("no data found at %s" % url)
    if response.code != OK:
        raise url_helper.status_error(response, url, "download")
    if not response.contents and empty_response_error is not None:
        raise empty_response_error("empty response from %s" % url)
    LOG.debug("Downloaded %d bytes from %s", len(response.contents), url)
    return response.contents
