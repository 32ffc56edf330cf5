# This file is part of cloudboot. See LICENSE file for license information.

import logging
from http.client import OK
from typing import Any, Mapping, Optional
from urllib.parse import quote, urlparse, urlunparse

import requests
from requests import exceptions

from cloudboot import version
from cloudboot.context import CancellationError, Context

LOG = logging.getLogger(__name__)


def _cleanurl(url):
    parsed_url = list(urlparse(url, scheme="http"))
    if not parsed_url[1] and parsed_url[2]:
        # Swap these since this seems to be a common
        # occurrence when given urls like 'www.google.com'
        parsed_url[1] = parsed_url[2]
        parsed_url[2] = ""
    return urlunparse(parsed_url)


def combine_url(base, *add_ons):
    def combine_single(url, add_on):
        url_parsed = list(urlparse(url))
        path = url_parsed[2]
        if path and not path.endswith("/"):
            path += "/"
        path += quote(str(add_on), safe="/:")
        url_parsed[2] = path
        return urlunparse(url_parsed)

    url = base
    for add_on in add_ons:
        url = combine_single(url, add_on)
    return url


class UrlResponse:
    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def contents(self) -> bytes:
        if self._response.content is None:
            return b""
        return self._response.content

    @property
    def url(self) -> str:
        return self._response.url

    def ok(self, redirects_ok=False) -> bool:
        upper = 300
        if redirects_ok:
            upper = 400
        if 200 <= self.code < upper:
            return True
        else:
            return False

    @property
    def headers(self):
        return self._response.headers

    @property
    def code(self) -> int:
        return self._response.status_code

    def __str__(self):
        return self._response.text


class UrlError(IOError):
    def __init__(
        self,
        cause: Any,  # This SHOULD be an exception to wrap, but can be anything
        code: Optional[int] = None,
        headers: Optional[Mapping] = None,
        url: Optional[str] = None,
    ):
        IOError.__init__(self, str(cause))
        self.cause = cause
        self.code = code
        self.headers: Mapping = {} if headers is None else headers
        self.url = url


class TransportError(UrlError):
    """The request could not be built, sent or answered."""


class StatusError(UrlError):
    """The server answered with an unexpected status code."""


def status_error(response: UrlResponse, url: str, what: str) -> StatusError:
    return StatusError(
        "%s returned status code %d" % (what, response.code),
        code=response.code,
        headers=response.headers,
        url=url,
    )


def _send(
    session: requests.Session,
    req_args: dict,
    ctx: Optional[Context],
    deadline: Optional[float],
) -> requests.Response:
    """Send one request, bounding the whole exchange by deadline seconds.

    requests only bounds the connect and each socket read, so a body that
    trickles in is cut off by a child context expiring at the deadline.
    """
    if deadline is None:
        if ctx is None:
            return session.request(**req_args)
        return ctx.run(session.request, on_cancel=session.close, **req_args)
    url = req_args["url"]
    with Context.with_timeout(deadline, parent=ctx) as req_ctx:
        try:
            return req_ctx.run(
                session.request, on_cancel=session.close, **req_args
            )
        except CancellationError:
            if ctx is not None and ctx.cancelled():
                raise
            raise TransportError(
                "request to %s timed out after %ss" % (url, deadline),
                url=url,
            ) from None


def readurl(
    url,
    *,
    ctx: Optional[Context] = None,
    timeout=None,
    headers=None,
    session=None,
    check_status=True,
    allow_redirects=True,
    request_method="GET",
) -> UrlResponse:
    """Wrapper around requests.Session to read the url once.

    :param url: Mandatory url to request.
    :param ctx: Optional execution context. When given the request runs on a
        worker thread and cancelling ctx aborts it: the session is closed
        and CancellationError is raised in the caller.
    :param timeout: Timeout in seconds bounding the whole request, body
        included. May be a tuple of (connection timeout, read timeout),
        which requests applies per socket operation only.
    :param headers: Optional dict of headers to send during request
    :param session: Optional existing requests.Session instance to reuse.
        A session created here is closed before returning.
    :param check_status: Optional boolean set True to raise StatusError for
        any status other than 200. Default: True.
    :param allow_redirects: Optional boolean passed straight to
        Session.request as 'allow_redirects'. Default: True.
    :param request_method: String passed as 'method' to Session.request.

    :raises: TransportError when the request fails, StatusError when
        check_status is set and the status is not 200.
    """
    url = _cleanurl(url)
    req_args = {
        "url": url,
        "method": request_method,
        "allow_redirects": allow_redirects,
    }
    deadline = None
    if timeout is not None:
        if isinstance(timeout, tuple):
            req_args["timeout"] = timeout
        else:
            deadline = max(float(timeout), 0)
            if deadline > 0:
                req_args["timeout"] = deadline

    headers = dict(headers) if headers else {}
    if "User-Agent" not in headers:
        headers["User-Agent"] = "cloudboot/%s" % version.version_string()
    req_args["headers"] = headers

    owns_session = session is None
    if owns_session:
        session = requests.Session()

    try:
        LOG.debug("Opening '%s' with %s configuration", url, req_args)
        try:
            response = _send(session, req_args, ctx, deadline)
        except exceptions.RequestException as e:
            raise TransportError(e, url=url) from e
        result = UrlResponse(response)
        LOG.debug(
            "Read from %s (%s, %sb)",
            url,
            result.code,
            len(result.contents),
        )
        if check_status and result.code != OK:
            raise status_error(result, url, url)
        return result
    finally:
        if owns_session:
            session.close()
