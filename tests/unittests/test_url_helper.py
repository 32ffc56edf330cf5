# This file is part of cloudboot. See LICENSE file for license information.

import logging
from unittest import mock

import pytest
import requests
import responses

from cloudboot import url_helper, version
from cloudboot.context import DEADLINE_EXCEEDED, CancellationError, Context
from cloudboot.url_helper import (
    StatusError,
    TransportError,
    UrlError,
    combine_url,
    readurl,
)
from tests.unittests.helpers import BlockingCallback

M_PATH = "cloudboot.url_helper."


class TestCombineUrl:
    def test_combine_url_variety(self):
        assert "http://hostname/path/" == combine_url(
            "http://hostname", "path/"
        )
        assert "http://hostname/a/b" == combine_url("http://hostname/a", "b")
        assert "http://hostname/a/b/c" == combine_url(
            "http://hostname/a/", "b", "c"
        )
        base = "http://100.100.100.200/latest/meta-data"
        assert base + "/instance/id" == combine_url(base, "instance/id")

    def test_cleanurl_adds_scheme(self):
        assert "http://www.example.com" == url_helper._cleanurl(
            "www.example.com"
        )


class TestReadUrl:
    url = "http://hostname/path"

    @responses.activate
    def test_read_returns_response(self, caplog):
        caplog.set_level(logging.DEBUG)
        responses.add(responses.GET, self.url, b"data", status=200)
        response = readurl(self.url)
        assert b"data" == response.contents
        assert 200 == response.code
        assert response.ok()
        assert "data" == str(response)
        assert (
            "cloudboot/%s" % version.version_string()
            == responses.calls[0].request.headers["User-Agent"]
        )
        assert (
            url_helper.LOG.name,
            logging.DEBUG,
            "Read from %s (200, 4b)" % self.url,
        ) in caplog.record_tuples

    @responses.activate
    def test_read_keeps_given_user_agent(self):
        responses.add(responses.GET, self.url, b"", status=200)
        readurl(self.url, headers={"User-Agent": "custom"})
        assert "custom" == responses.calls[0].request.headers["User-Agent"]

    @responses.activate
    def test_non_200_is_status_error(self):
        responses.add(responses.GET, self.url, b"", status=503)
        with pytest.raises(StatusError) as exc_info:
            readurl(self.url)
        assert 503 == exc_info.value.code
        assert self.url == exc_info.value.url
        assert isinstance(exc_info.value, UrlError)

    @responses.activate
    def test_unchecked_status_is_returned(self):
        responses.add(responses.GET, self.url, b"gone", status=404)
        response = readurl(self.url, check_status=False)
        assert 404 == response.code
        assert not response.ok()

    @responses.activate
    def test_request_failure_is_transport_error(self):
        responses.add(
            responses.GET,
            self.url,
            body=requests.exceptions.ConnectionError("refused"),
        )
        with pytest.raises(TransportError) as exc_info:
            readurl(self.url)
        assert exc_info.value.code is None
        assert isinstance(
            exc_info.value.cause, requests.exceptions.ConnectionError
        )

    @responses.activate
    def test_with_context_returns_response(self, ctx):
        responses.add(responses.GET, self.url, b"data", status=200)
        assert b"data" == readurl(self.url, ctx=ctx).contents

    @responses.activate
    def test_with_context_transport_error(self, ctx):
        responses.add(
            responses.GET,
            self.url,
            body=requests.exceptions.ReadTimeout("slow"),
        )
        with pytest.raises(TransportError):
            readurl(self.url, ctx=ctx, timeout=1)

    @responses.activate
    def test_cancellation_aborts_in_flight_request(self):
        callback = BlockingCallback()
        responses.add_callback(responses.GET, self.url, callback=callback)
        session = requests.Session()
        ctx = Context.with_timeout(0.05)
        try:
            with mock.patch.object(session, "close") as m_close:
                with pytest.raises(CancellationError):
                    readurl(self.url, ctx=ctx, session=session)
        finally:
            callback.release()
        assert callback.started.is_set()
        m_close.assert_called_once_with()

    @responses.activate
    def test_timeout_bounds_the_whole_request(self, ctx):
        """A body still arriving after timeout seconds is abandoned."""
        callback = BlockingCallback()
        responses.add_callback(responses.GET, self.url, callback=callback)
        try:
            with pytest.raises(TransportError, match="timed out after 0.1s"):
                readurl(self.url, ctx=ctx, timeout=0.1)
        finally:
            callback.release()
        assert callback.started.is_set()
        assert not ctx.cancelled()

    @responses.activate
    def test_timeout_without_context(self):
        callback = BlockingCallback()
        responses.add_callback(responses.GET, self.url, callback=callback)
        try:
            with pytest.raises(TransportError) as exc_info:
                readurl(self.url, timeout=0.1)
        finally:
            callback.release()
        assert exc_info.value.code is None
        assert self.url == exc_info.value.url

    @responses.activate
    def test_cancellation_beats_pending_timeout(self):
        callback = BlockingCallback()
        responses.add_callback(responses.GET, self.url, callback=callback)
        ctx = Context.with_timeout(0.05)
        try:
            with pytest.raises(CancellationError, match=DEADLINE_EXCEEDED):
                readurl(self.url, ctx=ctx, timeout=10)
        finally:
            callback.release()
        assert [] == ctx._callbacks

    def test_cancelled_context_sends_nothing(self):
        ctx = Context()
        ctx.cancel()
        session = mock.Mock(spec=requests.Session)
        with pytest.raises(CancellationError):
            readurl(self.url, ctx=ctx, session=session)
        assert 0 == session.request.call_count

    @mock.patch(M_PATH + "requests.Session")
    def test_owned_session_is_closed(self, m_session):
        m_session.return_value.request.side_effect = (
            requests.exceptions.ConnectionError("refused")
        )
        with pytest.raises(TransportError):
            readurl(self.url, timeout=5)
        m_session.return_value.close.assert_called_once_with()
        _args, kwargs = m_session.return_value.request.call_args
        assert 5.0 == kwargs["timeout"]
        assert "GET" == kwargs["method"]

    def test_given_session_is_left_open(self):
        session = mock.Mock(spec=requests.Session)
        session.request.return_value = mock.Mock(
            status_code=200, content=b"ok"
        )
        readurl(self.url, session=session)
        assert 0 == session.close.call_count
