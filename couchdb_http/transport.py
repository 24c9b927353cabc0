# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""The physical side of a request: one `Transport` per attempt.

`TransportFactory` owns a pooled ``requests.Session`` and hands out a new
`Transport` for every attempt an `HttpConnection` makes. A transport is
configured (method, headers, timeouts, TLS), sent once and then read.
"""

import http.cookiejar
import logging

import furl
import requests
import requests.exceptions
import requests.utils
from requests.structures import CaseInsensitiveDict
from requests_toolbelt import StreamingIterator

from couchdb_http import exceptions

log = logging.getLogger(__name__)

# Large enough not to limit the size of HTTP chunks.
CHUNK_SIZE = 16 * 1024

# Cookies are managed by the session interceptors, never by requests itself.
_NO_COOKIES = http.cookiejar.DefaultCookiePolicy(allowed_domains=[])


class TransportFactory:
    """Produce `Transport` objects sharing one connection pool.

    :param proxy_url: URL of an HTTP proxy to route requests through
    :param proxy_username: user name for the proxy, if it needs one
    :param proxy_password: password for the proxy, if it needs one
    """

    def __init__(self, proxy_url=None, proxy_username=None, proxy_password=None):
        self._session = requests.Session()
        self._session.cookies.set_policy(_NO_COOKIES)
        self._proxies = None
        if proxy_url is not None:
            self.set_proxy(proxy_url, proxy_username, proxy_password)

    @property
    def proxies(self):
        return self._proxies

    def set_proxy(self, proxy_url, username=None, password=None):
        """Route every transport opened from now on through an HTTP proxy."""
        proxy = furl.furl(proxy_url)
        if proxy.scheme != 'http':
            raise ValueError("The proxy URL {0} is invalid. Only HTTP type proxies are "
                             "supported.".format(proxy_url))
        if username is not None:
            proxy.username = username
            proxy.password = password
        self._proxies = {'http': proxy.url, 'https': proxy.url}
        log.info("Configured HTTP proxy url %s", proxy_url)

    def open(self, url):
        return Transport(self._session, url, self._proxies)

    def shutdown(self):
        """Close all pooled connections."""
        self._session.close()


class Transport:
    """A single HTTP exchange.

    Everything that configures the request must happen before `send`;
    everything that reads the response after it.
    """

    def __init__(self, session, url, proxies=None):
        self._session = session
        self.url = url
        self.method = 'GET'
        self.headers = CaseInsensitiveDict()
        self.connect_timeout = None
        self.read_timeout = None
        self.verify = True
        self.cert = None
        self.allow_redirects = True
        self.proxies = proxies
        self.response = None
        self._content_length = None
        self._chunk_size = CHUNK_SIZE
        self._consumed = False

    @property
    def timeout(self):
        if self.connect_timeout is None and self.read_timeout is None:
            return None
        return self.connect_timeout, self.read_timeout

    @property
    def using_proxy(self):
        return bool(self.proxies and requests.utils.select_proxy(self.url, self.proxies))

    def set_fixed_length_streaming_mode(self, length):
        self._content_length = length

    def set_chunked_streaming_mode(self, chunk_size=CHUNK_SIZE):
        self._content_length = None
        self._chunk_size = chunk_size or CHUNK_SIZE

    def send(self, stream=None):
        """Write the request, with ``stream`` as body, and read the status line
        and headers of the response."""
        data = None
        if stream is not None:
            if self._content_length is not None:
                data = StreamingIterator(self._content_length, stream)
            else:
                data = _chunks(stream, self._chunk_size)
        request = requests.Request(self.method, self.url, headers=dict(self.headers), data=data)
        try:
            prepared = self._session.prepare_request(request)
            settings = self._session.merge_environment_settings(
                prepared.url, self.proxies or {}, True, self.verify, self.cert)
            self.response = self._session.send(prepared, timeout=self.timeout,
                                               allow_redirects=self.allow_redirects, **settings)
        except (requests.exceptions.RequestException, OSError) as exc:
            raise exceptions.transport_error(exc) from exc
        return self.response

    def _require_response(self):
        if self.response is None:
            raise exceptions.RequestsException(
                "Attempted to read response from server before calling execute()")
        return self.response

    @property
    def status_code(self):
        return self._require_response().status_code

    @property
    def reason(self):
        return self._require_response().reason

    @property
    def response_headers(self):
        return self._require_response().headers

    def get_header(self, name):
        return self._require_response().headers.get(name)

    def read_bytes(self):
        response = self._require_response()
        try:
            return response.content
        except (requests.exceptions.RequestException, OSError) as exc:
            raise exceptions.transport_error(exc) from exc
        finally:
            self._consumed = True

    def read_text(self):
        return self.read_bytes().decode(self.response.encoding or 'utf-8', 'replace')

    def raw_stream(self):
        raw = self._require_response().raw
        raw.decode_content = True
        self._consumed = True
        return raw

    def consume(self):
        """Read and discard any unread response body so the pooled connection
        can be reused."""
        if self.response is None or self._consumed:
            return
        try:
            if self.response.content:
                log.debug("Consumed unused HTTP response error stream.")
        except (requests.exceptions.RequestException, OSError):
            log.debug("Unable to consume response stream.", exc_info=True)
        finally:
            self._consumed = True
            self.response.close()

    def disconnect(self):
        if self.response is not None:
            self.response.close()


def _chunks(stream, chunk_size):
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        yield chunk
