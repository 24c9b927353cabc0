# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Session cookie authentication shared by many concurrent requests.

A `CookieInterceptorBase` instance is normally shared by every connection a
client makes. Its cookies live in a `SessionCache`, guarded by a read-write
lock: requests read the session concurrently, while acquiring or renewing
it is exclusive. The cache's ``session_id`` is bumped on every successful
renewal, so a request that failed authentication can tell whether another
thread has renewed the session since the request was sent, and only the
first such thread goes back to the server for a new session.
"""

import contextlib
import logging
import re
import threading
import time

import furl
import requests
import requests.cookies

from couchdb_http import connection as _connection, exceptions
from couchdb_http.interceptors.base import RequestInterceptor, ResponseInterceptor

log = logging.getLogger(__name__)

_SESSION_OK = re.compile(r'"ok"\s*:\s*true', re.IGNORECASE)

SESSION_ID = 'session_id'
RENEWALS = 'renewals'
FAILED = 'failed'


class ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers.

    Not reentrant.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextlib.contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SessionCache:
    """Session cookies and their freshness token.

    Callers must hold ``lock``: the read side for `has_session` and
    `cookie_header`, the write side for everything that changes the cache.
    """

    def __init__(self):
        self.lock = ReadWriteLock()
        self.session_id = 0
        self._jar = requests.cookies.RequestsCookieJar()

    def has_session(self):
        now = time.time()
        return any(not cookie.is_expired(now) for cookie in self._jar)

    def cookie_header(self, url):
        """Return the ``Cookie`` header value for ``url``, or `None`."""
        return requests.cookies.get_cookie_header(self._jar, requests.Request('GET', url))

    def store(self, transport):
        """Keep any cookies set by the response of ``transport``.

        :return: `True` if the response carried cookies
        """
        response = transport.response
        if 'Set-Cookie' not in response.headers:
            return False
        log.debug("Storing cookie.")
        requests.cookies.extract_cookies_to_jar(self._jar, response.request, response.raw)
        return True

    def renewed(self):
        self.session_id += 1

    def clear(self):
        self._jar.clear()


class CookieInterceptorBase(RequestInterceptor, ResponseInterceptor):
    """Attach a session cookie to every request, renewing it when the server
    rejects it.

    Subclasses fill in ``session_request_body`` and may override
    `request_cookie` (to obtain the body first) and `renewal_required` (to
    recognise more ways a server reports an expired session).

    :param session_request_mime_type: Content-Type of the session request
    :param base_url: the server URL
    :param endpoint: path of the session endpoint relative to ``base_url``
    :param max_renewals: how often the session may be renewed for a single
                         logical request before its 401 is returned as is
    """

    def __init__(self, session_request_mime_type, base_url, endpoint, max_renewals=3):
        super().__init__()
        self.session_request_body = None
        self.session_request_mime_type = session_request_mime_type
        self.session_url = join_url(base_url, endpoint)
        self.max_renewals = max_renewals
        self.cache = SessionCache()

    def intercept_request(self, context):
        cache = self.cache
        with cache.lock.read():
            has_session = cache.has_session()

        if not has_session and not context.get_state(self.handle, FAILED):
            with cache.lock.write():
                # Another request may have started the session meanwhile.
                if not cache.has_session():
                    if self.request_cookie(context):
                        cache.renewed()
                    else:
                        context.set_state(self.handle, FAILED, True)

        transport = context.connection.transport
        with cache.lock.read():
            context.set_state(self.handle, SESSION_ID, cache.session_id)
            cookie = cache.cookie_header(transport.url)
        if cookie:
            transport.headers['Cookie'] = cookie
        else:
            log.debug("No cookie values to set.")
        return context

    def intercept_response(self, context):
        transport = context.connection.transport
        if not self.renewal_required(context):
            if 'Set-Cookie' in transport.response_headers:
                with self.cache.lock.write():
                    self.cache.store(transport)
            return context

        renewals = context.get_state(self.handle, RENEWALS, 0)
        if context.get_state(self.handle, FAILED) or renewals >= self.max_renewals:
            log.debug("Not renewing session for %r", context.connection)
            return context
        context.set_state(self.handle, RENEWALS, renewals + 1)

        seen_session = context.get_state(self.handle, SESSION_ID)
        with self.cache.lock.write():
            # No session id means the request never went through intercept_request.
            if seen_session is not None and self.cache.session_id != seen_session:
                log.debug("Session was renewed by another request.")
                success = True
            else:
                log.debug("Cookie was invalid. Will attempt to get new cookie.")
                self.cache.clear()
                success = self.request_cookie(context)
                if success:
                    self.cache.renewed()

        if success:
            context.replay_request = True
        else:
            context.set_state(self.handle, FAILED, True)
        return context

    def renewal_required(self, context):
        """Whether the response means the session must be renewed."""
        return context.connection.transport.status_code == 401

    def request_cookie(self, context):
        """Start a new session. Called with the cache's write lock held.

        :return: `True` if a session cookie was stored
        """
        return self.session_request(context, self.session_url, self.session_request_body,
                                    self.session_request_mime_type, 'application/json',
                                    self._store_session)

    def session_request(self, context, url, payload, mime_type, accept, on_response_ok):
        """POST ``payload`` to ``url`` with every interceptor of the
        intercepted request except this one.

        :param on_response_ok: called with the executed `HttpConnection` for a
                               2xx response, returning the overall outcome
        :return: the result of ``on_response_ok``, or `False` if the server
                 rejected the credentials
        :raise InterceptorError: for any other non-2xx response
        """
        intercepted = context.connection
        conn = _connection.HttpConnection('POST', url, mime_type,
                                          transport_factory=intercepted.transport_factory)
        conn.request_properties['Accept'] = accept
        conn.set_request_body(payload)
        conn.request_interceptors.extend(
            i for i in intercepted.request_interceptors if i is not self)
        conn.response_interceptors.extend(
            i for i in intercepted.response_interceptors if i is not self)
        conn.execute()

        status = conn.status_code
        if status // 100 == 2:
            return on_response_ok(conn)

        error = conn.response_as_string()
        log.debug(error)
        if status == 401:
            log.error("Credentials are incorrect for server %s, cookie authentication will not "
                      "be attempted again for this request", url)
            return False
        log.error("Failed to get cookie from server %s, response code %s", url, status)
        raise exceptions.InterceptorError.from_response(status, error)

    def _store_session(self, conn):
        # Only "ok": true can be checked, the returned name may differ from
        # the one sent.
        body = conn.response_as_string()
        if not _SESSION_OK.search(body):
            log.error("Session request to %s did not start a session", conn.url)
            return False
        return self.cache.store(conn.transport)


def join_url(base_url, endpoint):
    url = furl.furl(base_url)
    url.path.segments = [s for s in url.path.segments if s] + \
        [s for s in endpoint.split('/') if s]
    return url.url
