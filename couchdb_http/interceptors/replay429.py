# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

import logging
from time import sleep

from couchdb_http import exceptions
from couchdb_http.config import RETRY_AFTER_CAP, Replay429Config
from couchdb_http.interceptors.base import ResponseInterceptor

log = logging.getLogger(__name__)

ATTEMPT = 'attempt'


class Replay429Interceptor(ResponseInterceptor):
    """Replay requests that received a 429 Too Many Requests, backing off
    between attempts.

    The wait doubles from ``initial_backoff`` with every replay unless the
    server sends a ``Retry-After`` header and the configuration prefers it.
    The calling thread sleeps for the whole wait. Once the configured
    replays, or the connection's retries, are used up, the 429 response is
    returned to the caller.

    :param config: a `Replay429Config`, the defaults when omitted
    :param sleep: function used to wait, taking seconds
    """

    def __init__(self, config=None, sleep=sleep):
        super().__init__()
        self.config = config if config is not None else Replay429Config()
        self._sleep = sleep

    @classmethod
    def with_defaults(cls):
        """Three replays starting at a 250 ms backoff, honouring Retry-After."""
        return cls(Replay429Config())

    def intercept_response(self, context):
        transport = context.connection.transport
        if transport.status_code != 429:
            return context

        attempt = context.get_state(self.handle, ATTEMPT, 0)
        context.set_state(self.handle, ATTEMPT, attempt + 1)

        if attempt >= self.config.max_replays or context.connection.retries_remaining <= 0:
            return context

        backoff = self.config.backoff(attempt)
        if self.config.prefer_retry_after:
            backoff = self._retry_after(transport.get_header('Retry-After'), backoff)

        try:
            error = transport.read_text()
        except exceptions.RequestsException as exc:
            raise exceptions.InterceptorError(str(exc)) from (exc.__cause__ or exc)
        log.warning("%s will retry in %s ms", error, int(backoff * 1000))
        log.debug("Too many requests backing off for %s s.", backoff)

        self._sleep(backoff)
        context.replay_request = True
        return context

    @staticmethod
    def _retry_after(value, default):
        # Only the delay-seconds form of Retry-After is expected, not HTTP
        # dates.
        if value is None:
            return default
        try:
            seconds = int(value)
        except ValueError:
            log.warning("Invalid Retry-After value from server falling back to default "
                        "backoff.")
            return default
        if seconds < 0:
            log.warning("Negative Retry-After value from server falling back to default "
                        "backoff.")
            return default
        if seconds > RETRY_AFTER_CAP:
            log.error("Server specified Retry-After value in excess of one hour, capping "
                      "retry.")
            return RETRY_AFTER_CAP
        return seconds
