# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Defaults and tuning for the HTTP pipeline.

Module level defaults are read from the environment once, at import time.
Everything else is passed explicitly to the objects that need it.
"""

import os
import re


DEFAULT_BASE_URL = os.environ.get('COUCHDB_URL', 'http://localhost:5984/')
DEFAULT_IAM_SERVER_URL = os.environ.get('COUCHDB_IAM_SERVER_URL',
                                        'https://iam.cloud.ibm.com/identity/token')

DEFAULT_NUMBER_OF_RETRIES = 10

# Cap on a server supplied Retry-After, in seconds.
RETRY_AFTER_CAP = 60 * 60


class Replay429Config:
    """Backoff tuning for `Replay429Interceptor`.

    :param max_replays: number of times a request that received a 429 may be
                        replayed
    :param initial_backoff: seconds to wait before the first replay, doubled
                            for each further replay
    :param prefer_retry_after: honour a ``Retry-After`` header sent by the
                               server instead of the doubling backoff
    """

    def __init__(self, max_replays=3, initial_backoff=0.25, prefer_retry_after=True):
        if max_replays < 0:
            raise ValueError("max_replays must be >= 0")
        if initial_backoff < 0:
            raise ValueError("initial_backoff must be >= 0")
        self._max_replays = max_replays
        self._initial_backoff = initial_backoff
        self._prefer_retry_after = prefer_retry_after

    @property
    def max_replays(self):
        return self._max_replays

    @property
    def initial_backoff(self):
        return self._initial_backoff

    @property
    def prefer_retry_after(self):
        return self._prefer_retry_after

    def backoff(self, attempt):
        """Seconds to wait before replay number ``attempt`` (counted from 0)."""
        return self._initial_backoff * (2 ** attempt)

    def __repr__(self):
        return '<%s max_replays=%r initial_backoff=%r prefer_retry_after=%r>' % (
            type(self).__name__, self._max_replays, self._initial_backoff,
            self._prefer_retry_after)


class RequestLogFilter:
    """Decide which requests an `HttpConnection` writes to its debug log.

    :param methods: HTTP methods to log, all methods when `None`
    :param url_pattern: regular expression the full URL must match, any URL
                        when `None`
    """

    def __init__(self, methods=None, url_pattern=None):
        self.methods = frozenset(m.strip().upper() for m in methods if m.strip()) \
            if methods is not None else None
        self.url_pattern = re.compile(url_pattern) if url_pattern else None

    @classmethod
    def from_environ(cls, environ=None):
        """Build a filter from ``COUCHDB_HTTP_LOG_METHODS`` and
        ``COUCHDB_HTTP_LOG_URL``."""
        environ = os.environ if environ is None else environ
        methods = environ.get('COUCHDB_HTTP_LOG_METHODS')
        return cls(methods=methods.split(',') if methods else None,
                   url_pattern=environ.get('COUCHDB_HTTP_LOG_URL'))

    def is_loggable(self, method, url):
        if self.methods is not None and method.upper() not in self.methods:
            return False
        if self.url_pattern is not None and not self.url_pattern.match(url):
            return False
        return True
