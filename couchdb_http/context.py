# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

import itertools
import threading


class InterceptorHandle:
    """Opaque key under which an interceptor keeps per-request state.

    Every interceptor is issued its own handle when it is created; two
    handles are only equal if they are the same object.
    """

    _ids = itertools.count(1)

    __slots__ = ('_id', '_name')

    def __init__(self, name):
        self._id = next(self._ids)
        self._name = name

    def __repr__(self):
        return '<%s %s#%d>' % (type(self).__name__, self._name, self._id)


class _StateStore:
    """interceptor handle -> (state key -> value), shared by every context
    of one logical request."""

    def __init__(self):
        self._lock = threading.Lock()
        self._states = {}

    def set(self, handle, key, value):
        with self._lock:
            self._states.setdefault(handle, {})[key] = value

    def get(self, handle, key, default):
        with self._lock:
            return self._states.get(handle, {}).get(key, default)


class RequestContext:
    """State carried through the interceptors of one logical request.

    A fresh context is created for the first attempt of an `HttpConnection`;
    replays of the same request use a context derived from the previous one,
    so state stored by an interceptor survives the replay while the
    ``replay_request`` flag starts out cleared again.
    """

    def __init__(self, connection, _store=None):
        self.replay_request = False
        self.connection = connection
        self._store = _StateStore() if _store is None else _store

    def derive(self):
        """Return a new context sharing this context's state, with the replay
        flag reset."""
        return RequestContext(self.connection, self._store)

    def set_state(self, handle, key, value):
        """Store ``value`` under ``key`` for the interceptor owning ``handle``.

        :param handle: the `InterceptorHandle` of the storing interceptor
        :param key: name of the state entry
        :param value: the state object
        """
        self._store.set(handle, key, value)

    def get_state(self, handle, key, default=None):
        """Return the state stored under ``key`` for ``handle``, or ``default``."""
        return self._store.get(handle, key, default)

    def __repr__(self):
        return '<%s %r replay=%r>' % (type(self).__name__, self.connection, self.replay_request)
