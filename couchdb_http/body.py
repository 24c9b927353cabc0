# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Request bodies that can be read again from the start for every attempt."""

import io


class BodySource:
    """A request body that can be re-read for replays.

    ``length`` is the number of bytes `open` yields, or `None` when unknown.
    """

    length = None

    def open(self):
        """Return a binary stream positioned at the start of the body.

        Implementations must not hand out the same stream from two calls
        unless it has been rewound.
        """
        raise NotImplementedError


class BytesBodySource(BodySource):

    def __init__(self, data):
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._data = bytes(data)
        self.length = len(self._data)

    def open(self):
        return io.BytesIO(self._data)


class StreamBodySource(BodySource):
    """Wrap an already opened stream.

    Seekable streams are rewound to the position they had when wrapped.
    Anything else is read into memory once, up to ``length`` bytes when a
    length is given.
    """

    def __init__(self, stream, length=None):
        if _seekable(stream):
            self._stream = stream
            self._start = stream.tell()
            self._buffer = None
        else:
            self._stream = None
            self._start = 0
            self._buffer = stream.read(length) if length is not None else stream.read()
            if isinstance(self._buffer, str):
                self._buffer = self._buffer.encode('utf-8')
        self.length = length if length is not None or self._buffer is None else len(self._buffer)

    def open(self):
        if self._buffer is not None:
            return io.BytesIO(self._buffer)
        self._stream.seek(self._start)
        return _Unclosable(self._stream)


class GeneratorBodySource(BodySource):
    """Call ``factory`` for a fresh stream on every attempt."""

    def __init__(self, factory, length=None):
        self._factory = factory
        self.length = length

    def open(self):
        return self._factory()


def as_body_source(body, length=None):
    """Coerce ``body`` into a `BodySource`.

    Accepts a `BodySource`, ``str`` (sent as UTF-8), ``bytes``, a readable
    stream or a callable returning a fresh stream.
    """
    if body is None or isinstance(body, BodySource):
        return body
    if isinstance(body, (str, bytes, bytearray)):
        return BytesBodySource(body)
    if hasattr(body, 'read'):
        return StreamBodySource(body, length)
    if callable(body):
        return GeneratorBodySource(body, length)
    raise TypeError("Unsupported request body type: {0}".format(type(body).__name__))


def _seekable(stream):
    try:
        return stream.seekable()
    except AttributeError:
        return False


class _Unclosable(io.RawIOBase):
    """Read-through view of a caller owned stream that survives close()."""

    def __init__(self, stream):
        super().__init__()
        self._wrapped = stream

    def readable(self):
        return True

    def read(self, size=-1):
        data = self._wrapped.read(size)
        if isinstance(data, str):
            data = data.encode('utf-8')
        return data

    def readinto(self, b):
        data = self.read(len(b))
        b[:len(data)] = data
        return len(data)
