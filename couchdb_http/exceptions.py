# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

import json

import requests.exceptions


class CouchDBException(Exception):
    """There was an ambiguous error interacting with CouchDB."""
    pass


class RequestsException(CouchDBException):
    """There was an ambiguous exception that occurred while handling your request.

    Raised for transport failures: refused connections, broken streams and
    anything else that prevented a response from being read.
    """
    pass


class Timeout(RequestsException):
    """The request timed out."""
    pass


class InterceptorError(CouchDBException):
    """An interceptor aborted the request pipeline.

    :param status_code: the HTTP status that caused the abort, if any
    :param error: the CouchDB ``error`` field of the response body, if any
    :param reason: the CouchDB ``reason`` field of the response body, if any
    :param deserialize: whether the response body carries error detail worth
                        deserializing
    """

    def __init__(self, message=None, status_code=None, error=None, reason=None,
                 deserialize=False):
        if message is None:
            message = error or "Interceptor error"
            if reason:
                message = "{0}: {1}".format(message, reason)
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error
        self.reason = reason
        self.deserialize = deserialize

    @classmethod
    def from_response(cls, status_code, body):
        """Build an error from a CouchDB error response body."""
        error, reason = parse_error_body(body)
        message = "HTTP error {0}".format(status_code)
        if error:
            message = "{0} {1}".format(message, error)
            if reason:
                message = "{0}: {1}".format(message, reason)
        return cls(message, status_code=status_code, error=error, reason=reason,
                   deserialize=bool(body))


class HTTPError(RequestsException):
    """An HTTP error occurred."""
    def __init__(self, status_code, message=None):
        self.status_code = status_code
        self.message = message or "HTTP error {status_code}".format(status_code=status_code)
        super().__init__(self.message)


class HTTPBadRequest(HTTPError):
    """400 Bad Request"""
    status_code = 400

    def __init__(self, message="Bad Request"):
        super().__init__(self.__class__.status_code, message)


class HTTPUnauthorized(HTTPError):
    """401 Unauthorized"""
    status_code = 401

    def __init__(self, message="Unauthorized"):
        super().__init__(self.__class__.status_code, message)


class HTTPForbidden(HTTPError):
    """403 Forbidden"""
    status_code = 403

    def __init__(self, message="Forbidden"):
        super().__init__(self.__class__.status_code, message)


class HTTPNotFound(HTTPError):
    """404 Not Found"""
    status_code = 404

    def __init__(self, message="Not Found"):
        super().__init__(self.__class__.status_code, message)


class HTTPConflict(HTTPError):
    status_code = 409

    def __init__(self, message="Conflict"):
        super().__init__(self.__class__.status_code, message)


class HTTPPreconditionFailed(HTTPError):
    status_code = 412

    def __init__(self, message="Precondition failed"):
        super().__init__(self.__class__.status_code, message)


class HTTPTooManyRequests(HTTPError):
    """429 Too Many Requests"""
    status_code = 429

    def __init__(self, message="Too Many Requests"):
        super().__init__(self.__class__.status_code, message)


_http_error_lookup = {
    exc.status_code: exc for exc in [HTTPBadRequest, HTTPUnauthorized, HTTPForbidden, HTTPNotFound,
                                     HTTPConflict, HTTPPreconditionFailed, HTTPTooManyRequests]
}


def http_error_lookup(status_code, message=None):
    if status_code in _http_error_lookup:
        if message:
            return _http_error_lookup[status_code](message)
        return _http_error_lookup[status_code]()
    else:
        return HTTPError(status_code=status_code, message=message)


def parse_error_body(body):
    """Return the ``(error, reason)`` pair of a CouchDB error body.

    Bodies that are not JSON objects yield ``(None, None)``.
    """
    if not body:
        return None, None
    try:
        data = json.loads(body)
    except ValueError:
        return None, None
    if not isinstance(data, dict):
        return None, None
    return data.get('error'), data.get('reason')


def is_transport_failure(exc):
    return isinstance(exc, (requests.exceptions.RequestException, OSError, RequestsException))


def transport_error(exc):
    """Map a low-level failure onto the transport error types."""
    if isinstance(exc, RequestsException):
        return exc
    if isinstance(exc, (requests.exceptions.Timeout, TimeoutError)):
        return Timeout(str(exc))
    if isinstance(exc, OSError) and not isinstance(exc, requests.exceptions.RequestException):
        return RequestsException("I/O error: {0}".format(exc))
    return RequestsException(str(exc))
