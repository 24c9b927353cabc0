# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""One logical HTTP request, replayed as many times as its interceptors ask.

>>> conn = HttpConnection('GET', 'http://localhost:5984/_all_dbs')
>>> conn.response_interceptors.append(Replay429Interceptor.with_defaults())  #doctest: +SKIP
>>> conn.execute().response_as_json()                                        #doctest: +SKIP
['_replicator', '_users']
"""

import json
import logging

import furl
import requests.utils

from couchdb_http import config, exceptions
from couchdb_http.body import as_body_source
from couchdb_http.context import RequestContext
from couchdb_http.interceptors.customizers import BasicAuthInterceptor
from couchdb_http.transport import TransportFactory

log = logging.getLogger(__name__)

__all__ = ['HttpConnection']


class HttpConnection:
    """A single logical HTTP request.

    Each call to `execute` performs one or more physical attempts. Request
    interceptors run, in order, before every attempt; response interceptors
    run, in order, after it and may set ``replay_request`` on the context to
    have the request sent again, as long as retries remain.

    Instances are not thread-safe: use one connection per logical request.

    :param method: the HTTP method
    :param url: absolute URL of the request; user info in the URL is sent as
                basic authentication
    :param content_type: value of the Content-Type header, if any
    :param transport_factory: the `TransportFactory` opening each attempt;
                              a private one is created when omitted
    :param log_filter: a `RequestLogFilter` selecting requests to log
    """

    def __init__(self, method, url, content_type=None, transport_factory=None, log_filter=None):
        self.method = method.upper()
        self.url = str(url)
        self.content_type = content_type
        self.request_properties = {}
        self.request_interceptors = []
        self.response_interceptors = []
        self.transport_factory = transport_factory or TransportFactory()
        self._log_filter = log_filter or config.RequestLogFilter.from_environ()
        self._number_of_retries = config.DEFAULT_NUMBER_OF_RETRIES
        self._body = None
        self._context = None
        self._transport = None
        self._basic_auth_installed = False
        self._log_identifier = None

        username, password = requests.utils.get_auth_from_url(self.url)
        if username or password:
            self._userinfo = '{0}:{1}'.format(username, password)
            self._wire_url = furl.furl(self.url).remove(username=True, password=True).url
        else:
            self._userinfo = None
            self._wire_url = self.url

    def __repr__(self):
        return '<%s %s %s>' % (type(self).__name__, self.method, self._wire_url)

    def set_number_of_retries(self, number_of_retries):
        """Set how many times this request may be attempted. Must be called
        before `execute`."""
        self._number_of_retries = number_of_retries
        return self

    @property
    def retries_remaining(self):
        return self._number_of_retries

    def set_request_body(self, body, length=None):
        """Set the request body.

        :param body: ``str``, ``bytes``, a readable stream, a callable
                     returning a fresh stream, or a `BodySource`
        :param length: the body length in bytes, when known and not derivable
                       from ``body``
        """
        self._body = as_body_source(body, length)
        return self

    @property
    def transport(self):
        """The `Transport` of the current (or last) attempt."""
        return self._transport

    def execute(self):
        """Send the request, replaying it while interceptors ask for it and
        retries remain.

        :return: this connection, for reading the response
        :raise RequestsException: if the request could not be written or the
                                  response could not be read
        :raise InterceptorError: if an interceptor aborted the request
        """
        retry = True
        while retry and self._number_of_retries > 0:
            self._number_of_retries -= 1
            transport = self._transport = self.transport_factory.open(self._wire_url)

            if self._userinfo is not None and not self._basic_auth_installed:
                # First, so that any other interceptor can still replace it.
                self.request_interceptors.insert(0, BasicAuthInterceptor(self._userinfo))
                self._basic_auth_installed = True

            transport.method = self.method
            if self.content_type is not None:
                transport.headers['Content-Type'] = self.content_type

            # Streaming mode is set before the interceptors so they can change it.
            if self._body is not None:
                if self._body.length is not None:
                    transport.set_fixed_length_streaming_mode(self._body.length)
                else:
                    transport.set_chunked_streaming_mode()

            context = self._context = RequestContext(self) if self._context is None \
                else self._context.derive()

            for interceptor in self.request_interceptors:
                context = self._intercept(interceptor.intercept_request, context)

            # Static properties are applied after the interceptors and win
            # over headers the interceptors set on the transport.
            for name, value in self.request_properties.items():
                transport.headers[name] = value

            loggable = log.isEnabledFor(logging.DEBUG) and \
                self._log_filter.is_loggable(self.method, self._wire_url)
            if loggable:
                log.debug("%s request%s", self._identifier(),
                          " via proxy" if transport.using_proxy else "")
                log.debug("%s request headers %s", self._identifier(), dict(transport.headers))

            if self._body is not None:
                stream = self._body.open()
                try:
                    transport.send(stream)
                finally:
                    stream.close()
            else:
                transport.send()

            if loggable:
                log.debug("%s response %s %s", self._identifier(), transport.status_code,
                          transport.reason)
                log.debug("%s response headers %s", self._identifier(),
                          dict(transport.response_headers))

            for interceptor in self.response_interceptors:
                context = self._intercept(interceptor.intercept_response, context)
            self._context = context

            retry = context.replay_request

            # Consuming rather than closing lets the pooled connection be reused.
            if retry and self._number_of_retries > 0:
                transport.consume()

        if retry:
            log.info("Maximum number of retries reached")
        return self

    @staticmethod
    def _intercept(intercept, context):
        try:
            result = intercept(context)
        except exceptions.InterceptorError as exc:
            cause = exc.__cause__
            if cause is not None and exceptions.is_transport_failure(cause):
                raise exceptions.transport_error(cause) from cause
            raise
        return context if result is None else result

    def _identifier(self):
        if self._log_identifier is None:
            self._log_identifier = '%x-%s %s %s' % (id(self), self._number_of_retries,
                                                    self.method, self._wire_url)
        return self._log_identifier

    def _require_transport(self):
        if self._transport is None:
            raise exceptions.RequestsException(
                "Attempted to read response from server before calling execute()")
        return self._transport

    @property
    def status_code(self):
        return self._require_transport().status_code

    @property
    def response_headers(self):
        return self._require_transport().response_headers

    def response_as_bytes(self):
        """Return the response body and release the connection."""
        transport = self._require_transport()
        try:
            return transport.read_bytes()
        finally:
            self.disconnect()

    def response_as_string(self):
        transport = self._require_transport()
        try:
            return transport.read_text()
        finally:
            self.disconnect()

    def response_as_json(self):
        return json.loads(self.response_as_string())

    def response_as_stream(self):
        """Return the response body as a file-like object.

        The caller must close it; reading it to the end first lets the
        connection be reused.
        """
        return self._require_transport().raw_stream()

    def disconnect(self):
        if self._transport is not None:
            self._transport.disconnect()
