# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

from couchdb_http.context import InterceptorHandle


class Interceptor:
    """Common base of request and response interceptors.

    Every instance receives its own `InterceptorHandle`, the key under which
    it keeps state on a `RequestContext`.
    """

    def __init__(self):
        self.handle = InterceptorHandle(type(self).__name__)


class RequestInterceptor(Interceptor):
    """Called before every attempt, with the attempt's transport open but not
    yet sent."""

    def intercept_request(self, context):
        """Adjust the request and return the context for the next interceptor.

        :param context: the `RequestContext` of the request
        :return: the context to pass on
        """
        raise NotImplementedError


class ResponseInterceptor(Interceptor):
    """Called after every attempt, once the response status and headers have
    been read."""

    def intercept_response(self, context):
        """Inspect the response and return the context for the next
        interceptor. Setting ``context.replay_request`` asks for the request
        to be sent again.

        :param context: the `RequestContext` of the request
        :return: the context to pass on
        """
        raise NotImplementedError
