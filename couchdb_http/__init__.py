# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""HTTP transport for CouchDB: connections replayed through request and
response interceptors, with session cookie and IAM authentication and
backoff on rate limiting."""

__version__ = '1.0.0'

from couchdb_http import exceptions
from couchdb_http.body import (BodySource, BytesBodySource, GeneratorBodySource,
                               StreamBodySource, as_body_source)
from couchdb_http.config import Replay429Config, RequestLogFilter
from couchdb_http.connection import HttpConnection
from couchdb_http.context import InterceptorHandle, RequestContext
from couchdb_http.interceptors import (BasicAuthInterceptor, Interceptor, Replay429Interceptor,
                                       RequestInterceptor, ResponseInterceptor,
                                       SSLCustomizerInterceptor,
                                       TimeoutCustomizationInterceptor, UserAgentInterceptor)
from couchdb_http.interceptors.cookie import CookieInterceptor
from couchdb_http.interceptors.iam import IamCookieInterceptor, IamServerBasicAuthInterceptor
from couchdb_http.interceptors.session import CookieInterceptorBase, SessionCache
from couchdb_http.transport import Transport, TransportFactory
from couchdb_http.client import HttpClient, Server
