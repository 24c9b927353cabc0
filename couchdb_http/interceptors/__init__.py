# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Interceptors adjusting requests before they are sent and inspecting their
responses.

The session interceptors live in `couchdb_http.interceptors.session`,
`couchdb_http.interceptors.cookie` and `couchdb_http.interceptors.iam`;
they are exported from the `couchdb_http` package.
"""

from couchdb_http.interceptors.base import Interceptor, RequestInterceptor, ResponseInterceptor
from couchdb_http.interceptors.customizers import (BasicAuthInterceptor, SSLCustomizerInterceptor,
                                                   TimeoutCustomizationInterceptor,
                                                   UserAgentInterceptor)
from couchdb_http.interceptors.replay429 import Replay429Interceptor
