# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Shorthands for creating an `HttpConnection`.

>>> from couchdb_http import http
>>> conn = http.post('http://localhost:5984/db', 'application/json')
>>> conn.set_request_body('{"type": "Person"}')     #doctest: +ELLIPSIS
<HttpConnection POST http://localhost:5984/db>
"""

from couchdb_http.connection import HttpConnection

__all__ = ['connect', 'get', 'head', 'post', 'put', 'delete']


def connect(method, url, content_type=None, **options):
    return HttpConnection(method, url, content_type, **options)


def get(url, **options):
    return connect('GET', url, **options)


def head(url, **options):
    return connect('HEAD', url, **options)


def post(url, content_type, **options):
    return connect('POST', url, content_type, **options)


def put(url, content_type, **options):
    return connect('PUT', url, content_type, **options)


def delete(url, **options):
    return connect('DELETE', url, **options)
