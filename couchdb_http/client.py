# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Python client API for CouchDB over the interceptor pipeline.

>>> client = HttpClient('http://localhost:5984/', username='admin', password='pass')
>>> server = Server(client)
>>> server.version()                    #doctest: +SKIP
u'3.3.3'
>>> 'python-tests' in server            #doctest: +SKIP
False
>>> client.shutdown()
"""

import json
import logging

import furl

from couchdb_http import __version__, config, exceptions
from couchdb_http.connection import HttpConnection
from couchdb_http.interceptors.cookie import CookieInterceptor
from couchdb_http.interceptors.customizers import (SSLCustomizerInterceptor,
                                                   TimeoutCustomizationInterceptor,
                                                   UserAgentInterceptor)
from couchdb_http.interceptors.iam import IamCookieInterceptor, IamServerBasicAuthInterceptor
from couchdb_http.interceptors.replay429 import Replay429Interceptor
from couchdb_http.transport import TransportFactory

__all__ = ['HttpClient', 'Server']
__docformat__ = 'restructuredtext en'

log = logging.getLogger(__name__)

JSON_MIME = 'application/json'


def _jsons(data, indent=None):
    """Convert data into JSON string."""
    return json.dumps(data, ensure_ascii=False, indent=indent)


class HttpClient:
    """Make requests to one CouchDB server through a shared set of
    interceptors.

    The interceptors, and with them the session cookie, are shared by every
    connection the client creates, so a client may be used from many
    threads at once.

    :param url: the URI of the server (for example ``http://localhost:5984/``);
                user info in the URL is used for cookie authentication
    :param username: user name for ``_session`` cookie authentication
    :param password: password for ``_session`` cookie authentication
    :param iam_api_key: IAM API key, used instead of user name and password
    :param replay_429: a `Replay429Config` to replay rate limited requests
    :param number_of_retries: attempts allowed for each request
    """

    def __init__(self, url=config.DEFAULT_BASE_URL, username=None, password=None,
                 iam_api_key=None, iam_server_url=None, iam_client_id=None,
                 iam_client_secret=None, connect_timeout=None, read_timeout=None,
                 disable_ssl_verification=False, proxy_url=None, proxy_username=None,
                 proxy_password=None, replay_429=None,
                 number_of_retries=config.DEFAULT_NUMBER_OF_RETRIES,
                 request_interceptors=(), response_interceptors=(), user_agent=True):
        parsed_url = furl.furl(url)
        if parsed_url.username is not None:
            if username is None:
                username, password = parsed_url.username, parsed_url.password or ''
            parsed_url.remove(username=True, password=True)
        self._url = parsed_url.url
        self._number_of_retries = number_of_retries
        self._log_filter = config.RequestLogFilter.from_environ()
        self.transport_factory = TransportFactory(proxy_url, proxy_username, proxy_password)

        self.request_interceptors = []
        self.response_interceptors = []
        if user_agent:
            self.request_interceptors.append(UserAgentInterceptor('couchdb-http', __version__))
        if connect_timeout is not None or read_timeout is not None:
            self.request_interceptors.append(
                TimeoutCustomizationInterceptor(connect_timeout, read_timeout))
        if disable_ssl_verification:
            self.request_interceptors.append(SSLCustomizerInterceptor.ssl_auth_disabled())

        session = None
        if iam_api_key is not None:
            session = IamCookieInterceptor(iam_api_key, self._url, iam_server_url)
            if iam_client_id is not None:
                self.request_interceptors.append(IamServerBasicAuthInterceptor(
                    session.iam_server_url, iam_client_id, iam_client_secret))
        elif username is not None:
            session = CookieInterceptor(username, password or '', self._url)
        self.session_interceptor = session
        if session is not None:
            self.request_interceptors.append(session)
            self.response_interceptors.append(session)

        if replay_429 is not None:
            self.response_interceptors.append(Replay429Interceptor(replay_429))
        self.request_interceptors.extend(request_interceptors)
        self.response_interceptors.extend(response_interceptors)

    @property
    def url(self):
        return self._url

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.url)

    def url_for(self, path=(), params=None):
        """Return the absolute URL of ``path`` below the server URL.

        :param path: a path string or a sequence of (unquoted) path segments
        :param params: query parameters; values that are not strings are
                       sent as JSON
        """
        url = furl.furl(self._url)
        if isinstance(path, str):
            path = [s for s in path.split('/') if s]
        url.path.segments = [s for s in url.path.segments if s] + [str(s) for s in path]
        if params:
            url.add(args=_encode_params(params))
        return url.url

    def connection(self, method, path=(), content_type=None, params=None):
        """Create an unexecuted `HttpConnection` using this client's
        interceptors."""
        conn = HttpConnection(method, self.url_for(path, params), content_type,
                              transport_factory=self.transport_factory,
                              log_filter=self._log_filter)
        conn.set_number_of_retries(self._number_of_retries)
        conn.request_interceptors.extend(self.request_interceptors)
        conn.response_interceptors.extend(self.response_interceptors)
        return conn

    def request(self, method, path=(), body=None, content_type=None, params=None):
        """Execute a request and check its final status.

        :return: the executed `HttpConnection`, ready for reading the response
        :raise HTTPError: if the final response has a status of 400 or above
        """
        conn = self.connection(method, path, content_type, params)
        if body is not None:
            conn.set_request_body(body)
        conn.execute()
        status = conn.status_code
        if status >= 400:
            text = conn.response_as_string() if method != 'HEAD' else ''
            error, reason = exceptions.parse_error_body(text)
            message = reason or error or conn.transport.reason
            raise exceptions.http_error_lookup(status, message)
        return conn

    def head(self, path=(), params=None):
        conn = self.request('HEAD', path, params=params)
        conn.disconnect()
        return conn.response_headers

    def get_json(self, path=(), params=None):
        return self.request('GET', path, params=params).response_as_json()

    def put_json(self, path=(), body=None, params=None):
        return self._json_request('PUT', path, body, params)

    def post_json(self, path=(), body=None, params=None):
        return self._json_request('POST', path, body, params)

    def delete_json(self, path=(), params=None):
        return self.request('DELETE', path, params=params).response_as_json()

    def _json_request(self, method, path, body, params):
        data = _jsons(body) if body is not None else None
        return self.request(method, path, data, JSON_MIME, params).response_as_json()

    def shutdown(self):
        """Close the pooled connections of this client."""
        self.transport_factory.shutdown()


def _encode_params(params):
    retval = {}
    for name, value in params.items():
        if not isinstance(value, str):
            value = json.dumps(value)
        retval[name] = value
    return retval


class Server:
    """Representation of a CouchDB server.

    >>> server = Server('http://example.com:5984/')
    >>> server
    <Server 'http://example.com:5984/'>

    This class behaves like a read-only collection of database names:

    >>> list(server)                    #doctest: +SKIP
    ['_replicator', '_users']
    """

    def __init__(self, client=config.DEFAULT_BASE_URL):
        """Initialize the server object.

        :param client: an `HttpClient`, or the URI of the server
        """
        if isinstance(client, str):
            client = HttpClient(client)
        self._client = client

    @property
    def url(self):
        return self._client.url

    @property
    def client(self):
        return self._client

    def __contains__(self, name):
        """Return whether the server contains a database with the specified
        name.

        :param name: the database name
        :return: `True` if a database with the name exists, `False` otherwise
        """
        try:
            self._client.head([name])
            return True
        except exceptions.HTTPNotFound:
            return False

    def __iter__(self):
        """Iterate over the names of all databases."""
        return iter(self._client.get_json('_all_dbs'))

    def __len__(self):
        """Return the number of databases."""
        return len(self._client.get_json('_all_dbs'))

    def __bool__(self):
        """Return whether the server is available."""
        try:
            self._client.head()
            return True
        except exceptions.RequestsException:
            return False

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.url)

    def version(self):
        """The version string of the CouchDB server.

        Note that this results in a request being made, and can also be used
        to check for the availability of the server.

        :rtype: `str`"""
        return self._client.get_json()['version']

    def uuids(self, count=1):
        """Retrieve a batch of uuids

        :param count: a number of uuids to fetch
        :return: a list of uuids
        """
        return self._client.get_json('_uuids', params={'count': count})['uuids']

    def session_info(self):
        """Information about the session the client is authenticated with."""
        return self._client.get_json('_session')
