# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Request interceptors that configure each attempt."""

import base64

from requests_toolbelt.utils.user_agent import user_agent

from couchdb_http.interceptors.base import RequestInterceptor


class BasicAuthInterceptor(RequestInterceptor):
    """Send an ``Authorization: Basic`` header built from ``user:password``.

    :param userinfo: user name and password separated by a single colon
    """

    def __init__(self, userinfo, auth_header='Authorization'):
        super().__init__()
        self.auth_header = auth_header
        self.encoded_auth = base64.b64encode(userinfo.encode('utf-8')).decode('ascii')

    @classmethod
    def from_credentials(cls, username, password):
        return cls('{0}:{1}'.format(username, password))

    def intercept_request(self, context):
        context.connection.request_properties[self.auth_header] = 'Basic {0}'.format(
            self.encoded_auth)
        return context


class TimeoutCustomizationInterceptor(RequestInterceptor):
    """Set connect and read timeouts on every attempt.

    >>> TimeoutCustomizationInterceptor(10, 300)
    <TimeoutCustomizationInterceptor connect=10 read=300>

    :param connect_timeout: seconds to wait for a connection, no limit if
                            `None` or not positive
    :param read_timeout: seconds to wait between bytes of the response, no
                         limit if `None` or not positive
    """

    def __init__(self, connect_timeout, read_timeout):
        super().__init__()
        self.connect_timeout = _positive_or_none(connect_timeout)
        self.read_timeout = _positive_or_none(read_timeout)

    def __repr__(self):
        return '<%s connect=%r read=%r>' % (type(self).__name__, self.connect_timeout,
                                            self.read_timeout)

    def intercept_request(self, context):
        transport = context.connection.transport
        transport.connect_timeout = self.connect_timeout
        transport.read_timeout = self.read_timeout
        return context


class SSLCustomizerInterceptor(RequestInterceptor):
    """Customize certificate handling of ``https`` requests.

    :param verify: `False` to skip certificate verification, or the path of a
                   CA bundle to verify against
    :param cert: client certificate, as accepted by requests
    """

    def __init__(self, verify=True, cert=None):
        super().__init__()
        self.verify = verify
        self.cert = cert

    @classmethod
    def ssl_auth_disabled(cls):
        return cls(verify=False)

    def intercept_request(self, context):
        transport = context.connection.transport
        if transport.url.lower().startswith('https:'):
            transport.verify = self.verify
            if self.cert is not None:
                transport.cert = self.cert
        return context


class UserAgentInterceptor(RequestInterceptor):

    def __init__(self, name, version):
        super().__init__()
        self.user_agent = user_agent(name, version)

    def intercept_request(self, context):
        context.connection.transport.headers['User-Agent'] = self.user_agent
        return context


def _positive_or_none(value):
    if value is None or value <= 0:
        return None
    return value
