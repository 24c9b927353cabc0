# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

import logging

from couchdb_http import config
from couchdb_http.interceptors.customizers import BasicAuthInterceptor
from couchdb_http.interceptors.session import CookieInterceptorBase

log = logging.getLogger(__name__)


class IamCookieInterceptor(CookieInterceptorBase):
    """Authenticate with an ``IAMSession`` cookie obtained with an IAM API key.

    Starting a session takes two requests: the API key is exchanged for a
    bearer token at the IAM server, and the token response is then posted,
    unchanged, to the server's ``_iam_session`` endpoint. The token is
    treated as opaque and fetched again for every new session.

    :param api_key: the IAM API key
    :param base_url: the server URL the ``_iam_session`` endpoint lives under
    :param iam_server_url: the IAM token endpoint
    """

    def __init__(self, api_key, base_url, iam_server_url=None, max_renewals=3):
        super().__init__('application/json', base_url, '/_iam_session',
                         max_renewals=max_renewals)
        self.iam_server_url = iam_server_url or config.DEFAULT_IAM_SERVER_URL
        self.iam_token_request_body = (
            'grant_type=urn:ibm:params:oauth:grant-type:apikey'
            '&response_type=cloud_iam&apikey={0}'.format(api_key)).encode('utf-8')

    def request_cookie(self, context):
        token = self._bearer_token(context)
        if token is None:
            return False
        # The server only reads "access_token" from the token response.
        self.session_request_body = token.encode('utf-8')
        return super().request_cookie(context)

    def _bearer_token(self, context):
        tokens = []

        def store_token(conn):
            tokens.append(conn.response_as_string())
            return True

        if self.session_request(context, self.iam_server_url, self.iam_token_request_body,
                                'application/x-www-form-urlencoded', 'application/json',
                                store_token):
            return tokens[0]
        log.error("Failed to get an IAM token from %s", self.iam_server_url)
        return None


class IamServerBasicAuthInterceptor(BasicAuthInterceptor):
    """Basic authentication for requests to the IAM token endpoint only.

    :param iam_server_url: IAM token server URL
    :param client_id: client ID used to authenticate with the IAM server
    :param client_secret: client secret used to authenticate with the IAM
                          server
    """

    def __init__(self, iam_server_url, client_id, client_secret):
        super().__init__('{0}:{1}'.format(client_id, client_secret))
        self.iam_server_url = iam_server_url

    def intercept_request(self, context):
        if context.connection.url != self.iam_server_url:
            return context
        return super().intercept_request(context)
