# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

import logging
import re
from urllib.parse import quote_plus

from couchdb_http import exceptions
from couchdb_http.interceptors.session import CookieInterceptorBase

log = logging.getLogger(__name__)

_CREDENTIALS_EXPIRED = re.compile(r'"error"\s*:\s*"credentials_expired"', re.IGNORECASE)


class CookieInterceptor(CookieInterceptorBase):
    """Authenticate with a CouchDB ``_session`` (``AuthSession``) cookie.

    Besides a 401, CouchDB reports an expired session as a 403 whose body
    has ``"error": "credentials_expired"``; that renews the session too. Any
    other 403 aborts the request with an `InterceptorError`.

    :param username: user name, not URL encoded
    :param password: password, not URL encoded
    :param base_url: the server URL the ``_session`` endpoint lives under
    """

    def __init__(self, username, password, base_url, max_renewals=3):
        super().__init__('application/x-www-form-urlencoded', base_url, '/_session',
                         max_renewals=max_renewals)
        self.session_request_body = 'name={0}&password={1}'.format(
            quote_plus(username), quote_plus(password)).encode('utf-8')

    def renewal_required(self, context):
        transport = context.connection.transport
        status = transport.status_code
        if status == 401:
            return True
        if status != 403:
            return False

        error = transport.read_text()
        log.debug("Intercepted response %d %s", status, error)
        if error and _CREDENTIALS_EXPIRED.search(error):
            return True
        raise exceptions.InterceptorError.from_response(status, error)
