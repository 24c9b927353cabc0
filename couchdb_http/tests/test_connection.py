# -*- coding: utf-8 -*-

import base64
import io
import socket
import unittest

from couchdb_http import exceptions, http
from couchdb_http.connection import HttpConnection
from couchdb_http.interceptors.base import RequestInterceptor, ResponseInterceptor
from couchdb_http.interceptors.customizers import BasicAuthInterceptor
from couchdb_http.tests.util import MockResponse, MockServer, ok


class AlwaysReplay(ResponseInterceptor):
    """Ask for a replay until ``limit`` responses were seen."""

    def __init__(self, limit=None):
        super().__init__()
        self.limit = limit
        self.calls = 0

    def intercept_response(self, context):
        self.calls += 1
        if self.limit is None or self.calls < self.limit:
            context.replay_request = True
        return context


class RecordOrder(RequestInterceptor):

    def __init__(self, name, order):
        super().__init__()
        self.name = name
        self.order = order

    def intercept_request(self, context):
        self.order.append(self.name)
        context.connection.transport.headers['X-Interceptor'] = self.name
        return context


class Raising(ResponseInterceptor):

    def __init__(self, error):
        super().__init__()
        self.error = error

    def intercept_response(self, context):
        raise self.error


def _unused_port():
    sock = socket.socket()
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class HttpConnectionTestCase(unittest.TestCase):

    def setUp(self):
        self.server = MockServer()
        self.server.start()
        self.addCleanup(self.server.stop)

    def test_get(self):
        self.server.enqueue(ok(b'{"couchdb":"Welcome"}'))
        conn = HttpConnection('GET', self.server.url('/')).execute()
        self.assertEqual(conn.status_code, 200)
        self.assertEqual(conn.response_as_json(), {'couchdb': 'Welcome'})
        self.assertEqual(self.server.paths(), ['/'])

    def test_error_status_is_returned(self):
        self.server.enqueue(MockResponse(404, b'{"error":"not_found"}'))
        conn = HttpConnection('GET', self.server.url('/missing')).execute()
        self.assertEqual(conn.status_code, 404)
        self.assertEqual(conn.response_as_string(), '{"error":"not_found"}')

    def test_replay_bounded_by_retries(self):
        self.server.enqueue(*[ok() for _ in range(10)])
        interceptor = AlwaysReplay()
        conn = HttpConnection('GET', self.server.url('/'))
        conn.set_number_of_retries(3)
        conn.response_interceptors.append(interceptor)
        conn.execute()
        self.assertEqual(len(self.server.requests), 3)
        self.assertEqual(interceptor.calls, 3)
        self.assertEqual(conn.retries_remaining, 0)
        self.assertEqual(conn.status_code, 200)

    def test_replay_stops_when_interceptor_stops(self):
        self.server.enqueue(*[ok() for _ in range(10)])
        conn = HttpConnection('GET', self.server.url('/'))
        conn.set_number_of_retries(10)
        conn.response_interceptors.append(AlwaysReplay(limit=4))
        conn.execute()
        self.assertEqual(len(self.server.requests), 4)
        self.assertEqual(conn.retries_remaining, 6)

    def test_body_resent_on_replay(self):
        payload = b'{"docs":[' + b','.join([b'{"_id":"%d"}' % i for i in range(500)]) + b']}'
        self.server.enqueue(ok(), ok())
        conn = HttpConnection('POST', self.server.url('/db/_bulk_docs'), 'application/json')
        conn.set_request_body(payload)
        conn.response_interceptors.append(AlwaysReplay(limit=2))
        conn.execute()
        first, second = self.server.requests
        self.assertEqual(first.body, payload)
        self.assertEqual(second.body, payload)
        self.assertEqual(second.headers['Content-Length'], str(len(payload)))
        self.assertEqual(second.headers['Content-Type'], 'application/json')

    def test_stream_of_unknown_length_is_chunked_and_resent(self):
        payload = b'x' * 40000
        self.server.enqueue(ok(), ok())
        conn = HttpConnection('PUT', self.server.url('/db/doc/attachment'), 'text/plain')
        conn.set_request_body(lambda: io.BytesIO(payload))
        conn.response_interceptors.append(AlwaysReplay(limit=2))
        conn.execute()
        first, second = self.server.requests
        self.assertEqual(first.headers['Transfer-Encoding'], 'chunked')
        self.assertEqual(first.body, payload)
        self.assertEqual(second.body, payload)

    def test_interceptors_run_in_order(self):
        self.server.enqueue(ok(), ok())
        order = []
        conn = HttpConnection('GET', self.server.url('/'))
        conn.request_interceptors.extend([RecordOrder('a', order), RecordOrder('b', order)])
        conn.response_interceptors.append(AlwaysReplay(limit=2))
        conn.execute()
        self.assertEqual(order, ['a', 'b', 'a', 'b'])
        self.assertEqual(self.server.requests[0].headers['X-Interceptor'], 'b')

    def test_request_properties_win_over_interceptor_headers(self):
        self.server.enqueue(ok())
        conn = HttpConnection('GET', self.server.url('/'))
        conn.request_interceptors.append(RecordOrder('interceptor', []))
        conn.request_properties['X-Interceptor'] = 'static'
        conn.execute()
        self.assertEqual(self.server.requests[0].headers['X-Interceptor'], 'static')

    def test_state_survives_replays(self):
        seen = []

        class Counting(ResponseInterceptor):
            def intercept_response(self, context):
                count = context.get_state(self.handle, 'count', 0) + 1
                context.set_state(self.handle, 'count', count)
                seen.append(count)
                context.replay_request = count < 3
                return context

        self.server.enqueue(ok(), ok(), ok(), ok())
        interceptor = Counting()
        conn = HttpConnection('GET', self.server.url('/'))
        conn.response_interceptors.append(interceptor)
        conn.execute()
        self.assertEqual(seen, [1, 2, 3])

        # A new logical request starts from scratch.
        conn = HttpConnection('GET', self.server.url('/'))
        conn.response_interceptors.append(interceptor)
        conn.set_number_of_retries(1)
        conn.execute()
        self.assertEqual(seen, [1, 2, 3, 1])

    def test_basic_auth_from_url_installed_once(self):
        self.server.enqueue(ok(), ok())
        url = self.server.url('/').replace('http://', 'http://user:p%40ss@')
        conn = HttpConnection('GET', url)
        conn.response_interceptors.append(AlwaysReplay(limit=2))
        conn.execute()
        expected = 'Basic ' + base64.b64encode(b'user:p@ss').decode('ascii')
        for request in self.server.requests:
            self.assertEqual(request.headers['Authorization'], expected)
        installed = [i for i in conn.request_interceptors if isinstance(i, BasicAuthInterceptor)]
        self.assertEqual(len(installed), 1)
        self.assertIs(conn.request_interceptors[0], installed[0])

    def test_read_before_execute(self):
        conn = HttpConnection('GET', self.server.url('/'))
        self.assertRaises(exceptions.RequestsException, conn.response_as_bytes)

    def test_connection_refused_is_transport_error(self):
        conn = HttpConnection('GET', 'http://127.0.0.1:{0}/'.format(_unused_port()))
        self.assertRaises(exceptions.RequestsException, conn.execute)

    def test_interceptor_error_with_io_cause_is_unwrapped(self):
        self.server.enqueue(ok())
        error = exceptions.InterceptorError('wrapped')
        error.__cause__ = IOError('stream closed')
        conn = HttpConnection('GET', self.server.url('/'))
        conn.response_interceptors.append(Raising(error))
        with self.assertRaises(exceptions.RequestsException) as cm:
            conn.execute()
        self.assertNotIsInstance(cm.exception, exceptions.InterceptorError)
        self.assertIs(cm.exception.__cause__, error.__cause__)

    def test_other_interceptor_errors_propagate(self):
        self.server.enqueue(ok())
        error = exceptions.InterceptorError('forbidden', status_code=403)
        conn = HttpConnection('GET', self.server.url('/'))
        conn.response_interceptors.append(Raising(error))
        with self.assertRaises(exceptions.InterceptorError) as cm:
            conn.execute()
        self.assertIs(cm.exception, error)


class ShorthandTestCase(unittest.TestCase):

    def test_post(self):
        with MockServer() as server:
            server.enqueue(MockResponse(201, b'{"ok":true,"id":"doc"}'))
            conn = http.post(server.url('/db'), 'application/json')
            conn.set_request_body('{"type": "Person"}')
            self.assertEqual(conn.execute().status_code, 201)
            request, = server.requests
        self.assertEqual(request.method, 'POST')
        self.assertEqual(request.headers['Content-Type'], 'application/json')
        self.assertEqual(request.body, b'{"type": "Person"}')
