# -*- coding: utf-8 -*-

"""An in-process HTTP server answering with canned responses."""

import collections
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

JSON_OK = b'{"ok":true}'

RecordedRequest = collections.namedtuple('RecordedRequest', ['method', 'path', 'headers', 'body'])


class MockResponse:

    def __init__(self, status=200, body=b'', headers=None):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode('utf-8')
        self.status = status
        self.body = body
        self.headers = list((headers or {}).items()) if isinstance(headers, dict) \
            else list(headers or [])


def ok(body=JSON_OK, headers=None):
    return MockResponse(200, body, headers)


def auth_session_cookie(value, name='AuthSession'):
    return MockResponse(200, b'{"ok":true,"name":"user","roles":[]}', [
        ('Set-Cookie', '{0}={1}; Version=1; Path=/; HttpOnly'.format(name, value))])


class MockServer:
    """Serve queued responses in order and record every request.

    Set ``dispatch`` to a callable taking a `RecordedRequest` to answer
    based on the request instead.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._responses = collections.deque()
        self._requests = []
        self.dispatch = None
        self._server = ThreadingHTTPServer(('127.0.0.1', 0), self._handler())
        self._server.daemon_threads = True
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()

    def start(self):
        self._thread.start()

    def stop(self):
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=1)

    def url(self, path='/'):
        host, port = self._server.server_address[:2]
        return 'http://{0}:{1}{2}'.format(host, port, path)

    def enqueue(self, *responses):
        with self._lock:
            self._responses.extend(responses)

    @property
    def requests(self):
        with self._lock:
            return list(self._requests)

    def paths(self):
        return [r.path for r in self.requests]

    def _respond(self, request):
        with self._lock:
            self._requests.append(request)
            if self.dispatch is None:
                if self._responses:
                    return self._responses.popleft()
                return MockResponse(500, b'{"error":"no_response_queued"}')
        return self.dispatch(request)

    def _handler(self):
        server = self

        class Handler(BaseHTTPRequestHandler):
            protocol_version = 'HTTP/1.1'

            def _read_body(self):
                if self.headers.get('Transfer-Encoding', '').lower() == 'chunked':
                    body = b''
                    while True:
                        size = int(self.rfile.readline().split(b';')[0].strip(), 16)
                        if size == 0:
                            self.rfile.readline()
                            return body
                        body += self.rfile.read(size)
                        self.rfile.readline()
                length = int(self.headers.get('Content-Length') or 0)
                return self.rfile.read(length) if length else b''

            def _handle(self):
                request = RecordedRequest(self.command, self.path, self.headers,
                                          self._read_body())
                response = server._respond(request)
                self.send_response(response.status)
                for name, value in response.headers:
                    self.send_header(name, value)
                self.send_header('Content-Type', 'application/json')
                self.send_header('Content-Length', str(len(response.body)))
                self.end_headers()
                if self.command != 'HEAD':
                    self.wfile.write(response.body)

            do_GET = do_POST = do_PUT = do_DELETE = do_HEAD = _handle

            def log_message(self, format, *args):
                return

        return Handler
