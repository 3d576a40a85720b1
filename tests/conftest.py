"""Pytest configuration: an in-process HTTP stub server."""
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class StubHandler(BaseHTTPRequestHandler):
    def _handle(self):
        stub = self.server.stub
        length = int(self.headers.get("Content-Length", 0) or 0)
        body = self.rfile.read(length).decode("utf-8", errors="replace") if length else ""
        headers = {k.lower(): v for k, v in self.headers.items()}
        with stub.lock:
            stub.requests.append((self.command, self.path, headers, body))
            stub.inflight += 1
            stub.max_inflight = max(stub.max_inflight, stub.inflight)
        try:
            if stub.latency:
                time.sleep(stub.latency)
        finally:
            # released before replying so the client cannot start its next
            # request while this one is still counted
            with stub.lock:
                stub.inflight -= 1
        status, payload, extra = stub.routes.get(self.path, (404, b"", {}))
        self.send_response(status)
        for k, v in extra.items():
            self.send_header(k, v)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _handle
    do_POST = _handle
    do_PUT = _handle
    do_DELETE = _handle

    def log_message(self, format, *args):
        pass


class StubServer:
    def __init__(self):
        self.routes = {}
        self.requests = []
        self.latency = 0.0
        self.inflight = 0
        self.max_inflight = 0
        self.lock = threading.Lock()
        self._httpd = ThreadingHTTPServer(("127.0.0.1", 0), StubHandler)
        self._httpd.daemon_threads = True
        self._httpd.stub = self
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}"

    def route(self, path, status=200, body=b"", headers=None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[path] = (status, body, headers or {})

    def request_headers(self, path):
        return [h for _, p, h, _ in self.requests if p == path]

    def start(self):
        self._thread.start()

    def stop(self):
        self._httpd.shutdown()
        self._httpd.server_close()


@pytest.fixture
def stub_server():
    server = StubServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def make_wordlist(tmp_path):
    def _make(content, name="words.txt"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _make
