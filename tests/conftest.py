from __future__ import annotations

import io
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Optional, Tuple

import pytest
from requests.structures import CaseInsensitiveDict
from rich.console import Console

from sharelink import log


class _Handler(BaseHTTPRequestHandler):
    def _serve(self, method: str) -> None:
        script = self.server.script
        script.requests.append((method, self.path, {k.lower(): v for k, v in self.headers.items()}))
        route = script.routes.get(self.path) or {"status": 404, "headers": {}, "body": b"", "delay": 0.0, "head_status": None}

        if route["delay"]:
            time.sleep(route["delay"])

        status = route["status"]
        if method == "HEAD" and route["head_status"]:
            status = route["head_status"]

        body = route["body"]
        self.send_response(status)
        for k, v in route["headers"].items():
            self.send_header(k, v)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if method == "GET" and body:
            self.wfile.write(body)

    def do_HEAD(self):
        self._serve("HEAD")

    def do_GET(self):
        self._serve("GET")

    def log_message(self, format, *args):
        pass


class ScriptedServer:
    """Local HTTP server answering each path with a scripted response."""

    def __init__(self) -> None:
        self.routes: Dict[str, dict] = {}
        self.requests: List[Tuple[str, str, Dict[str, str]]] = []
        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
        self.httpd.script = self
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    @property
    def port(self) -> int:
        return self.httpd.server_address[1]

    def url(self, path: str) -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    def add(
        self,
        path: str,
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b"",
        delay: float = 0.0,
        head_status: Optional[int] = None,
    ) -> None:
        self.routes[path] = {
            "status": status,
            "headers": dict(headers or {}),
            "body": body,
            "delay": delay,
            "head_status": head_status,
        }

    def redirect(self, path: str, to: str, status: int = 302) -> None:
        self.add(path, status=status, headers={"Location": to})

    def chain(self, n: int, final_status: int = 200) -> str:
        """/r0 -> /r1 -> ... -> /r{n-1} -> /final; returns the start URL."""
        for i in range(n):
            nxt = f"/r{i + 1}" if i + 1 < n else "/final"
            self.redirect(f"/r{i}", nxt)
        self.add("/final", status=final_status)
        return self.url("/r0" if n else "/final")


@pytest.fixture
def server():
    s = ScriptedServer()
    s.thread.start()
    try:
        yield s
    finally:
        s.httpd.shutdown()
        s.httpd.server_close()


class FakeResponse:
    def __init__(self, status: int, headers: Optional[Dict[str, str]] = None, body: bytes = b""):
        self.status_code = status
        self.headers = CaseInsensitiveDict(headers or {})
        self.encoding = "utf-8"
        self._body = body
        self.closed = False

    def iter_content(self, chunk_size=1):
        if self._body:
            yield self._body

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for requests.Session; answers by exact URL."""

    def __init__(self, script: Dict[str, object]):
        self.script = script
        self.calls: List[Tuple[str, str, dict]] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        r = self.script.get(url)
        if isinstance(r, Exception):
            raise r
        if r is None:
            return FakeResponse(404)
        return r


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def log_buffer(monkeypatch):
    buf = io.StringIO()
    monkeypatch.setattr(log, "console", Console(file=buf, width=400, highlight=False))
    return buf


@pytest.fixture(autouse=True)
def _quiet_by_default(monkeypatch):
    monkeypatch.setattr(log, "_verbose", False)
