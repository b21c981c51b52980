"""Shared fixtures: an in-process fake of the website and GitHub endpoints."""
import json

import httpx
import pytest

import layerchart_docs_server as server


class FakeWeb:
    """Serves canned responses by exact URL; anything unknown is a 404."""

    def __init__(self):
        self.responses = {}
        self.requests = []

    def add(self, url, body="", status=200):
        self.responses[url] = (status, body)

    def add_json(self, url, payload, status=200):
        self.responses[url] = (status, json.dumps(payload))

    def fail(self, url, message="connection refused"):
        self.responses[url] = httpx.ConnectError(message)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.responses.get(str(request.url), (404, "404: Not Found"))
        if isinstance(reply, Exception):
            raise reply
        status, body = reply
        return httpx.Response(status, text=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler),
            headers={"User-Agent": server.USER_AGENT},
        )


@pytest.fixture
def web(monkeypatch):
    fake = FakeWeb()
    monkeypatch.setattr(server, "_http_client", fake.client)
    return fake


@pytest.fixture
def listing(web):
    """Docs directories with two components, one example and a stray file."""
    web.add_json(server._contents_url("components"), [
        {"name": "BarChart", "type": "dir"},
        {"name": "Axis", "type": "dir"},
        {"name": "README.md", "type": "file"},
    ])
    web.add_json(server._contents_url("examples"), [
        {"name": "Tooltip", "type": "dir"},
        {"name": "BarChart", "type": "dir"},
    ])
    return web
