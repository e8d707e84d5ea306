"""Shared pytest fixtures and configuration

This file contains fixtures that can be used across all test files.
Pytest automatically discovers this file and makes fixtures available.

Nothing here touches the network: BlueskyClient gets a real atproto Request
whose httpx transport is an httpx.MockTransport routed to a FakePDS that
serves canned XRPC responses per method. Status mapping, JSON decoding and
model validation all run through the SDK as they would in production.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx
import pytest
from atproto_client.request import Request

from socials.bluesky_client import BlueskyClient, BlueskyConfig

# ==================== Canned XRPC bodies ====================

SESSION_BODY = {"accessJwt": "jwt-123", "refreshJwt": "refresh-456", "did": "did:plc:me", "handle": "me.test"}
CREATED_BODY = {"uri": "at://did:plc:me/app.bsky.feed.post/3newpost", "cid": "bafynew"}
BLOB_BODY = {
    "blob": {
        "$type": "blob",
        "ref": {"$link": "bafkreiblob"},
        "mimeType": "image/png",
        "size": 1234,
    }
}


def blob_body(link, mime_type="image/png", size=10):
    """A com.atproto.repo.uploadBlob body for a blob with CID link `link`."""
    return {"blob": {"$type": "blob", "ref": {"$link": link}, "mimeType": mime_type, "size": size}}


def record_body(uri, cid, reply=None, text="hi"):
    """A com.atproto.repo.getRecord body for an app.bsky.feed.post record."""
    value: dict[str, Any] = {"$type": "app.bsky.feed.post", "text": text, "createdAt": "2025-10-30T23:00:00Z"}
    if reply is not None:
        value["reply"] = reply
    return {"uri": uri, "cid": cid, "value": value}


# ==================== Fake PDS ====================


@dataclass
class XrpcCall:
    http_method: str
    method: str
    url: str = ""
    params: dict = field(default_factory=dict)
    headers: dict = field(default_factory=dict)
    content: bytes = b""

    @property
    def json(self):
        return json.loads(self.content)


@dataclass
class _Canned:
    status_code: int = 200
    json_data: Any = None
    content: bytes | None = None

    def build(self, request):
        if self.content is not None:
            return httpx.Response(
                self.status_code, content=self.content, headers={"Content-Type": "application/json"}, request=request
            )
        if self.json_data is None:
            return httpx.Response(self.status_code, request=request)
        return httpx.Response(self.status_code, json=self.json_data, request=request)


class FakePDS:
    """
    httpx.MockTransport handler standing in for a PDS.

    Responses are queued per XRPC method and served in order; the last one is
    repeated once the queue is down to a single entry. `content` sends a raw
    body labelled as JSON (for undecodable responses).
    """

    def __init__(self):
        self.routes: dict[str, list] = {}
        self.calls: list[XrpcCall] = []

    def add(self, method, status_code=200, json_data=None, content=None):
        self.routes.setdefault(method, []).append(_Canned(status_code, json_data, content))
        return self

    def add_error(self, method, exc):
        self.routes.setdefault(method, []).append(exc)
        return self

    def calls_to(self, method):
        return [c for c in self.calls if c.method == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/xrpc/", 1)[1]
        self.calls.append(
            XrpcCall(
                http_method=request.method,
                method=method,
                url=str(request.url),
                params=dict(request.url.params),
                headers=dict(request.headers),
                content=request.read(),
            )
        )

        queue = self.routes.get(method)
        if not queue:
            raise AssertionError(f"Unexpected XRPC call: {request.method} {method}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item.build(request)


@pytest.fixture
def fake_pds():
    return FakePDS()


@pytest.fixture
def pds_request(fake_pds):
    """An atproto Request whose HTTP transport is `fake_pds`"""
    request = Request(transport=httpx.MockTransport(fake_pds))
    yield request
    request.close()


@pytest.fixture
def bsky_client(pds_request):
    return BlueskyClient(BlueskyConfig(pds_url="https://pds.test"), request=pds_request)


# ==================== File System Fixtures ====================


@pytest.fixture
def png_file(tmp_path):
    """A real 40x20 PNG on disk"""
    from PIL import Image

    path = tmp_path / "chart.png"
    Image.new("RGB", (40, 20), color=(200, 16, 46)).save(path, format="PNG")
    return path


@pytest.fixture
def sized_file(tmp_path):
    """Factory fixture: write a file of exactly `size` bytes"""

    def _create(size, name="blob.png"):
        path = tmp_path / name
        path.write_bytes(b"\0" * size)
        return path

    return _create


# ==================== Time Fixtures ====================


@pytest.fixture
def frozen_time():
    """Freeze time for testing (requires freezegun)"""
    from freezegun import freeze_time

    frozen = freeze_time("2025-10-31 20:00:00")
    frozen.start()

    yield datetime(2025, 10, 31, 20, 0, 0)

    frozen.stop()


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
