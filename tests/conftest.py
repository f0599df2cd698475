"""Shared fixtures for hookrelay tests."""

from __future__ import annotations

import json
from typing import Iterable, List, Optional

import pytest
from aiohttp.test_utils import make_mocked_request

from hookrelay import ResponseWriter, create_handler

SAMPLE_PAYLOAD = {"some": "github", "object": "with", "properties": True}


class FakePayload:
    """Request body stream that yields chunks and may fail part way."""

    def __init__(self, chunks: Iterable[bytes] = (), error: Optional[BaseException] = None):
        self.chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.error = error
        self.consumed = False

    async def iter_any(self):
        self.consumed = True
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


def make_request(
    path: str = "/",
    method: str = "POST",
    headers: Optional[dict] = None,
    chunks: Iterable[bytes] = (),
    error: Optional[BaseException] = None,
):
    """Build a mocked aiohttp request carrying bogus GitHub headers.

    Pass a header with value None to leave it out.
    """
    base = {
        "X-Hub-Signature": "bogus",
        "X-GitHub-Event": "bogus",
        "X-GitHub-Delivery": "bogus",
    }
    base.update(headers or {})
    base = {k: v for k, v in base.items() if v is not None}
    return make_mocked_request(
        method,
        path,
        headers=base,
        payload=FakePayload(chunks, error),
    )


class CallbackRecorder:
    """Completion callback that remembers every call."""

    def __init__(self) -> None:
        self.calls: List[Optional[Exception]] = []

    def __call__(self, err: Optional[Exception]) -> None:
        self.calls.append(err)

    @property
    def error(self) -> Optional[Exception]:
        assert len(self.calls) == 1, f"expected one callback, got {len(self.calls)}"
        return self.calls[0]


@pytest.fixture
def handler():
    return create_handler({"path": "/", "secret": "bogus"})


@pytest.fixture
def response():
    return ResponseWriter()


@pytest.fixture
def callback():
    return CallbackRecorder()


@pytest.fixture
def sample_json():
    return json.dumps(SAMPLE_PAYLOAD)
