from __future__ import annotations

import pytest
import requests

from skyembed.errors import (
    UpstreamDecodeError,
    UpstreamRequestError,
    UpstreamStatusError,
    UpstreamTimeout,
)
from skyembed.xrpc import (
    at_uri,
    client_call,
    get_list,
    get_post_thread,
    get_starter_pack,
)


class _DummyResponse:
    def __init__(self, status_code: int, reason: str) -> None:
        self.status_code = status_code
        self.reason = reason


def _raising(exc: BaseException):  # type: ignore[no-untyped-def]
    def _call(**params):  # type: ignore[no-untyped-def]
        raise exc

    return _call


def test_timeout_maps_to_upstream_timeout() -> None:
    with pytest.raises(UpstreamTimeout) as excinfo:
        client_call("getPost", _raising(requests.ReadTimeout("slow")))
    assert str(excinfo.value) == (
        "getPost: Bluesky took too long to respond (timeout exceeded)"
    )


def test_connection_failure_maps_to_request_error() -> None:
    with pytest.raises(UpstreamRequestError) as excinfo:
        client_call("getProfile", _raising(requests.ConnectionError("refused")))
    assert str(excinfo.value) == "getProfile: Failed to do request"


def test_status_error_includes_status() -> None:
    exc = requests.HTTPError(response=_DummyResponse(400, "Bad Request"))
    with pytest.raises(UpstreamStatusError) as excinfo:
        client_call("getFeed", _raising(exc))
    assert str(excinfo.value) == "getFeed: Unexpected status (400 Bad Request)"
    assert excinfo.value.status == "400 Bad Request"


def test_decode_failures() -> None:
    with pytest.raises(UpstreamDecodeError):
        client_call("getList", _raising(ValueError("bad json")))
    with pytest.raises(UpstreamDecodeError) as excinfo:
        client_call("getList", lambda **params: ["not", "a", "dict"])
    assert str(excinfo.value) == "getList: Failed to decode response"


def test_success_returns_payload() -> None:
    assert client_call("getPost", lambda **params: {"ok": params}, a=1) == {
        "ok": {"a": 1}
    }


def test_at_uri() -> None:
    assert at_uri("did:plc:x", "app.bsky.feed.post", "3k") == (
        "at://did:plc:x/app.bsky.feed.post/3k"
    )


def test_fetchers_build_record_uris(make_client) -> None:
    client = make_client(
        {
            "app.bsky.feed.getPostThread": {"thread": {}},
            "app.bsky.graph.getList": {"list": {}},
            "app.bsky.graph.getStarterPack": {"starterPack": {}},
        }
    )

    get_post_thread(client, "did:plc:x", "3k")
    get_list(client, "did:plc:x", "abc")
    get_starter_pack(client, "did:plc:x", "pk")

    assert client.called("app.bsky.feed.getPostThread") == [
        {"uri": "at://did:plc:x/app.bsky.feed.post/3k", "depth": 0}
    ]
    assert client.called("app.bsky.graph.getList") == [
        {"limit": 1, "list": "at://did:plc:x/app.bsky.graph.list/abc"}
    ]
    assert client.called("app.bsky.graph.getStarterPack") == [
        {"starterPack": "at://did:plc:x/app.bsky.graph.starterpack/pk"}
    ]
