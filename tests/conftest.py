from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from skyembed.config import Settings

DID = "did:plc:abc123"
HANDLE = "alice.example.com"


class FakeXrpcClient:
    """Attribute tree shaped like ``lexrpc.client.Client`` that records calls."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.app = SimpleNamespace(
            bsky=SimpleNamespace(
                feed=SimpleNamespace(
                    getPostThread=self._method("app.bsky.feed.getPostThread"),
                    getFeedGenerator=self._method("app.bsky.feed.getFeedGenerator"),
                ),
                actor=SimpleNamespace(
                    getProfile=self._method("app.bsky.actor.getProfile"),
                ),
                graph=SimpleNamespace(
                    getList=self._method("app.bsky.graph.getList"),
                    getStarterPack=self._method("app.bsky.graph.getStarterPack"),
                ),
            )
        )
        self.com = SimpleNamespace(
            atproto=SimpleNamespace(
                identity=SimpleNamespace(
                    resolveHandle=self._method("com.atproto.identity.resolveHandle"),
                )
            )
        )

    def _method(self, nsid: str):  # type: ignore[no-untyped-def]
        def _call(**params: Any) -> Any:
            self.calls.append((nsid, params))
            response = self.responses.get(nsid)
            if isinstance(response, BaseException):
                raise response
            if callable(response):
                return response(**params)
            return response

        return _call

    def called(self, nsid: str) -> list[dict[str, Any]]:
        return [params for name, params in self.calls if name == nsid]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        appview="https://appview.test",
        plc_directory="https://plc.test",
        default_pds="https://pds.default.test",
        timeout=2.0,
        ffmpeg="/usr/bin/ffmpeg",
    )


@pytest.fixture
def no_did_documents(monkeypatch) -> list[str]:
    """Make every DID document fetch come back empty and record the URLs."""
    import skyembed.identity as identity

    fetched: list[str] = []

    def _empty(url: str, *, limit: int, timeout: float) -> bytes | None:
        fetched.append(url)
        return None

    monkeypatch.setattr(identity, "_read_capped", _empty)
    return fetched


@pytest.fixture
def make_client():  # type: ignore[no-untyped-def]
    return FakeXrpcClient
