from __future__ import annotations

import sys
from typing import Any

import requests

from .config import Settings
from .errors import (
    UpstreamDecodeError,
    UpstreamRequestError,
    UpstreamStatusError,
    UpstreamTimeout,
)

POST_COLLECTION = "app.bsky.feed.post"
FEED_COLLECTION = "app.bsky.feed.generator"
LIST_COLLECTION = "app.bsky.graph.list"
STARTER_PACK_COLLECTION = "app.bsky.graph.starterpack"


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[xrpc] {message}", file=sys.stderr, flush=True)


def build_client(settings: Settings) -> Any:
    from lexrpc.client import Client

    return Client(address=settings.appview, timeout=settings.timeout)


def _status_text(exc: requests.HTTPError) -> str:
    response = exc.response
    if response is None:
        return "unknown"
    reason = getattr(response, "reason", None) or ""
    return f"{response.status_code} {reason}".strip()


def client_call(operation: str, fn: Any, **params: Any) -> dict[str, Any]:
    try:
        result = fn(**params)
    except requests.Timeout as exc:
        _log(f"{operation} timed out: {exc}")
        raise UpstreamTimeout(operation) from exc
    except requests.exceptions.JSONDecodeError as exc:
        raise UpstreamDecodeError(operation) from exc
    except requests.HTTPError as exc:
        _log(f"{operation} returned an error status: {exc}")
        raise UpstreamStatusError(operation, _status_text(exc)) from exc
    except requests.RequestException as exc:
        _log(f"{operation} failed: {exc}")
        raise UpstreamRequestError(operation) from exc
    except ValueError as exc:
        raise UpstreamDecodeError(operation) from exc
    if not isinstance(result, dict):
        raise UpstreamDecodeError(operation)
    return result


def at_uri(did: str, collection: str, rkey: str) -> str:
    repo = did if did.startswith("at://") else f"at://{did}"
    return f"{repo}/{collection}/{rkey}"


def get_post_thread(client: Any, did: str, rkey: str) -> dict[str, Any]:
    return client_call(
        "getPost",
        client.app.bsky.feed.getPostThread,
        uri=at_uri(did, POST_COLLECTION, rkey),
        depth=0,
    )


def get_profile(client: Any, did: str) -> dict[str, Any]:
    return client_call("getProfile", client.app.bsky.actor.getProfile, actor=did)


def get_feed_generator(client: Any, did: str, rkey: str) -> dict[str, Any]:
    return client_call(
        "getFeed",
        client.app.bsky.feed.getFeedGenerator,
        feed=at_uri(did, FEED_COLLECTION, rkey),
    )


def get_list(client: Any, did: str, rkey: str) -> dict[str, Any]:
    return client_call(
        "getList",
        client.app.bsky.graph.getList,
        limit=1,
        **{"list": at_uri(did, LIST_COLLECTION, rkey)},
    )


def get_starter_pack(client: Any, did: str, rkey: str) -> dict[str, Any]:
    return client_call(
        "getPack",
        client.app.bsky.graph.getStarterPack,
        starterPack=at_uri(did, STARTER_PACK_COLLECTION, rkey),
    )
