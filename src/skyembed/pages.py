from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from typing import Any

from . import xrpc
from .compose import (
    FEED_LABEL,
    STARTER_PACK_LABEL,
    compose,
    creator_line,
    list_label,
    stats_line,
)
from .config import Settings
from .embeds import Author, Thread, decode_author, decode_thread
from .identity import (
    IdentityResolution,
    clean_actor,
    handle_alias,
    resolve,
    resolve_service_endpoint,
)
from .normalize import NormalizedPost, normalize


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[pages] {message}", file=sys.stderr, flush=True)


@dataclass(frozen=True)
class LoadedPost:
    identity: IdentityResolution
    post_id: str
    thread: Thread
    author: Author
    normalized: NormalizedPost
    description: str
    stats: str


@dataclass(frozen=True)
class LoadedPage:
    """Data for profile, feed, list and starter-pack pages."""

    kind: str
    identity: IdentityResolution
    record_id: str
    data: dict[str, Any]


def _with_alias(author: Author, identity: IdentityResolution) -> Author:
    alias = handle_alias(identity.document)
    if not alias:
        return author
    return replace(author, handle=alias, display_name=author.display_name or alias)


def _apply_alias(payload: dict[str, Any], identity: IdentityResolution) -> None:
    alias = handle_alias(identity.document)
    if not alias:
        return
    payload["handle"] = alias
    if not payload.get("displayName"):
        payload["displayName"] = alias


def _creator_description(label: str, creator: dict[str, Any], text: Any) -> str:
    author = decode_author(creator)
    line = creator_line(label, author.display_name, author.handle)
    return f"{line}\n\n{text if isinstance(text, str) else ''}"


def load_post(
    actor: str,
    rkey: str,
    *,
    client: Any,
    settings: Settings,
    photo_num: Any = None,
) -> LoadedPost:
    identity = resolve(actor, client=client, settings=settings)
    post_id = clean_actor(rkey)
    payload = xrpc.get_post_thread(client, identity.canonical_id, post_id)
    thread = decode_thread(payload)
    normalized = normalize(
        thread,
        photo_num=photo_num,
        endpoint_resolver=lambda did: resolve_service_endpoint(did, settings=settings),
        default_pds=settings.default_pds,
    )
    _log(f"Loaded post {identity.canonical_id}/{post_id}")
    return LoadedPost(
        identity=identity,
        post_id=post_id,
        thread=thread,
        author=_with_alias(thread.post.author, identity),
        normalized=normalized,
        description=compose(normalized.embed, thread),
        stats=stats_line(thread.post),
    )


def load_profile(actor: str, *, client: Any, settings: Settings) -> LoadedPage:
    identity = resolve(actor, client=client, settings=settings)
    profile = xrpc.get_profile(client, identity.canonical_id)
    _apply_alias(profile, identity)
    return LoadedPage(
        kind="profile", identity=identity, record_id="", data=profile
    )


def load_feed(
    actor: str, rkey: str, *, client: Any, settings: Settings
) -> LoadedPage:
    identity = resolve(actor, client=client, settings=settings)
    record_id = clean_actor(rkey)
    response = xrpc.get_feed_generator(client, identity.canonical_id, record_id)
    view = response.get("view") if isinstance(response.get("view"), dict) else {}
    creator = view.get("creator") if isinstance(view.get("creator"), dict) else {}
    _apply_alias(creator, identity)
    view["creator"] = creator
    view["description"] = _creator_description(
        FEED_LABEL, creator, view.get("description")
    )
    data = {
        "view": view,
        "isOnline": bool(response.get("isOnline")),
        "isValid": bool(response.get("isValid")),
    }
    return LoadedPage(kind="feed", identity=identity, record_id=record_id, data=data)


def load_list(
    actor: str, rkey: str, *, client: Any, settings: Settings
) -> LoadedPage:
    identity = resolve(actor, client=client, settings=settings)
    record_id = clean_actor(rkey)
    response = xrpc.get_list(client, identity.canonical_id, record_id)
    view = response.get("list") if isinstance(response.get("list"), dict) else {}
    creator = view.get("creator") if isinstance(view.get("creator"), dict) else {}
    _apply_alias(creator, identity)
    view["creator"] = creator
    view["description"] = _creator_description(
        list_label(str(view.get("purpose") or "")), creator, view.get("description")
    )
    return LoadedPage(kind="list", identity=identity, record_id=record_id, data=view)


def load_pack(
    actor: str, rkey: str, *, client: Any, settings: Settings
) -> LoadedPage:
    identity = resolve(actor, client=client, settings=settings)
    record_id = clean_actor(rkey)
    response = xrpc.get_starter_pack(client, identity.canonical_id, record_id)
    pack = (
        response.get("starterPack")
        if isinstance(response.get("starterPack"), dict)
        else {}
    )
    creator = pack.get("creator") if isinstance(pack.get("creator"), dict) else {}
    _apply_alias(creator, identity)
    pack["creator"] = creator
    record = pack.get("record") if isinstance(pack.get("record"), dict) else {}
    record["description"] = _creator_description(
        STARTER_PACK_LABEL, creator, record.get("description")
    )
    pack["record"] = record
    return LoadedPage(
        kind="starter-pack", identity=identity, record_id=record_id, data=pack
    )
