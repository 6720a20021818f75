from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from .compose import to_notation
from .errors import OEmbedError

MAX_AUTHOR_BYTES = 256
ELLIPSIS = "..."

_TRUE_VALUES = frozenset({"1", "t", "true"})
_FALSE_VALUES = frozenset({"0", "f", "false"})


def _int_param(params: Mapping[str, Any], name: str) -> int:
    raw = str(params.get(name) or "").strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise OEmbedError(f"genOembed: {name} is not a number") from exc


def _bool_param(params: Mapping[str, Any], name: str) -> bool:
    raw = str(params.get(name) or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise OEmbedError(f"genOembed: {name} is not a boolean")


def truncate_bytes(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` UTF-8 bytes, ending in an ellipsis."""
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    if limit >= len(ELLIPSIS):
        kept = encoded[: limit - len(ELLIPSIS)].decode("utf-8", errors="ignore")
        return kept + ELLIPSIS
    return encoded[: max(limit, 0)].decode("utf-8", errors="ignore")


def _profile_author(params: Mapping[str, Any]) -> str:
    followers = _int_param(params, "followers")
    follows = _int_param(params, "follows")
    posts = _int_param(params, "posts")
    labeler = _bool_param(params, "labeler")
    text = (
        f"👥 {to_notation(followers)} Followers - "
        f"🌐 {to_notation(follows)} Following - "
        f"✍️ {to_notation(posts)} Posts"
    )
    if labeler:
        text += " - 🏷️ Labeler"
    return text


def _post_author(params: Mapping[str, Any]) -> str:
    text = (
        f"💬 {to_notation(_int_param(params, 'replies'))}   "
        f"🔁 {to_notation(_int_param(params, 'reposts'))}   "
        f"❤️ {to_notation(_int_param(params, 'likes'))}   "
        f"📝 {to_notation(_int_param(params, 'quotes'))}"
    )
    description = str(params.get("description") or "")
    if not description:
        return text
    description = unquote(description)
    budget = MAX_AUTHOR_BYTES - len(f"{text}\n\n".encode("utf-8"))
    return f"{text}\n\n{truncate_bytes(description, max(budget, 0))}"


def _feed_author(params: Mapping[str, Any]) -> str:
    likes = _int_param(params, "likes")
    online = _bool_param(params, "online")
    valid = _bool_param(params, "valid")
    text = f"❤️ {to_notation(likes)} Likes"
    text += " - ✅ Online" if online else " - ❌ Not online"
    text += " - ✅ Valid" if valid else " - ❌ Not valid"
    return text


def build_oembed(
    params: Mapping[str, Any], *, provider_name: str, provider_url: str
) -> dict[str, str]:
    kind = str(params.get("for") or "")
    embed = {
        "version": "1.0",
        "type": "link",
        "provider_name": provider_name,
        "provider_url": provider_url,
        "author_name": "",
    }
    if kind == "profile":
        embed["author_name"] = _profile_author(params)
    elif kind == "post":
        embed["author_name"] = _post_author(params)
        media_message = str(params.get("mediaMsg") or "")
        if media_message:
            embed["provider_name"] = f"{provider_name} | {media_message}"
    elif kind == "feed":
        embed["author_name"] = _feed_author(params)
    else:
        raise OEmbedError("genOembed: Invalid option")
    return embed
