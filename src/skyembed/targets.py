from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

_AT_URI_RE = re.compile(
    r"^at://(?P<repo>[^/?#]+)"
    r"(?:/(?P<collection>[^/?#]+)"
    r"(?:/(?P<rkey>[^/?#]+))?)?$",
    flags=re.IGNORECASE,
)
_LINK_HOST_RE = re.compile(
    r"^(?:[a-z0-9-]+\.)*(?:bsky\.app|xbsky\.app)$", flags=re.IGNORECASE
)

_COLLECTION_TO_KIND = {
    "app.bsky.feed.post": "post",
    "app.bsky.feed.generator": "feed",
    "app.bsky.graph.list": "list",
    "app.bsky.graph.starterpack": "starter-pack",
}
_SCOPE_TO_KIND = {
    "post": "post",
    "feed": "feed",
    "lists": "list",
}


@dataclass(frozen=True)
class LinkTarget:
    kind: str
    actor: str
    rkey: str | None = None
    photo_num: str | None = None


def parse_target(value: str) -> LinkTarget | None:
    """Parse a bsky.app (or mirror) link or ``at://`` URI into a page target."""
    raw = value.strip()
    if not raw:
        return None

    uri_match = _AT_URI_RE.match(raw)
    if uri_match:
        repo = uri_match.group("repo")
        collection = uri_match.group("collection")
        rkey = uri_match.group("rkey")
        if collection is None:
            return LinkTarget(kind="profile", actor=repo)
        kind = _COLLECTION_TO_KIND.get(collection)
        if kind is None or not rkey:
            return None
        return LinkTarget(kind=kind, actor=repo, rkey=rkey)

    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"}:
        return None
    if not _LINK_HOST_RE.match(parsed.hostname or ""):
        return None
    parts = [segment for segment in parsed.path.split("/") if segment]
    if len(parts) >= 2 and parts[0] == "profile":
        actor = parts[1]
        if len(parts) == 2:
            return LinkTarget(kind="profile", actor=actor)
        if len(parts) >= 4 and parts[2] in _SCOPE_TO_KIND:
            photo_num = None
            if parts[2] == "post" and len(parts) >= 6 and parts[4] == "photo":
                photo_num = parts[5]
            return LinkTarget(
                kind=_SCOPE_TO_KIND[parts[2]],
                actor=actor,
                rkey=parts[3],
                photo_num=photo_num,
            )
        return None
    if len(parts) >= 3 and parts[0] == "starter-pack":
        return LinkTarget(kind="starter-pack", actor=parts[1], rkey=parts[2])
    return None
