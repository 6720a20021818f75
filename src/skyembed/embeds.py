"""Typed view of the ``getPostThread`` document.

The AppView returns embeds as ``$type``-tagged JSON objects nested up to three
levels deep. This module decodes that JSON once into small frozen dataclasses
so the normalizer can dispatch on Python types instead of re-reading raw
dictionaries. Decoding never fails: unexpected shapes decode to
``UnknownEmbed`` / ``OtherRecord`` and missing scalars decode to empty values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

IMAGES_VIEW = "app.bsky.embed.images#view"
EXTERNAL_VIEW = "app.bsky.embed.external#view"
VIDEO_VIEW = "app.bsky.embed.video#view"
RECORD_WITH_MEDIA_VIEW = "app.bsky.embed.recordWithMedia#view"
RECORD_VIEW = "app.bsky.embed.record#view"

VIEW_RECORD = "app.bsky.embed.record#viewRecord"
LIST_VIEW = "app.bsky.graph.defs#listView"
GENERATOR_VIEW = "app.bsky.feed.defs#generatorView"
STARTER_PACK_VIEW = "app.bsky.graph.defs#starterPackViewBasic"

MOD_LIST = "app.bsky.graph.defs#modlist"
CURATE_LIST = "app.bsky.graph.defs#curatelist"


@dataclass(frozen=True)
class Author:
    did: str = ""
    handle: str = ""
    display_name: str = ""
    avatar: str = ""

    @property
    def name(self) -> str:
        return self.display_name or self.handle


@dataclass(frozen=True)
class AspectRatio:
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class ImageView:
    fullsize: str
    alt: str
    aspect_ratio: AspectRatio


@dataclass(frozen=True)
class ImagesEmbed:
    images: tuple[ImageView, ...]


@dataclass(frozen=True)
class ExternalEmbed:
    uri: str
    title: str
    description: str
    thumb: str


@dataclass(frozen=True)
class VideoEmbed:
    cid: str
    thumbnail: str
    aspect_ratio: AspectRatio


@dataclass(frozen=True)
class QuotedPost:
    author: Author
    text: str
    embeds: tuple["Embed", ...]


@dataclass(frozen=True)
class ListRecord:
    uri: str
    name: str
    purpose: str
    avatar: str
    description: str
    creator: Author


@dataclass(frozen=True)
class FeedRecord:
    uri: str
    display_name: str
    avatar: str
    description: str
    creator: Author


@dataclass(frozen=True)
class StarterPackRecord:
    uri: str
    name: str
    description: str
    creator: Author


@dataclass(frozen=True)
class OtherRecord:
    type: str


Record = Union[QuotedPost, ListRecord, FeedRecord, StarterPackRecord, OtherRecord]


@dataclass(frozen=True)
class RecordEmbed:
    record: Record


@dataclass(frozen=True)
class RecordWithMediaEmbed:
    media: "Embed"
    record: Record


@dataclass(frozen=True)
class UnknownEmbed:
    type: str


Embed = Union[
    ImagesEmbed,
    ExternalEmbed,
    VideoEmbed,
    RecordEmbed,
    RecordWithMediaEmbed,
    UnknownEmbed,
]


@dataclass(frozen=True)
class Post:
    uri: str
    author: Author
    text: str
    created_at: str
    embed: Optional[Embed]
    reply_count: int = 0
    repost_count: int = 0
    like_count: int = 0
    quote_count: int = 0


@dataclass(frozen=True)
class Thread:
    post: Post
    parent: Optional[Post]
    raw: dict[str, Any]

    @property
    def is_reply(self) -> bool:
        return self.parent is not None


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return 0


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _type(value: Any) -> str:
    return _str(_dict(value).get("$type"))


def decode_author(value: Any) -> Author:
    data = _dict(value)
    return Author(
        did=_str(data.get("did")),
        handle=_str(data.get("handle")),
        display_name=_str(data.get("displayName")),
        avatar=_str(data.get("avatar")),
    )


def decode_aspect_ratio(value: Any) -> AspectRatio:
    data = _dict(value)
    return AspectRatio(width=_int(data.get("width")), height=_int(data.get("height")))


def _decode_images(data: dict[str, Any]) -> ImagesEmbed:
    images = data.get("images")
    if not isinstance(images, list):
        images = []
    return ImagesEmbed(
        images=tuple(
            ImageView(
                fullsize=_str(item.get("fullsize")),
                alt=_str(item.get("alt")),
                aspect_ratio=decode_aspect_ratio(item.get("aspectRatio")),
            )
            for item in images
            if isinstance(item, dict)
        )
    )


def _decode_external(data: dict[str, Any]) -> ExternalEmbed:
    external = _dict(data.get("external"))
    return ExternalEmbed(
        uri=_str(external.get("uri")),
        title=_str(external.get("title")),
        description=_str(external.get("description")),
        thumb=_str(external.get("thumb")),
    )


def _decode_video(data: dict[str, Any]) -> VideoEmbed:
    return VideoEmbed(
        cid=_str(data.get("cid")),
        thumbnail=_str(data.get("thumbnail")),
        aspect_ratio=decode_aspect_ratio(data.get("aspectRatio")),
    )


def decode_record(value: Any) -> Record:
    data = _dict(value)
    rtype = _type(data)
    if rtype == VIEW_RECORD:
        embeds = data.get("embeds")
        return QuotedPost(
            author=decode_author(data.get("author")),
            text=_str(_dict(data.get("value")).get("text")),
            embeds=tuple(
                embed
                for embed in (decode_embed(item) for item in embeds)
                if embed is not None
            )
            if isinstance(embeds, list)
            else (),
        )
    if rtype == LIST_VIEW:
        return ListRecord(
            uri=_str(data.get("uri")),
            name=_str(data.get("name")),
            purpose=_str(data.get("purpose")),
            avatar=_str(data.get("avatar")),
            description=_str(data.get("description")),
            creator=decode_author(data.get("creator")),
        )
    if rtype == GENERATOR_VIEW:
        return FeedRecord(
            uri=_str(data.get("uri")),
            display_name=_str(data.get("displayName")),
            avatar=_str(data.get("avatar")),
            description=_str(data.get("description")),
            creator=decode_author(data.get("creator")),
        )
    if rtype == STARTER_PACK_VIEW:
        record = _dict(data.get("record"))
        return StarterPackRecord(
            uri=_str(data.get("uri")),
            name=_str(record.get("name")),
            description=_str(record.get("description")),
            creator=decode_author(data.get("creator")),
        )
    return OtherRecord(type=rtype)


def decode_embed(value: Any) -> Optional[Embed]:
    if not isinstance(value, dict) or not value:
        return None
    etype = _type(value)
    if etype == IMAGES_VIEW:
        return _decode_images(value)
    if etype == EXTERNAL_VIEW:
        return _decode_external(value)
    if etype == VIDEO_VIEW:
        return _decode_video(value)
    if etype == RECORD_WITH_MEDIA_VIEW:
        media = decode_embed(value.get("media"))
        return RecordWithMediaEmbed(
            media=media if media is not None else UnknownEmbed(type=""),
            record=decode_record(_dict(value.get("record")).get("record")),
        )
    if etype == RECORD_VIEW:
        return RecordEmbed(record=decode_record(value.get("record")))
    if not etype:
        return None
    return UnknownEmbed(type=etype)


def decode_post(value: Any) -> Post:
    data = _dict(value)
    record = _dict(data.get("record"))
    return Post(
        uri=_str(data.get("uri")),
        author=decode_author(data.get("author")),
        text=_str(record.get("text")),
        created_at=_str(record.get("createdAt")),
        embed=decode_embed(data.get("embed")),
        reply_count=_int(data.get("replyCount")),
        repost_count=_int(data.get("repostCount")),
        like_count=_int(data.get("likeCount")),
        quote_count=_int(data.get("quoteCount")),
    )


def decode_thread(payload: dict[str, Any]) -> Thread:
    thread = _dict(payload.get("thread"))
    parent_node = _dict(thread.get("parent"))
    parent_post = parent_node.get("post")
    return Thread(
        post=decode_post(thread.get("post")),
        parent=decode_post(parent_post) if isinstance(parent_post, dict) else None,
        raw=payload,
    )
