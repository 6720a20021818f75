from __future__ import annotations

import sys
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from .config import DEFAULT_PDS
from .embeds import (
    AspectRatio,
    Author,
    Embed,
    ExternalEmbed,
    FeedRecord,
    ImagesEmbed,
    ListRecord,
    Post,
    QuotedPost,
    Record,
    RecordEmbed,
    RecordWithMediaEmbed,
    StarterPackRecord,
    Thread,
    UnknownEmbed,
    VideoEmbed,
)

KIND_IMAGES = "images"
KIND_EXTERNAL = "external"
KIND_VIDEO = "video"
KIND_LIST = "list"
KIND_FEED = "feed"
KIND_STARTER_PACK = "starterPack"
KIND_UNKNOWN = "unknown"
COMMON_KINDS = frozenset({KIND_LIST, KIND_FEED, KIND_STARTER_PACK})

GIF_HOST = "media.tenor.com"
STARTER_PACK_MARKER = "app.bsky.graph.starterpack/"
STARTER_PACK_CARD_URL = "https://ogcard.cdn.bsky.app/start/{did}/{rkey}"


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[normalize] {message}", file=sys.stderr, flush=True)


@dataclass(frozen=True)
class CanonicalImage:
    url: str
    alt: str = ""
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class CanonicalExternal:
    uri: str = ""
    title: str = ""
    description: str = ""
    thumbnail: str = ""


@dataclass(frozen=True)
class CanonicalVideo:
    content_id: str = ""
    owner_id: str = ""
    aspect_ratio: AspectRatio = field(default_factory=AspectRatio)
    thumbnail: str = ""
    pds: str = ""

    @property
    def blob_url(self) -> str:
        pds = self.pds or DEFAULT_PDS
        return (
            f"{pds}/xrpc/com.atproto.sync.getBlob"
            f"?cid={self.content_id}&did={self.owner_id}"
        )


@dataclass(frozen=True)
class CommonEmbed:
    name: str = ""
    avatar_url: str = ""
    description: str = ""
    purpose: str = ""
    creator_handle: str = ""
    creator_display_name: str = ""
    creator_did: str = ""


@dataclass(frozen=True)
class CanonicalEmbed:
    kind: str = KIND_UNKNOWN
    images: tuple[CanonicalImage, ...] = ()
    external: CanonicalExternal = field(default_factory=CanonicalExternal)
    video: CanonicalVideo = field(default_factory=CanonicalVideo)
    common: CommonEmbed = field(default_factory=CommonEmbed)
    is_gif: bool = False

    def populated(self) -> list[str]:
        names = []
        if self.images:
            names.append("images")
        if self.external != CanonicalExternal():
            names.append("external")
        if self.video != CanonicalVideo():
            names.append("video")
        if self.common != CommonEmbed():
            names.append("common")
        return names

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        if self.kind == KIND_VIDEO:
            payload["video"]["blob_url"] = self.video.blob_url
        return payload


@dataclass(frozen=True)
class NormalizedPost:
    embed: CanonicalEmbed
    media_message: str = ""


_UNKNOWN = CanonicalEmbed()


def _from_media(embed: Optional[Embed], owner: Author) -> Optional[CanonicalEmbed]:
    if isinstance(embed, ImagesEmbed):
        return CanonicalEmbed(
            kind=KIND_IMAGES,
            images=tuple(
                CanonicalImage(
                    url=image.fullsize,
                    alt=image.alt,
                    width=image.aspect_ratio.width,
                    height=image.aspect_ratio.height,
                )
                for image in embed.images
            ),
        )
    if isinstance(embed, ExternalEmbed):
        return CanonicalEmbed(
            kind=KIND_EXTERNAL,
            external=CanonicalExternal(
                uri=embed.uri,
                title=embed.title,
                description=embed.description,
                thumbnail=embed.thumb,
            ),
        )
    if isinstance(embed, VideoEmbed):
        return CanonicalEmbed(
            kind=KIND_VIDEO,
            video=CanonicalVideo(
                content_id=embed.cid,
                owner_id=owner.did,
                aspect_ratio=embed.aspect_ratio,
                thumbnail=embed.thumbnail,
            ),
        )
    return None


def _from_record(record: Record) -> Optional[CanonicalEmbed]:
    if isinstance(record, ListRecord):
        return CanonicalEmbed(
            kind=KIND_LIST,
            common=_common_from(
                record.creator,
                name=record.name,
                avatar_url=record.avatar,
                description=record.description,
                purpose=record.purpose,
            ),
        )
    if isinstance(record, FeedRecord):
        return CanonicalEmbed(
            kind=KIND_FEED,
            common=_common_from(
                record.creator,
                name=record.display_name,
                avatar_url=record.avatar,
                description=record.description,
            ),
        )
    if isinstance(record, StarterPackRecord):
        return CanonicalEmbed(
            kind=KIND_STARTER_PACK,
            common=_common_from(
                record.creator,
                name=record.name,
                avatar_url=starter_pack_card_url(record.uri, record.creator.did),
                description=record.description,
            ),
        )
    return None


def _common_from(creator: Author, **fields: str) -> CommonEmbed:
    return CommonEmbed(
        creator_handle=creator.handle,
        creator_display_name=creator.display_name,
        creator_did=creator.did,
        **fields,
    )


def starter_pack_card_url(record_uri: str, creator_did: str) -> str:
    _, marker, pack_id = record_uri.partition(STARTER_PACK_MARKER)
    if not marker:
        return ""
    return STARTER_PACK_CARD_URL.format(did=creator_did, rkey=pack_id)


def _from_quote(record: Record) -> CanonicalEmbed:
    if isinstance(record, QuotedPost) and record.embeds:
        nested = record.embeds[0]
        found = _from_media(nested, record.author)
        if found is not None:
            return found
        if isinstance(nested, RecordWithMediaEmbed):
            return _from_media(nested.media, record.author) or _UNKNOWN
        if isinstance(nested, RecordEmbed):
            return _from_record(nested.record) or _UNKNOWN
        return _UNKNOWN
    return _from_record(record) or _UNKNOWN


def _dispatch(embed: Optional[Embed], author: Author) -> CanonicalEmbed:
    found = _from_media(embed, author)
    if found is not None:
        return found
    if isinstance(embed, RecordWithMediaEmbed):
        # The video blob lives with the quoted record's author here.
        owner = embed.record.author if isinstance(embed.record, QuotedPost) else author
        return _from_media(embed.media, owner) or _UNKNOWN
    if isinstance(embed, RecordEmbed):
        return _from_quote(embed.record)
    return _UNKNOWN


def _has_tag(post: Post) -> bool:
    return post.embed is not None and not isinstance(post.embed, UnknownEmbed)


def select_embed(thread: Thread) -> CanonicalEmbed:
    post = thread.post
    if _has_tag(post):
        return _dispatch(post.embed, post.author)
    if thread.parent is not None:
        # Only the direct parent is inspected; its own parent never is.
        return _dispatch(thread.parent.embed, thread.parent.author)
    return _UNKNOWN


def parse_photo_num(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _narrow_images(
    embed: CanonicalEmbed, photo_num: Any
) -> tuple[CanonicalEmbed, str]:
    index = parse_photo_num(photo_num)
    total = len(embed.images)
    if index is None or index < 1 or index > total:
        return embed, ""
    narrowed = replace(embed, images=(embed.images[index - 1],))
    if total <= 1:
        return narrowed, ""
    return narrowed, f"Photo {index} of {total}"


def _rewrite_gif(embed: CanonicalEmbed) -> CanonicalEmbed:
    try:
        parsed = urlparse(embed.external.uri)
    except ValueError:
        return embed
    if parsed.netloc != GIF_HOST:
        return embed
    # Query strings on the GIF URL get HTML-escaped by the template layer.
    return replace(
        embed,
        is_gif=True,
        external=replace(embed.external, uri=f"https://{GIF_HOST}{parsed.path}"),
    )


def _fill_creator_name(embed: CanonicalEmbed) -> CanonicalEmbed:
    if embed.common.creator_display_name:
        return embed
    return replace(
        embed,
        common=replace(
            embed.common, creator_display_name=embed.common.creator_handle
        ),
    )


def normalize(
    thread: Thread,
    *,
    photo_num: Any = None,
    endpoint_resolver: Callable[[str], str] | None = None,
    default_pds: str = DEFAULT_PDS,
) -> NormalizedPost:
    """Flatten the thread's embed union into one ``CanonicalEmbed``.

    ``photo_num`` is the 1-based photo index from per-photo links.
    ``endpoint_resolver`` maps a DID to its PDS and is only called for videos.
    """
    embed = select_embed(thread)
    media_message = ""
    if embed.kind == KIND_EXTERNAL:
        embed = _rewrite_gif(embed)
    elif embed.kind in COMMON_KINDS:
        embed = _fill_creator_name(embed)
    elif embed.kind == KIND_IMAGES:
        embed, media_message = _narrow_images(embed, photo_num)
    elif embed.kind == KIND_VIDEO:
        pds = default_pds
        if endpoint_resolver is not None and embed.video.owner_id:
            pds = endpoint_resolver(embed.video.owner_id)
        embed = replace(embed, video=replace(embed.video, pds=pds))
    _log(f"Normalized {thread.post.uri or 'post'} as {embed.kind}")
    return NormalizedPost(embed=embed, media_message=media_message)
