from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Union

from .errors import RouteError
from .mosaic import MosaicRedirect, MosaicStream, composite
from .normalize import (
    COMMON_KINDS,
    KIND_EXTERNAL,
    KIND_IMAGES,
    KIND_VIDEO,
    CanonicalEmbed,
)
from .pages import LoadedPost

MODE_RENDER = "render"
MODE_RAW = "raw"
MODE_MOSAIC = "mosaic"
MODE_JSON = "json"

_HOST_PREFIX_MODES = (
    ("mosaic.", MODE_MOSAIC),
    ("raw.", MODE_RAW),
    ("api.", MODE_JSON),
)
_OPERATION = "getPost"


@dataclass(frozen=True)
class RenderPayload:
    post: LoadedPost

    @property
    def embed(self) -> CanonicalEmbed:
        return self.post.normalized.embed

    @property
    def description(self) -> str:
        return self.post.description

    @property
    def post_id(self) -> str:
        return self.post.post_id

    @property
    def media_message(self) -> str:
        return self.post.normalized.media_message


@dataclass(frozen=True)
class Redirect:
    url: str


@dataclass(frozen=True)
class ByteStream:
    stream: MosaicStream
    content_type: str = MosaicStream.content_type


@dataclass(frozen=True)
class JsonPayload:
    payload: dict[str, Any]


RouteResult = Union[RenderPayload, Redirect, ByteStream, JsonPayload]


def mode_from_host(host: str) -> str:
    lowered = (host or "").lower()
    for prefix, mode in _HOST_PREFIX_MODES:
        if lowered.startswith(prefix):
            return mode
    return MODE_RENDER


def _mosaic(embed: CanonicalEmbed, *, ffmpeg: str | None) -> RouteResult:
    result = composite(embed.images, ffmpeg=ffmpeg)
    if isinstance(result, MosaicRedirect):
        return Redirect(url=result.url)
    return ByteStream(stream=result)


def _raw(embed: CanonicalEmbed, *, ffmpeg: str | None) -> RouteResult:
    if embed.kind == KIND_IMAGES:
        return _mosaic(embed, ffmpeg=ffmpeg)
    if embed.kind == KIND_EXTERNAL:
        if embed.is_gif:
            return Redirect(url=embed.external.uri)
        if embed.external.thumbnail:
            return Redirect(url=embed.external.thumbnail)
        raise RouteError(_OPERATION, "No suitable media found")
    if embed.kind == KIND_VIDEO:
        return Redirect(url=embed.video.blob_url)
    if embed.kind in COMMON_KINDS:
        if embed.common.avatar_url:
            return Redirect(url=embed.common.avatar_url)
        raise RouteError(_OPERATION, "No suitable media found")
    raise RouteError(_OPERATION, "Invalid type")


def json_dump(post: LoadedPost) -> dict[str, Any]:
    parsed = post.normalized.embed.to_dict()
    parsed.update(
        {
            "author": asdict(post.author),
            "did": post.identity.canonical_id,
            "postID": post.post_id,
            "description": post.description,
            "mediaMessage": post.normalized.media_message,
            "statsForTG": post.stats,
        }
    )
    return {"originalData": post.thread.raw, "parsedData": parsed}


def route(mode: str, post: LoadedPost, *, ffmpeg: str | None = None) -> RouteResult:
    embed = post.normalized.embed
    if mode == MODE_MOSAIC:
        if embed.kind != KIND_IMAGES:
            raise RouteError(_OPERATION, "Invalid type")
        return _mosaic(embed, ffmpeg=ffmpeg)
    if mode == MODE_RAW:
        return _raw(embed, ffmpeg=ffmpeg)
    if mode == MODE_JSON:
        return JsonPayload(payload=json_dump(post))
    return RenderPayload(post=post)
