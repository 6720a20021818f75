from __future__ import annotations

import pytest

from skyembed.errors import OEmbedError
from skyembed.oembed import MAX_AUTHOR_BYTES, build_oembed, truncate_bytes

PROVIDER = {"provider_name": "xbsky.app", "provider_url": "https://xbsky.app"}


def test_profile_oembed() -> None:
    embed = build_oembed(
        {
            "for": "profile",
            "followers": "1500",
            "follows": "20",
            "posts": "3000000",
            "labeler": "true",
        },
        **PROVIDER,
    )
    assert embed == {
        "version": "1.0",
        "type": "link",
        "provider_name": "xbsky.app",
        "provider_url": "https://xbsky.app",
        "author_name": (
            "👥 1.5K Followers - 🌐 20 Following - ✍️ 3.0M Posts - 🏷️ Labeler"
        ),
    }


def test_post_oembed_with_media_message() -> None:
    embed = build_oembed(
        {
            "for": "post",
            "replies": "1",
            "reposts": "2",
            "likes": "3",
            "quotes": "4",
            "description": "hello%20world",
            "mediaMsg": "Photo 1 of 2",
        },
        **PROVIDER,
    )
    assert embed["author_name"] == "💬 1   🔁 2   ❤️ 3   📝 4\n\nhello world"
    assert embed["provider_name"] == "xbsky.app | Photo 1 of 2"


def test_post_oembed_is_capped() -> None:
    embed = build_oembed(
        {
            "for": "post",
            "replies": "0",
            "reposts": "0",
            "likes": "0",
            "quotes": "0",
            "description": "é" * 400,
        },
        **PROVIDER,
    )
    assert len(embed["author_name"].encode("utf-8")) <= MAX_AUTHOR_BYTES
    assert embed["author_name"].endswith("...")


def test_feed_oembed() -> None:
    embed = build_oembed(
        {"for": "feed", "likes": "12", "online": "t", "valid": "0"}, **PROVIDER
    )
    assert embed["author_name"] == "❤️ 12 Likes - ✅ Online - ❌ Not valid"


def test_invalid_kind() -> None:
    with pytest.raises(OEmbedError, match="Invalid option"):
        build_oembed({"for": "video"}, **PROVIDER)


def test_bad_number() -> None:
    with pytest.raises(OEmbedError):
        build_oembed(
            {"for": "feed", "likes": "many", "online": "1", "valid": "1"}, **PROVIDER
        )


def test_truncate_bytes_keeps_characters_whole() -> None:
    assert truncate_bytes("short", 10) == "short"
    truncated = truncate_bytes("ééééé", 8)
    assert truncated == "éé..."
    assert len(truncated.encode("utf-8")) <= 8
