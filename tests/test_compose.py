from __future__ import annotations

from skyembed.compose import compose, list_label, stats_line, to_notation
from skyembed.embeds import (
    Author,
    Post,
    QuotedPost,
    RecordEmbed,
    RecordWithMediaEmbed,
    Thread,
    UnknownEmbed,
)
from skyembed.normalize import (
    KIND_EXTERNAL,
    KIND_LIST,
    KIND_STARTER_PACK,
    CanonicalEmbed,
    CanonicalExternal,
    CommonEmbed,
)

ALICE = Author(did="did:plc:alice", handle="alice.test", display_name="Alice")
BOB = Author(did="did:plc:bob", handle="bob.test")


def _post(text: str, *, embed=None, author: Author = ALICE) -> Post:
    return Post(
        uri="at://did:plc:alice/app.bsky.feed.post/1",
        author=author,
        text=text,
        created_at="",
        embed=embed,
    )


def test_plain_post_is_its_text() -> None:
    thread = Thread(post=_post("hello"), parent=None, raw={})
    assert compose(CanonicalEmbed(), thread) == "hello"


def test_quote_comes_before_reply() -> None:
    quote = QuotedPost(author=BOB, text="quoted", embeds=())
    thread = Thread(
        post=_post("mine", embed=RecordEmbed(record=quote)),
        parent=_post("parent text", author=BOB),
        raw={},
    )
    assert compose(CanonicalEmbed(), thread) == (
        "mine\n\n"
        "📝 Quoting bob.test (@bob.test):\nquoted\n\n"
        "💬 Replying to bob.test (@bob.test):\nparent text"
    )


def test_quote_with_media_is_attributed() -> None:
    quote = QuotedPost(author=ALICE, text="original", embeds=())
    embed = RecordWithMediaEmbed(media=UnknownEmbed(type=""), record=quote)
    thread = Thread(post=_post("", embed=embed), parent=None, raw={})
    assert compose(CanonicalEmbed(), thread) == (
        "📝 Quoting Alice (@alice.test):\noriginal"
    )


def test_empty_text_has_no_leading_separator() -> None:
    thread = Thread(post=_post(""), parent=_post("up", author=BOB), raw={})
    assert compose(CanonicalEmbed(), thread) == (
        "💬 Replying to bob.test (@bob.test):\nup"
    )


def test_external_link_context() -> None:
    embed = CanonicalEmbed(
        kind=KIND_EXTERNAL,
        external=CanonicalExternal(
            uri="https://example.com", title="Title", description="Summary"
        ),
    )
    thread = Thread(post=_post("look"), parent=None, raw={})
    assert compose(embed, thread) == "look\n\nTitle\nSummary"


def test_gif_has_no_link_context() -> None:
    embed = CanonicalEmbed(
        kind=KIND_EXTERNAL,
        external=CanonicalExternal(uri="https://media.tenor.com/x.gif", title="GIF"),
        is_gif=True,
    )
    thread = Thread(post=_post("lol"), parent=None, raw={})
    assert compose(embed, thread) == "lol"


def test_list_context_section() -> None:
    embed = CanonicalEmbed(
        kind=KIND_LIST,
        common=CommonEmbed(
            name="Blocked",
            description="Spam accounts",
            purpose="app.bsky.graph.defs#modlist",
            creator_handle="mod.test",
            creator_display_name="Mods",
        ),
    )
    thread = Thread(post=_post(""), parent=None, raw={})
    assert compose(embed, thread) == (
        "Blocked\n🚫 A moderation list by Mods (@mod.test)\n\nSpam accounts"
    )


def test_starter_pack_context_section() -> None:
    embed = CanonicalEmbed(
        kind=KIND_STARTER_PACK,
        common=CommonEmbed(
            name="Pack",
            creator_handle="c.test",
            creator_display_name="c.test",
        ),
    )
    thread = Thread(post=_post("join"), parent=None, raw={})
    assert compose(embed, thread) == (
        "join\n\nPack\n📦 A starter pack by c.test (@c.test)\n\n"
    )


def test_list_label_defaults() -> None:
    assert list_label("app.bsky.graph.defs#curatelist") == "👥 A curator list"
    assert list_label("app.bsky.graph.defs#referencelist") == "📃 A list"


def test_to_notation() -> None:
    assert to_notation(0) == "0"
    assert to_notation(999) == "999"
    assert to_notation(1000) == "1.0K"
    assert to_notation(1540) == "1.5K"
    assert to_notation(2_500_000) == "2.5M"
    assert to_notation(3_000_000_000) == "3.0B"


def test_stats_line() -> None:
    post = Post(
        uri="",
        author=ALICE,
        text="",
        created_at="",
        embed=None,
        reply_count=3,
        repost_count=1200,
        like_count=45000,
        quote_count=0,
    )
    assert stats_line(post) == "💬 3   🔁 1.2K   ❤️ 45.0K   📝 0"
