from __future__ import annotations

from .embeds import (
    CURATE_LIST,
    MOD_LIST,
    Author,
    Post,
    QuotedPost,
    RecordEmbed,
    RecordWithMediaEmbed,
    Thread,
)
from .normalize import (
    KIND_EXTERNAL,
    KIND_FEED,
    KIND_LIST,
    KIND_STARTER_PACK,
    CanonicalEmbed,
)

_LIST_LABELS = {
    MOD_LIST: "🚫 A moderation list",
    CURATE_LIST: "👥 A curator list",
}
_DEFAULT_LIST_LABEL = "📃 A list"
FEED_LABEL = "📡 A feed"
STARTER_PACK_LABEL = "📦 A starter pack"


def to_notation(number: int) -> str:
    value = float(number)
    if value / 1e9 >= 1:
        return f"{value / 1e9:0.1f}B"
    if value / 1e6 >= 1:
        return f"{value / 1e6:0.1f}M"
    if value / 1e3 >= 1:
        return f"{value / 1e3:0.1f}K"
    return str(number)


def stats_line(post: Post) -> str:
    return (
        f"💬 {to_notation(post.reply_count)}   "
        f"🔁 {to_notation(post.repost_count)}   "
        f"❤️ {to_notation(post.like_count)}   "
        f"📝 {to_notation(post.quote_count)}"
    )


def list_label(purpose: str) -> str:
    return _LIST_LABELS.get(purpose, _DEFAULT_LIST_LABEL)


def creator_line(label: str, display_name: str, handle: str) -> str:
    return f"{label} by {display_name or handle} (@{handle})"


def _common_section(embed: CanonicalEmbed) -> str:
    common = embed.common
    if embed.kind == KIND_LIST:
        label = list_label(common.purpose)
    elif embed.kind == KIND_FEED:
        label = FEED_LABEL
    else:
        label = STARTER_PACK_LABEL
    line = creator_line(label, common.creator_display_name, common.creator_handle)
    return f"{common.name}\n{line}\n\n{common.description}"


def _context_section(embed: CanonicalEmbed) -> str | None:
    if embed.kind in (KIND_LIST, KIND_FEED, KIND_STARTER_PACK):
        return _common_section(embed)
    if embed.kind == KIND_EXTERNAL and not embed.is_gif:
        return f"{embed.external.title}\n{embed.external.description}"
    return None


def _quoted_post(post: Post) -> QuotedPost | None:
    embed = post.embed
    if isinstance(embed, (RecordEmbed, RecordWithMediaEmbed)) and isinstance(
        embed.record, QuotedPost
    ):
        return embed.record
    return None


def _attributed(verb: str, author: Author, text: str) -> str:
    return f"{verb} {author.name} (@{author.handle}):\n{text}"


def _append(description: str, section: str) -> str:
    if description:
        return f"{description}\n\n{section}"
    return section


def compose(embed: CanonicalEmbed, thread: Thread) -> str:
    """Build the preview description for a post.

    Sections follow the post text in a fixed order: list/feed/starter-pack or
    link context, then the quoted post, then the parent being replied to.
    """
    description = thread.post.text
    context = _context_section(embed)
    if context is not None:
        description = _append(description, context)
    quoted = _quoted_post(thread.post)
    if quoted is not None:
        description = _append(
            description, _attributed("📝 Quoting", quoted.author, quoted.text)
        )
    if thread.parent is not None:
        description = _append(
            description,
            _attributed("💬 Replying to", thread.parent.author, thread.parent.text),
        )
    return description
