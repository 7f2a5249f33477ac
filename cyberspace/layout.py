"""Pure text layout helpers.

Nothing here touches the terminal: functions return plain strings or
``rich.text.Text`` lines so that both the renderer and the state machine
(which needs the detail view's height) can use them.
"""
import textwrap
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from rich.text import Text

from .data_models import Post, Reply
from .theme import DEFAULT_THEME, Theme

SPINNER_FRAMES = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")
DIVIDER_CHAR = "─"
MAX_CONTENT_WIDTH = 76
MAX_REPLY_WIDTH = 74
MAX_FEED_WIDTH = 78
PREVIEW_LENGTH = 140


def time_ago(dt: datetime, now: Optional[datetime] = None) -> str:
    """Format a timestamp as 'now', '5m', '2h', '3d' or 'Jan 2'."""
    now = now or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    seconds = (now - dt).total_seconds()
    if seconds < 60:
        return "now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h"
    if seconds < 7 * 86400:
        return f"{int(seconds // 86400)}d"
    return f"{dt.strftime('%b')} {dt.day}"


def truncate(s: str, limit: int) -> str:
    if len(s) <= limit:
        return s
    if limit <= 3:
        return s[:limit]
    return s[:limit - 3] + "..."


def strip_markup(s: str) -> str:
    """Drop lightweight markdown so a post previews as a single plain line."""
    for token in ("**", "__", "*", "_", "`", "#"):
        s = s.replace(token, "")
    return s.replace("\n", " ").strip()


def spinner(frame: int) -> str:
    return SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]


def content_width(width: int, limit: int = MAX_CONTENT_WIDTH, margin: int = 4) -> int:
    w = min(width - margin, limit)
    return w if w >= 1 else limit


def wrap(text: str, width: int) -> List[str]:
    """Wrap text to ``width`` columns, keeping explicit line breaks."""
    lines: List[str] = []
    for paragraph in text.split("\n"):
        wrapped = textwrap.wrap(paragraph, width=width, replace_whitespace=False, drop_whitespace=True)
        lines.extend(wrapped or [""])
    return lines


def format_author(username: str, created_at: datetime, theme: Theme = DEFAULT_THEME,
                  now: Optional[datetime] = None) -> Text:
    line = Text()
    line.append(f"@{username}", style=theme.username)
    line.append(" ")
    line.append(f"· {time_ago(created_at, now)}", style=theme.timestamp)
    return line


def format_topics(topics: Sequence[str], theme: Theme = DEFAULT_THEME) -> Text:
    if not topics:
        return Text()
    return Text("#" + " #".join(topics), style=theme.topic)


def format_stats(replies: int, bookmarks: int, theme: Theme = DEFAULT_THEME) -> Text:
    return Text(f"↩ {replies}  ★ {bookmarks}", style=theme.stats)


def divider(width: int, theme: Theme = DEFAULT_THEME) -> Text:
    if width < 1:
        width = 80
    return Text(DIVIDER_CHAR * width, style=theme.divider)


def detail_lines(
    post: Optional[Post],
    replies: Sequence[Reply],
    loading: bool,
    width: int,
    theme: Theme = DEFAULT_THEME,
    frame: int = 0,
    now: Optional[datetime] = None,
) -> List[Text]:
    """Lay out the scrollable body of the post detail screen, one Text per line."""
    post = post or Post()
    body_width = content_width(width)
    lines: List[Text] = []

    lines.append(format_author(post.author_username, post.created_at, theme, now))
    lines.append(Text())
    lines.extend(Text(line, style=theme.content) for line in wrap(post.content, body_width))
    lines.append(Text())

    stats = Text(f"↩ {post.replies_count} replies  ★ {post.bookmarks_count} bookmarks", style=theme.stats)
    if post.topics:
        stats.append("  ")
        stats.append_text(format_topics(post.topics, theme))
    lines.append(stats)

    lines.append(Text())
    lines.append(divider(body_width, theme))
    lines.append(Text())

    if loading:
        loading_line = Text(spinner(frame), style=theme.spinner)
        loading_line.append(" Loading replies...")
        lines.append(loading_line)
    elif not replies:
        lines.append(Text("No replies yet", style=theme.timestamp))
    else:
        lines.append(Text(f"REPLIES ({len(replies)})", style=theme.stats))
        lines.append(Text())
        reply_width = content_width(width, MAX_REPLY_WIDTH, margin=6)
        for i, reply in enumerate(replies):
            lines.append(format_author(reply.author_username, reply.created_at, theme, now))
            lines.extend(Text("  " + line, style=theme.reply) for line in wrap(reply.content, reply_width))
            if i < len(replies) - 1:
                lines.append(Text())
    return lines


def detail_height(post: Optional[Post], replies: Sequence[Reply], loading: bool, width: int) -> int:
    return len(detail_lines(post, replies, loading, width))
