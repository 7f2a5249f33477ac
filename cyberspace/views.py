"""Rendering of the active screen into rich renderables."""
from datetime import datetime
from typing import Optional

from rich.align import Align
from rich.console import Group, RenderableType
from rich.text import Text

from . import layout, scrolling
from .state import AppState, FeedScreen, LoginScreen, PostDetailScreen
from .theme import DEFAULT_THEME, Theme

FEED_TITLE = "CYBERSPACE FEED"
FEED_HELP = "j/k:nav  enter:open  r:refresh  q:quit"
DETAIL_TITLE = "POST"
DETAIL_HELP = "b:back  j/k:scroll  r:refresh  q:quit"


def render(state: AppState, theme: Theme = DEFAULT_THEME, now: Optional[datetime] = None) -> RenderableType:
    screen = state.screen
    if isinstance(screen, LoginScreen):
        return render_login_status(screen, theme)
    if isinstance(screen, FeedScreen):
        return render_feed(state, screen, theme, now)
    if isinstance(screen, PostDetailScreen):
        return render_detail(state, screen, theme, now)
    return Text()


def _centered(state: AppState, renderable: RenderableType) -> RenderableType:
    if state.height > 0:
        return Align.center(renderable, vertical="middle", height=state.height)
    return Align.center(renderable)


def render_header(title: str, help_text: str, width: int, theme: Theme) -> Text:
    header = Text(f" {title} ", style=theme.header)
    header.append("  ")
    header.append(help_text, style=theme.help)
    header.append("\n")
    header.append_text(layout.divider(min(width, 80), theme))
    return header


def render_loading(state: AppState, message: str, theme: Theme) -> RenderableType:
    line = Text(layout.spinner(state.spinner_frame), style=theme.spinner)
    line.append(f" {message}")
    return _centered(state, line)


def render_error(state: AppState, message: str, hint: str, theme: Theme) -> RenderableType:
    text = Text(f"Error: {message}", style=theme.error)
    if hint:
        text.append(f"\n\n{hint}")
    return _centered(state, Align.center(text))


# ───────── Login ─────────


def render_login_status(screen: LoginScreen, theme: Theme = DEFAULT_THEME) -> Text:
    """Status line under the login inputs."""
    if screen.loading:
        return Text("Signing in...")
    if screen.error:
        return Text(f"Error: {screen.error}", style=theme.error)
    return Text("Press Enter to sign in", style=theme.help)


# ───────── Feed ─────────


def render_post_row(post, selected: bool, width: int, theme: Theme = DEFAULT_THEME,
                    now: Optional[datetime] = None) -> Text:
    row_width = layout.content_width(width, layout.MAX_FEED_WIDTH, margin=2)
    marker = Text("┃ " if selected else "  ", style=theme.selected_marker if selected else "")

    stats = layout.format_stats(post.replies_count, post.bookmarks_count, theme)
    if post.topics:
        stats.append("  ")
        stats.append_text(layout.format_topics(post.topics, theme))
    preview = Text(layout.truncate(layout.strip_markup(post.content), layout.PREVIEW_LENGTH), style=theme.content)

    row = Text()
    for i, line in enumerate((layout.format_author(post.author_username, post.created_at, theme, now), preview, stats)):
        if i:
            row.append("\n")
        row.append_text(marker)
        line.truncate(max(1, row_width - 2), overflow="ellipsis")
        row.append_text(line)
    if selected:
        row.stylize(theme.selected)
    return row


def render_feed(state: AppState, screen: FeedScreen, theme: Theme = DEFAULT_THEME,
                now: Optional[datetime] = None) -> RenderableType:
    if screen.loading:
        return render_loading(state, "Loading posts...", theme)
    if screen.error:
        return render_error(state, screen.error, "Press 'r' to retry, 'q' to quit", theme)
    if not screen.posts:
        return _centered(state, Text("No posts found. Press 'r' to refresh."))

    parts = [render_header(FEED_TITLE, FEED_HELP, state.width, theme)]
    capacity = scrolling.page_capacity(state.height)
    for i in range(screen.offset, min(len(screen.posts), screen.offset + capacity)):
        parts.append(render_post_row(screen.posts[i], i == screen.cursor, state.width, theme, now))
        parts.append(Text())
    parts.append(Text(f" Post {screen.cursor + 1} of {len(screen.posts)}", style=theme.footer))
    return Group(*parts)


# ───────── Post detail ─────────


def render_detail(state: AppState, screen: PostDetailScreen, theme: Theme = DEFAULT_THEME,
                  now: Optional[datetime] = None) -> RenderableType:
    if screen.loading and screen.post is None:
        return render_loading(state, "Loading post...", theme)
    if screen.error:
        return render_error(state, screen.error, "Press 'r' to retry, 'b' to go back", theme)

    lines = layout.detail_lines(screen.post, screen.replies, screen.loading, state.width,
                                theme, state.spinner_frame, now)
    visible = scrolling.visible_lines(state.height)
    start = screen.scroll
    end = min(start + visible, len(lines))

    parts = [render_header(DETAIL_TITLE, DETAIL_HELP, state.width, theme), Text()]
    parts.extend(lines[start:end])
    if len(lines) > visible:
        parts.append(Text())
        parts.append(Text(f"Line {start + 1}-{end} of {len(lines)}", style=theme.help))
    return Group(*parts)
