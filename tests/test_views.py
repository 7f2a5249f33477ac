import io
from datetime import datetime, timezone

from rich.console import Console

from cyberspace.state import AppState, FeedScreen, LoginScreen, PostDetailScreen
from cyberspace.views import render

from .conftest import make_post, make_reply

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def draw(state: AppState) -> str:
    console = Console(file=io.StringIO(), width=state.width, height=state.height,
                      color_system=None, legacy_windows=False)
    console.print(render(state, now=NOW))
    return console.file.getvalue()


def test_login_status_line():
    out = draw(AppState(screen=LoginScreen(email="me@example.com"), width=80, height=24))
    assert "Press Enter to sign in" in out
    assert "me@example.com" not in out

    out = draw(AppState(screen=LoginScreen(loading=True), width=80, height=24))
    assert "Signing in..." in out


def test_login_shows_error():
    out = draw(AppState(screen=LoginScreen(error="Invalid password"), width=80, height=24))
    assert "Error: Invalid password" in out


def test_feed_shows_visible_window_and_position(feed_state):
    out = draw(feed_state)
    assert "CYBERSPACE FEED" in out
    assert "post number 0" in out
    assert "post number 3" in out
    assert "post number 4" not in out
    assert "Post 1 of 10" in out
    assert "┃" in out


def test_feed_placeholders(session):
    empty = draw(AppState(screen=FeedScreen(), session=session, width=80, height=24))
    assert "No posts found" in empty
    loading = draw(AppState(screen=FeedScreen(loading=True), session=session, width=80, height=24))
    assert "Loading posts..." in loading
    failed = draw(AppState(screen=FeedScreen(error="boom"), session=session, width=80, height=24))
    assert "Error: boom" in failed
    assert "Press 'r' to retry" in failed


def test_detail_shows_post_and_replies(session):
    post = make_post(1, content="the main post")
    screen = PostDetailScreen(post_id=post.id, post=post, replies=(make_reply(1, post.id),))
    out = draw(AppState(screen=screen, session=session, width=80, height=40))
    assert "the main post" in out
    assert "REPLIES (1)" in out
    assert "reply number 1" in out


def test_detail_loading_without_post(session):
    screen = PostDetailScreen(post_id="x", loading=True)
    out = draw(AppState(screen=screen, session=session, width=80, height=24))
    assert "Loading post..." in out
