from dataclasses import replace

import pytest

from cyberspace.state import (
    BackRequested,
    DetailLoaded,
    DetailLoadFailed,
    Emit,
    FeedLoaded,
    FeedScreen,
    FetchDetail,
    KeyPressed,
    OpenPostRequested,
    PostDetailScreen,
    Quit,
    Resized,
    detail_max_scroll,
    update,
)

from .conftest import make_post, make_reply


@pytest.fixture
def detail_state(feed_state):
    """Post 2 opened from the feed with twenty replies loaded."""
    state, _ = update(feed_state, KeyPressed("j"))
    state, _ = update(state, KeyPressed("j"))
    post = state.screen.posts[2]
    state, _ = update(state, OpenPostRequested(post.id, post))
    replies = tuple(make_reply(i, post.id) for i in range(20))
    state, _ = update(state, DetailLoaded(post, replies))
    return state


def press(state, *keys):
    for key in keys:
        state, _ = update(state, KeyPressed(key))
    return state


def test_detail_loaded_fills_replies(detail_state):
    screen = detail_state.screen
    assert isinstance(screen, PostDetailScreen)
    assert screen.loading is False
    assert len(screen.replies) == 20
    assert screen.post.id == "post2"


def test_scroll_saturates_at_zero_and_max(detail_state):
    limit = detail_max_scroll(detail_state, detail_state.screen)
    assert limit > 0

    state = press(detail_state, "k")
    assert state.screen.scroll == 0

    state = press(state, *["j"] * (limit + 10))
    assert state.screen.scroll == limit

    state = press(state, "g")
    assert state.screen.scroll == 0
    state = press(state, "G")
    assert state.screen.scroll == limit


def test_content_that_fits_cannot_scroll(feed_state):
    post = make_post(1)
    state, _ = update(feed_state, OpenPostRequested(post.id, post))
    state, _ = update(state, DetailLoaded(post, ()))
    state, _ = update(state, Resized(80, 60))
    assert detail_max_scroll(state, state.screen) == 0
    state = press(state, "j", "G")
    assert state.screen.scroll == 0


def test_resize_reclamps_scroll(detail_state):
    state = press(detail_state, "G")
    state, _ = update(state, Resized(80, 200))
    assert state.screen.scroll == detail_max_scroll(state, state.screen)


def test_back_keys_emit_back_requested(detail_state):
    for key in ("escape", "b", "backspace"):
        new_state, commands = update(detail_state, KeyPressed(key))
        assert new_state == detail_state
        assert commands == [Emit(BackRequested())]


def test_back_returns_to_feed_with_cursor_intact(detail_state):
    state, commands = update(detail_state, BackRequested())
    assert isinstance(state.screen, FeedScreen)
    assert state.screen.cursor == 2
    assert len(state.screen.posts) == 10
    assert commands == []


def test_refresh_of_carried_post_fetches_only_replies(detail_state):
    state, commands = update(detail_state, KeyPressed("r"))
    assert state.screen.loading is True
    assert commands == [FetchDetail("id-tok", "post2", detail_state.screen.post)]


def test_refresh_of_uncarried_post_refetches_post(feed_state):
    state, _ = update(feed_state, OpenPostRequested("abc123"))
    state, _ = update(state, DetailLoaded(make_post(7, id="abc123"), ()))
    state, commands = update(state, KeyPressed("r"))
    assert commands == [FetchDetail("id-tok", "abc123", None)]


def test_failure_keeps_previous_model(detail_state):
    state = press(detail_state, "j", "j", "r")
    state, commands = update(state, DetailLoadFailed("post2", "firestore error: 500"))
    assert state.screen.error == "firestore error: 500"
    assert state.screen.loading is False
    assert state.screen.replies == detail_state.screen.replies
    assert state.screen.post == detail_state.screen.post
    assert state.screen.scroll == 2
    assert commands == []


def test_second_refresh_result_overwrites_first(detail_state):
    state = press(detail_state, "r", "r")
    post = detail_state.screen.post
    state, _ = update(state, DetailLoaded(post, (make_reply(1, post.id),)))
    state, _ = update(state, DetailLoaded(post, (make_reply(2, post.id), make_reply(3, post.id))))
    assert [r.id for r in state.screen.replies] == ["reply2", "reply3"]


def test_feed_results_are_dropped_on_detail(detail_state):
    new_state, commands = update(detail_state, FeedLoaded((make_post(99),)))
    assert new_state == detail_state
    assert commands == []


def test_quit_from_detail(detail_state):
    assert update(detail_state, KeyPressed("q"))[1] == [Quit()]


def test_detail_without_session_token_uses_empty_token(feed_state):
    state = replace(feed_state, session=None)
    _, commands = update(state, OpenPostRequested("x"))
    assert commands == [FetchDetail("", "x", None)]


def test_late_result_for_previous_post_is_dropped(feed_state):
    first, second = feed_state.screen.posts[0], feed_state.screen.posts[1]
    state, _ = update(feed_state, OpenPostRequested(first.id, first))
    state, _ = update(state, BackRequested())
    state, _ = update(state, OpenPostRequested(second.id, second))

    new_state, commands = update(state, DetailLoaded(first, (make_reply(1, first.id),)))
    assert new_state == state
    assert commands == []

    _, commands = update(new_state, KeyPressed("r"))
    assert commands == [FetchDetail("id-tok", second.id, second)]


def test_late_failure_for_previous_post_is_dropped(detail_state):
    new_state, commands = update(detail_state, DetailLoadFailed("post0", "firestore error: 404"))
    assert new_state == detail_state
    assert commands == []
    assert new_state.screen.error is None
