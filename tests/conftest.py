from datetime import datetime, timezone

import pytest

from cyberspace.data_models import Post, Reply, Session
from cyberspace.state import AppState, FeedScreen

DOC_PREFIX = "projects/p/databases/(default)/documents"


def make_post(i: int, **overrides) -> Post:
    values = dict(
        id=f"post{i}",
        author_id=f"user{i}",
        author_username=f"user{i}",
        content=f"post number {i}",
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        replies_count=i,
        bookmarks_count=0,
        topics=("general",),
    )
    values.update(overrides)
    return Post(**values)


def make_reply(i: int, post_id: str = "post0", content: str = "") -> Reply:
    return Reply(
        id=f"reply{i}",
        post_id=post_id,
        author_id=f"user{i}",
        author_username=f"user{i}",
        content=content or f"reply number {i}",
        created_at=datetime(2024, 1, 15, 11, 0, tzinfo=timezone.utc),
    )


def post_document(doc_id: str, **fields) -> dict:
    return {"name": f"{DOC_PREFIX}/posts/{doc_id}", "fields": fields}


@pytest.fixture
def session():
    return Session(id_token="id-tok", refresh_token="ref-tok", user_id="uid", email="a@b.c")


@pytest.fixture
def feed_state(session):
    """A loaded feed of ten posts on a 80x24 terminal (4 posts per page)."""
    posts = tuple(make_post(i) for i in range(10))
    return AppState(screen=FeedScreen(posts=posts), session=session, width=80, height=24)
