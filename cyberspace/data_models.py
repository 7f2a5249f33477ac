"""
Data models for the cyberspace client.
Posts and replies are built only by the decoder and never mutated afterwards.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple

# Value of a timestamp field that is missing or unparseable
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Session:
    """An authenticated identity."""
    id_token: str
    refresh_token: str = ""
    user_id: str = ""
    email: str = ""
    username: str = ""

    @property
    def is_valid(self) -> bool:
        # expiry is only discovered by a failed request
        return bool(self.id_token)


@dataclass(frozen=True)
class Post:
    """Represents a feed post."""
    id: str = ""
    author_id: str = ""
    author_username: str = ""
    content: str = ""
    created_at: datetime = ZERO_TIME
    replies_count: int = 0
    bookmarks_count: int = 0
    topics: Tuple[str, ...] = field(default_factory=tuple)
    deleted: bool = False


@dataclass(frozen=True)
class Reply:
    """Represents a reply to a post."""
    id: str = ""
    post_id: str = ""
    author_id: str = ""
    author_username: str = ""
    content: str = ""
    created_at: datetime = ZERO_TIME
    deleted: bool = False
