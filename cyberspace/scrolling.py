"""Cursor and scroll arithmetic shared by the list and detail screens."""
from typing import Tuple

# Rows taken by the feed header (title + divider) and footer
FEED_CHROME_LINES = 4
POST_HEIGHT = 5
# Lines taken by the detail header and scroll indicator
DETAIL_CHROME_LINES = 4


def clamp(value: int, low: int, high: int) -> int:
    if value < low:
        return low
    if value > high:
        return high
    return value


def page_capacity(height: int) -> int:
    """Number of posts that fit in a viewport of ``height`` rows (at least 1)."""
    count = (height - FEED_CHROME_LINES) // POST_HEIGHT
    return max(1, count)


def scroll_into_view(cursor: int, offset: int, capacity: int) -> int:
    """Return the smallest offset change that keeps ``cursor`` visible."""
    if cursor >= offset + capacity:
        offset = cursor - capacity + 1
    if cursor < offset:
        offset = cursor
    return max(0, offset)


def clamp_cursor(cursor: int, offset: int, length: int, capacity: int) -> Tuple[int, int]:
    """Clamp a (cursor, offset) pair for a list of ``length`` rows.

    Guarantees 0 <= offset <= cursor <= offset + capacity - 1 for a
    non-empty list, and (0, 0) for an empty one.
    """
    if length <= 0:
        return 0, 0
    cursor = clamp(cursor, 0, length - 1)
    offset = clamp(offset, 0, cursor)
    return cursor, scroll_into_view(cursor, offset, capacity)


def move_cursor(cursor: int, offset: int, delta: int, length: int, capacity: int) -> Tuple[int, int]:
    """Move the cursor by ``delta`` rows, saturating at the list bounds."""
    return clamp_cursor(cursor + delta, offset, length, capacity)


def visible_lines(height: int) -> int:
    return max(0, height - DETAIL_CHROME_LINES)


def max_scroll(content_height: int, height: int) -> int:
    """Largest line offset for ``content_height`` lines; 0 if it all fits."""
    return max(0, content_height - visible_lines(height))
