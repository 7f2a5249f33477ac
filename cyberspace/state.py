"""Screen state machine for the cyberspace client.

The whole UI is a single ``AppState`` holding exactly one screen variant
(``LoginScreen``, ``FeedScreen`` or ``PostDetailScreen``). ``update``
takes the current state and one event and returns the next state together
with a list of commands. Commands are plain data; the app runs them after
``update`` returns (network calls on worker threads) and feeds their
outcome back in as completion events. Nothing in this module performs I/O.

Completion events are matched against the active screen, and detail
results against the post being shown. A result that arrives for a screen
(or post) that is no longer showing is dropped. Refreshing while a fetch
is in flight issues a second fetch without cancelling the first;
whichever result is processed last wins.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from . import scrolling
from .config import FEED_PAGE_SIZE
from .data_models import Post, Reply, Session
from .layout import detail_height

logger = logging.getLogger("cyberspace.state")

MAX_INPUT_LENGTH = 64
FOCUS_EMAIL = 0
FOCUS_PASSWORD = 1

QUIT_KEYS = ("ctrl+c",)


# ───────── Events ─────────


@dataclass(frozen=True)
class KeyPressed:
    key: str
    character: Optional[str] = None


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    """Advances the loading spinner."""


@dataclass(frozen=True)
class InputChanged:
    """The text of a login field changed."""
    target: int
    value: str = field(repr=False)


@dataclass(frozen=True)
class LoginSucceeded:
    session: Session


@dataclass(frozen=True)
class LoginFailed:
    message: str


@dataclass(frozen=True)
class FeedLoaded:
    posts: Tuple[Post, ...]


@dataclass(frozen=True)
class FeedLoadFailed:
    message: str


@dataclass(frozen=True)
class DetailLoaded:
    post: Post
    replies: Tuple[Reply, ...]


@dataclass(frozen=True)
class DetailLoadFailed:
    post_id: str
    message: str


@dataclass(frozen=True)
class OpenPostRequested:
    post_id: str
    post: Optional[Post] = None


@dataclass(frozen=True)
class BackRequested:
    pass


Event = Union[
    KeyPressed, Resized, Tick,
    InputChanged, LoginSucceeded, LoginFailed,
    FeedLoaded, FeedLoadFailed,
    DetailLoaded, DetailLoadFailed,
    OpenPostRequested, BackRequested,
]


# ───────── Commands ─────────


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class SignIn:
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class SaveSession:
    session: Session


@dataclass(frozen=True)
class FetchFeed:
    id_token: str = field(repr=False)
    limit: int = FEED_PAGE_SIZE


@dataclass(frozen=True)
class FetchDetail:
    """Fetch a post's replies, and the post itself when ``post`` is None."""
    id_token: str = field(repr=False)
    post_id: str
    post: Optional[Post] = None


@dataclass(frozen=True)
class Emit:
    """Put an event back on the app's queue."""
    event: Event


Command = Union[Quit, SignIn, SaveSession, FetchFeed, FetchDetail, Emit]


# ───────── Screens ─────────


@dataclass(frozen=True)
class LoginScreen:
    email: str = ""
    password: str = ""
    focus: int = FOCUS_EMAIL
    loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class FeedScreen:
    posts: Tuple[Post, ...] = ()
    cursor: int = 0
    offset: int = 0
    loading: bool = False
    error: Optional[str] = None

    @property
    def selected(self) -> Optional[Post]:
        if 0 <= self.cursor < len(self.posts):
            return self.posts[self.cursor]
        return None


@dataclass(frozen=True)
class PostDetailScreen:
    post_id: str
    post: Optional[Post] = None
    # True when the post came from the feed and need not be re-fetched
    carried: bool = False
    replies: Tuple[Reply, ...] = ()
    scroll: int = 0
    loading: bool = False
    error: Optional[str] = None
    # feed to return to on BackRequested
    feed: FeedScreen = field(default_factory=FeedScreen)


Screen = Union[LoginScreen, FeedScreen, PostDetailScreen]


@dataclass(frozen=True)
class AppState:
    screen: Screen
    session: Optional[Session] = None
    width: int = 0
    height: int = 0
    spinner_frame: int = 0


Result = Tuple[AppState, List[Command]]


def initial_state(session: Optional[Session], width: int = 0, height: int = 0) -> Result:
    """Pick the first screen: Feed with a cached session, Login otherwise."""
    if session is not None and session.is_valid:
        state = AppState(screen=FeedScreen(loading=True), session=session, width=width, height=height)
        return state, [FetchFeed(session.id_token)]
    return AppState(screen=LoginScreen(), width=width, height=height), []


def update(state: AppState, event: Event) -> Result:
    """Apply one event to the state and return (new_state, commands)."""
    if isinstance(event, KeyPressed) and event.key in QUIT_KEYS:
        return state, [Quit()]

    if isinstance(event, Resized):
        state = replace(state, width=event.width, height=event.height)
        return replace(state, screen=_reclamp(state, state.screen)), []

    if isinstance(event, Tick):
        return replace(state, spinner_frame=state.spinner_frame + 1), []

    screen = state.screen
    if isinstance(screen, LoginScreen):
        return _update_login(state, screen, event)
    if isinstance(screen, FeedScreen):
        return _update_feed(state, screen, event)
    if isinstance(screen, PostDetailScreen):
        return _update_detail(state, screen, event)
    raise TypeError(f"unknown screen: {screen!r}")


def _drop(state: AppState, event: Event) -> Result:
    if not isinstance(event, KeyPressed):
        logger.debug("dropping %s on %s", type(event).__name__, type(state.screen).__name__)
    return state, []


def _reclamp(state: AppState, screen: Screen) -> Screen:
    if isinstance(screen, FeedScreen):
        cursor, offset = scrolling.clamp_cursor(
            screen.cursor, screen.offset, len(screen.posts), scrolling.page_capacity(state.height)
        )
        return replace(screen, cursor=cursor, offset=offset)
    if isinstance(screen, PostDetailScreen):
        return replace(
            screen,
            scroll=scrolling.clamp(screen.scroll, 0, detail_max_scroll(state, screen)),
            feed=_reclamp(state, screen.feed),
        )
    return screen


# ───────── Login ─────────


def _update_login(state: AppState, screen: LoginScreen, event: Event) -> Result:
    if isinstance(event, LoginSucceeded):
        session = event.session
        new_state = replace(state, screen=FeedScreen(loading=True), session=session)
        return new_state, [SaveSession(session), FetchFeed(session.id_token)]

    if isinstance(event, LoginFailed):
        return replace(state, screen=replace(screen, loading=False, error=event.message)), []

    if isinstance(event, InputChanged):
        if screen.loading:
            return state, []
        value = event.value[:MAX_INPUT_LENGTH]
        if event.target == FOCUS_EMAIL:
            return replace(state, screen=replace(screen, email=value)), []
        return replace(state, screen=replace(screen, password=value)), []

    if not isinstance(event, KeyPressed):
        return _drop(state, event)

    key = event.key
    if key == "escape":
        return state, [Quit()]
    if screen.loading:
        return state, []

    if key in ("tab", "down"):
        return replace(state, screen=replace(screen, focus=(screen.focus + 1) % 2)), []
    if key in ("shift+tab", "up"):
        return replace(state, screen=replace(screen, focus=(screen.focus - 1) % 2)), []

    if key == "enter":
        if screen.focus == FOCUS_PASSWORD or (screen.email and screen.password):
            submitted = replace(screen, loading=True, error=None)
            return replace(state, screen=submitted), [SignIn(screen.email, screen.password)]
        return replace(state, screen=replace(screen, focus=FOCUS_PASSWORD)), []

    # text editing belongs to the input widgets and arrives as InputChanged
    return state, []


# ───────── Feed ─────────


def _update_feed(state: AppState, screen: FeedScreen, event: Event) -> Result:
    if isinstance(event, FeedLoaded):
        loaded = FeedScreen(posts=tuple(event.posts))
        return replace(state, screen=_reclamp(state, loaded)), []

    if isinstance(event, FeedLoadFailed):
        return replace(state, screen=replace(screen, loading=False, error=event.message)), []

    if isinstance(event, OpenPostRequested):
        if screen.loading:
            # posts are not opened while a refresh is pending
            return _drop(state, event)
        detail = PostDetailScreen(
            post_id=event.post_id,
            post=event.post,
            carried=event.post is not None,
            loading=True,
            feed=screen,
        )
        return replace(state, screen=detail), [_fetch_detail(state, detail)]

    if not isinstance(event, KeyPressed):
        return _drop(state, event)

    key = event.key
    if key == "q":
        return state, [Quit()]
    if screen.loading:
        return state, []

    capacity = scrolling.page_capacity(state.height)
    length = len(screen.posts)

    def moved(delta: int) -> Result:
        cursor, offset = scrolling.move_cursor(screen.cursor, screen.offset, delta, length, capacity)
        return replace(state, screen=replace(screen, cursor=cursor, offset=offset)), []

    if key in ("j", "down"):
        return moved(1)
    if key in ("k", "up"):
        return moved(-1)
    if key in ("ctrl+d", "pagedown"):
        return moved(capacity)
    if key in ("ctrl+u", "pageup"):
        return moved(-capacity)
    if key in ("g", "home"):
        return moved(-screen.cursor)
    if key in ("G", "shift+g", "end"):
        return moved(length - 1 - screen.cursor)

    if key == "r":
        refreshed = replace(screen, loading=True, error=None)
        return replace(state, screen=refreshed), [FetchFeed(_token(state))]

    if key == "enter":
        post = screen.selected
        if post is not None:
            return state, [Emit(OpenPostRequested(post.id, post))]
    return state, []


# ───────── Post detail ─────────


def detail_max_scroll(state: AppState, screen: PostDetailScreen) -> int:
    content = detail_height(screen.post, screen.replies, screen.loading, state.width)
    return scrolling.max_scroll(content, state.height)


def _fetch_detail(state: AppState, screen: PostDetailScreen) -> FetchDetail:
    return FetchDetail(_token(state), screen.post_id, screen.post if screen.carried else None)


def _update_detail(state: AppState, screen: PostDetailScreen, event: Event) -> Result:
    if isinstance(event, BackRequested):
        feed = _reclamp(state, screen.feed)
        return replace(state, screen=feed), []

    if isinstance(event, DetailLoaded):
        if event.post.id != screen.post_id:
            return _drop(state, event)
        loaded = replace(screen, post=event.post, replies=tuple(event.replies), loading=False, error=None)
        return replace(state, screen=_reclamp(state, loaded)), []

    if isinstance(event, DetailLoadFailed):
        if event.post_id != screen.post_id:
            return _drop(state, event)
        return replace(state, screen=replace(screen, loading=False, error=event.message)), []

    if not isinstance(event, KeyPressed):
        return _drop(state, event)

    key = event.key
    if key == "q":
        return state, [Quit()]
    if key in ("escape", "b", "backspace"):
        return state, [Emit(BackRequested())]

    def scrolled(scroll: int) -> Result:
        scroll = scrolling.clamp(scroll, 0, detail_max_scroll(state, screen))
        return replace(state, screen=replace(screen, scroll=scroll)), []

    if key in ("j", "down"):
        return scrolled(screen.scroll + 1)
    if key in ("k", "up"):
        return scrolled(screen.scroll - 1)
    if key in ("g", "home"):
        return scrolled(0)
    if key in ("G", "shift+g", "end"):
        return scrolled(detail_max_scroll(state, screen))

    if key == "r":
        refreshed = replace(screen, loading=True, error=None)
        return replace(state, screen=refreshed), [_fetch_detail(state, refreshed)]
    return state, []


def _token(state: AppState) -> str:
    return state.session.id_token if state.session else ""
