from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Input, Static
from typing import Iterable, List, Optional
import argparse
import logging
import sys

from rich.console import RenderableType

from . import state as sm
from .api_interface import FetchError, FirestoreClient
from .auth import AuthError, sign_in
from .auth_storage import CredentialCacheError, clear_session, load_session, save_session
from .config import ConfigError, configure_logging, config_path, load_environment
from .data_models import Session
from .theme import DEFAULT_THEME, Theme
from .views import render, render_login_status

logger = logging.getLogger("cyberspace.app")

SPINNER_INTERVAL = 0.1

# keys the login form hands to the state machine instead of the inputs
LOGIN_KEYS = ("tab", "shift+tab", "up", "down", "escape")


class StateEvent(Message):
    """Carries a state machine event through Textual's message queue."""

    def __init__(self, event: sm.Event) -> None:
        super().__init__()
        self.event = event


class ScreenView(Widget, can_focus=True):
    """Renders the feed and detail screens and forwards every key to the app."""

    def render(self) -> RenderableType:
        return render(self.app.app_state, self.app.screen_theme)

    def on_key(self, event: events.Key) -> None:
        # The state machine owns all keys, including tab
        event.prevent_default()
        event.stop()
        self.app.post_message(StateEvent(sm.KeyPressed(event.key, event.character)))


class LoginForm(Vertical, can_focus=True):
    """Email and password inputs.

    The inputs do the editing; every change is reported to the state
    machine, which holds the buffers and decides focus and submission.
    """

    def compose(self) -> ComposeResult:
        yield Static("CYBERSPACE", id="login-title")
        yield Static("Email", classes="login-label")
        yield Input(placeholder="email@example.com", max_length=sm.MAX_INPUT_LENGTH, id="email")
        yield Static("Password", classes="login-label")
        yield Input(placeholder="password", password=True, max_length=sm.MAX_INPUT_LENGTH, id="password")
        yield Static(id="login-status")

    def on_input_changed(self, event: Input.Changed) -> None:
        target = sm.FOCUS_EMAIL if event.input.id == "email" else sm.FOCUS_PASSWORD
        self.app.post_message(StateEvent(sm.InputChanged(target, event.value)))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.app.post_message(StateEvent(sm.KeyPressed("enter")))

    def on_key(self, event: events.Key) -> None:
        if event.key in LOGIN_KEYS:
            event.prevent_default()
            event.stop()
            self.app.post_message(StateEvent(sm.KeyPressed(event.key, event.character)))

    def sync(self, screen: sm.LoginScreen, theme: Theme) -> None:
        """Mirror focus, loading and status from the login state."""
        email = self.query_one("#email", Input)
        password = self.query_one("#password", Input)
        for widget in (email, password):
            widget.disabled = screen.loading
        if screen.loading:
            # disabled inputs cannot hold focus
            self.focus()
        else:
            target = email if screen.focus == sm.FOCUS_EMAIL else password
            if not target.has_focus:
                target.focus()
        self.query_one("#login-status", Static).update(render_login_status(screen, theme))


class CyberspaceApp(App):
    CSS = """
    Screen {
        background: $background;
        align: center middle;
    }
    ScreenView {
        width: 100%;
        height: 100%;
    }
    LoginForm {
        width: 46;
        height: auto;
        border: round $secondary;
        padding: 1 2;
    }
    #login-title {
        text-style: bold;
        color: $warning;
        margin-bottom: 1;
    }
    .login-label {
        text-style: dim;
    }
    #login-status {
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    ENABLE_COMMAND_PALETTE = False

    def __init__(self, api_key: str, project_id: str, session: Optional[Session] = None,
                 screen_theme: Theme = DEFAULT_THEME, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.project_id = project_id
        self.screen_theme = screen_theme
        self.app_state, self._pending = sm.initial_state(session)

    def compose(self) -> ComposeResult:
        yield LoginForm(id="login-form")
        yield ScreenView(id="screen-view")

    def on_mount(self) -> None:
        self.post_message(StateEvent(sm.Resized(self.size.width, self.size.height)))
        self.sync_widgets()
        self.set_interval(SPINNER_INTERVAL, lambda: self.post_message(StateEvent(sm.Tick())))
        self.run_commands(self._pending)
        self._pending = []

    def on_resize(self, event: events.Resize) -> None:
        self.post_message(StateEvent(sm.Resized(event.size.width, event.size.height)))

    def on_state_event(self, message: StateEvent) -> None:
        event = message.event
        was_loading = _is_loading(self.app_state)
        previous = type(self.app_state.screen)
        self.app_state, commands = sm.update(self.app_state, event)
        screen = self.app_state.screen
        if type(screen) is not previous or isinstance(screen, sm.LoginScreen):
            self.sync_widgets()
        # spinner ticks only need a repaint while something is loading
        if not isinstance(event, sm.Tick) or was_loading or _is_loading(self.app_state):
            self.query_one(ScreenView).refresh()
        self.run_commands(commands)

    def sync_widgets(self) -> None:
        """Show the login form or the screen view, whichever the state calls for."""
        screen = self.app_state.screen
        form = self.query_one(LoginForm)
        view = self.query_one(ScreenView)
        on_login = isinstance(screen, sm.LoginScreen)
        form.display = on_login
        view.display = not on_login
        if on_login:
            form.sync(screen, self.screen_theme)
        elif not view.has_focus:
            view.focus()

    # --- command execution ---
    def run_commands(self, commands: Iterable[sm.Command]) -> None:
        for command in commands:
            logger.debug("running %s", command)
            if isinstance(command, sm.Quit):
                self.exit()
            elif isinstance(command, sm.Emit):
                self.post_message(StateEvent(command.event))
            elif isinstance(command, sm.SaveSession):
                try:
                    save_session(command.session)
                except OSError as e:
                    logger.warning("Failed to save config: %s", e)
            elif isinstance(command, sm.SignIn):
                self.run_worker(lambda c=command: self._sign_in(c), thread=True, group="auth")
            elif isinstance(command, sm.FetchFeed):
                self.run_worker(lambda c=command: self._fetch_feed(c), thread=True, group="feed")
            elif isinstance(command, sm.FetchDetail):
                self.run_worker(lambda c=command: self._fetch_detail(c), thread=True, group="detail")
            else:
                raise TypeError(f"unknown command: {command!r}")

    # Workers run on their own threads and only ever post completion events back.
    def _sign_in(self, command: sm.SignIn) -> None:
        try:
            session = sign_in(command.email, command.password, self.api_key)
        except AuthError as e:
            self.post_message(StateEvent(sm.LoginFailed(str(e))))
            return
        self.post_message(StateEvent(sm.LoginSucceeded(session)))

    def _fetch_feed(self, command: sm.FetchFeed) -> None:
        client = FirestoreClient(self.project_id, command.id_token)
        try:
            posts = client.fetch_posts(command.limit)
        except FetchError as e:
            self.post_message(StateEvent(sm.FeedLoadFailed(str(e))))
            return
        self.post_message(StateEvent(sm.FeedLoaded(tuple(posts))))

    def _fetch_detail(self, command: sm.FetchDetail) -> None:
        client = FirestoreClient(self.project_id, command.id_token)
        try:
            post = command.post if command.post is not None else client.fetch_post(command.post_id)
            replies = client.fetch_replies(command.post_id)
        except FetchError as e:
            self.post_message(StateEvent(sm.DetailLoadFailed(command.post_id, str(e))))
            return
        self.post_message(StateEvent(sm.DetailLoaded(post, tuple(replies))))


def _is_loading(state: sm.AppState) -> bool:
    return state.screen.loading


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cyberspace", description="Read the Cyberspace feed from your terminal.")
    parser.add_argument("--logout", action="store_true", help="forget the cached session and exit")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging()

    if args.logout:
        if clear_session():
            print(f"Removed {config_path()}")
        else:
            print("No cached session")
        return

    try:
        api_key, project_id = load_environment()
    except ConfigError as e:
        print(f"Error: {e}")
        print("Set them in .env file or as environment variables")
        sys.exit(1)

    session = None
    try:
        session = load_session()
    except CredentialCacheError as e:
        print(f"Warning: Failed to load config: {e}", file=sys.stderr)

    CyberspaceApp(api_key, project_id, session).run()


if __name__ == "__main__":
    main()
