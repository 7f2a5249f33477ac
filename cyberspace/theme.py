"""Colors and text styles used when rendering screens."""
from dataclasses import dataclass

from rich.style import Style

PRIMARY = "color(214)"
MUTED = "color(241)"
CONTENT = "color(252)"
REPLY = "color(250)"
ERROR = "color(196)"
SELECTED_BG = "color(236)"


@dataclass(frozen=True)
class Theme:
    header: Style = Style(color=PRIMARY, bold=True)
    username: Style = Style(color=PRIMARY, bold=True)
    timestamp: Style = Style(color=MUTED)
    content: Style = Style(color=CONTENT)
    reply: Style = Style(color=REPLY)
    stats: Style = Style(color=MUTED)
    topic: Style = Style(color=PRIMARY)
    help: Style = Style(color=MUTED)
    error: Style = Style(color=ERROR)
    footer: Style = Style(color=MUTED)
    divider: Style = Style(color=MUTED)
    spinner: Style = Style(color=PRIMARY)
    selected: Style = Style(bgcolor=SELECTED_BG)
    selected_marker: Style = Style(color=PRIMARY, bgcolor=SELECTED_BG, bold=True)


DEFAULT_THEME = Theme()
