"""Utilities to turn raw window titles into stable identities.

Identities are resolved by an ordered table of rules. The first rule whose
predicate matches decides the identity, so specific rules (chat apps, hosted
tools) must come before the generic prefix stripping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .models import EMPTY_IDENTITY

_CHAT_APPS: tuple[tuple[str, str], ...] = (
    ("discord", "Discord"),
    ("telegram", "Telegram"),
)

_NEW_TAB_PREFIX = "new tab -"

# Matched against the raw title: "Windows Terminal" must not become a sub-window.
_SUB_WINDOW_PREFIX = "win"
SUB_WINDOW = "sub_window"

# Window classes that host several tools.
_HOST_APPS: dict[str, str] = {
    "com.mitchellh.ghostty": "Ghostty",
    "kitty": "Kitty",
    "alacritty": "Alacritty",
    "foot": "Foot",
    "org.wezfurlong.wezterm": "WezTerm",
}

# Checked in order, first marker wins.
_HOSTED_TOOLS: tuple[tuple[str, str], ...] = (
    ("nvim", "NeoVim"),
    ("lazygit", "LazyGit"),
    ("btop", "btop"),
    ("htop", "htop"),
)

# Classes whose titles read "<project> – <file>" with an en-dash separator.
_STRUCTURED_APPS: dict[str, str] = {
    "jetbrains-rustrover": "RustRover",
    "jetbrains-pycharm": "PyCharm",
    "jetbrains-idea": "IntelliJ IDEA",
    "jetbrains-clion": "CLion",
    "jetbrains-goland": "GoLand",
}
_STRUCTURED_SEPARATOR = "–"


@dataclass(slots=True, frozen=True)
class WindowText:
    """A title/class pair with the case-folded forms computed once."""

    title: str
    window_class: str
    folded_title: str
    folded_class: str

    @classmethod
    def from_raw(cls, title: Optional[str], window_class: Optional[str]) -> "WindowText":
        title = (title or "").strip()
        window_class = (window_class or "").strip()
        return cls(title, window_class, title.casefold(), window_class.casefold())


@dataclass(slots=True, frozen=True)
class TitleRule:
    name: str
    matches: Callable[[WindowText], bool]
    transform: Callable[[WindowText], str]


def _chat_app(text: WindowText) -> Optional[str]:
    for marker, identity in _CHAT_APPS:
        if marker in text.folded_title:
            return identity
    return None


def _hosted_tool(text: WindowText) -> str:
    for marker, tool in _HOSTED_TOOLS:
        if marker in text.folded_title:
            return tool
    return _HOST_APPS[text.folded_class]


def _structured_title(text: WindowText) -> str:
    tool = _STRUCTURED_APPS[text.folded_class]
    segment, separator, _ = text.title.partition(_STRUCTURED_SEPARATOR)
    segment = segment.strip()
    if not separator or not segment:
        return tool
    return f"{tool} -> {segment}"


RULES: tuple[TitleRule, ...] = (
    TitleRule(
        "chat-app",
        lambda text: _chat_app(text) is not None,
        lambda text: _chat_app(text) or EMPTY_IDENTITY,
    ),
    TitleRule(
        "new-tab",
        lambda text: text.folded_title.startswith(_NEW_TAB_PREFIX),
        lambda text: text.title[len(_NEW_TAB_PREFIX):].strip(),
    ),
    TitleRule(
        "sub-window",
        lambda text: text.title.startswith(_SUB_WINDOW_PREFIX),
        lambda text: SUB_WINDOW,
    ),
    TitleRule(
        "hosted-tool",
        lambda text: text.folded_class in _HOST_APPS,
        _hosted_tool,
    ),
    TitleRule(
        "structured-title",
        lambda text: text.folded_class in _STRUCTURED_APPS,
        _structured_title,
    ),
)


def normalize(
    title: Optional[str],
    window_class: Optional[str],
    rules: tuple[TitleRule, ...] = RULES,
) -> str:
    """Return the identity for a window, or ``EMPTY_IDENTITY`` if it has none."""
    text = WindowText.from_raw(title, window_class)
    identity = text.title
    for rule in rules:
        if rule.matches(text):
            identity = rule.transform(text)
            break
    return identity or text.window_class or EMPTY_IDENTITY


def matching_rule(
    title: Optional[str],
    window_class: Optional[str],
    rules: tuple[TitleRule, ...] = RULES,
) -> Optional[str]:
    """Name of the rule that decides the identity, for debug logging."""
    text = WindowText.from_raw(title, window_class)
    for rule in rules:
        if rule.matches(text):
            return rule.name
    return None
