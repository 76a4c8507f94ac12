"""Rendering surface boundary.

The dashboard never touches a document directly; it installs markup and
text through these protocols. A browser bridge, a server-side renderer or
the bundled :class:`MemorySurface` can sit behind them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol

from controltower.settings import OverlaySize, OverlayStyle


class RenderSurface(Protocol):
    """Main content region, navigation, address bar and toasts."""

    def set_main_content(self, markup: str) -> None:
        ...

    def set_element_text(self, element_id: str, text: str) -> bool:
        """Set text of an element inside the main content; False when absent."""
        ...

    def set_element_markup(self, element_id: str, markup: str) -> bool:
        """Replace the inner markup of an element; False when absent."""
        ...

    def set_active_nav(self, route: str) -> None:
        ...

    def set_address(self, url: str) -> None:
        ...

    def show_toast(self, message: str, duration: float) -> None:
        ...


class OverlaySurface(Protocol):
    """The single shared overlay element."""

    def show_overlay(self, *, title: str, body: str, footer: str, size: OverlaySize) -> None:
        ...

    def hide_overlay(self) -> None:
        ...

    def set_overlay_error(self, message: str | None) -> None:
        ...

    def set_overlay_style(self, style: OverlayStyle) -> None:
        ...

    def focus(self, element_id: str) -> bool:
        ...


@dataclass
class OverlayView:
    """What the overlay currently displays."""

    visible: bool = False
    title: str = ""
    body: str = ""
    footer: str = ""
    size: OverlaySize = OverlaySize.REGULAR
    error: str | None = None


@dataclass
class MemorySurface:
    """In-memory surface recording everything the dashboard renders."""

    main_content: str = ""
    address: str = "/dashboard"
    active_nav: str | None = None
    overlay: OverlayView = field(default_factory=OverlayView)
    overlay_style: OverlayStyle = OverlayStyle.CENTERED
    focused: str | None = None
    element_text: dict[str, str] = field(default_factory=dict)
    element_markup: dict[str, str] = field(default_factory=dict)
    toasts: list[str] = field(default_factory=list)

    def has_element(self, element_id: str) -> bool:
        pattern = re.compile(rf"""(?<![\w-])id=["']{re.escape(element_id)}["']""")
        if pattern.search(self.main_content):
            return True
        return any(pattern.search(markup) for markup in self.element_markup.values())

    # RenderSurface

    def set_main_content(self, markup: str) -> None:
        self.main_content = markup
        self.element_text.clear()
        self.element_markup.clear()

    def set_element_text(self, element_id: str, text: str) -> bool:
        if not self.has_element(element_id):
            return False
        self.element_text[element_id] = text
        return True

    def set_element_markup(self, element_id: str, markup: str) -> bool:
        if not self.has_element(element_id):
            return False
        self.element_markup[element_id] = markup
        return True

    def set_active_nav(self, route: str) -> None:
        self.active_nav = route

    def set_address(self, url: str) -> None:
        self.address = url

    def show_toast(self, message: str, duration: float) -> None:
        self.toasts.append(message)

    @property
    def last_toast(self) -> str | None:
        return self.toasts[-1] if self.toasts else None

    def rendered(self) -> str:
        """Main content plus every element filled after installation."""
        return "\n".join([self.main_content, *self.element_markup.values()])

    # OverlaySurface

    def show_overlay(self, *, title: str, body: str, footer: str, size: OverlaySize) -> None:
        self.overlay = OverlayView(visible=True, title=title, body=body, footer=footer, size=size)

    def hide_overlay(self) -> None:
        self.overlay = OverlayView()
        self.focused = None

    def set_overlay_error(self, message: str | None) -> None:
        self.overlay.error = message

    def set_overlay_style(self, style: OverlayStyle) -> None:
        self.overlay_style = style

    def focus(self, element_id: str) -> bool:
        if f'id="{element_id}"' not in self.overlay.body:
            return False
        self.focused = element_id
        return True
