"""The single reusable overlay shared by every dashboard flow.

The overlay is a two-state machine::

    OverlayClosed  --open()-->  OverlayOpen(content, size)
    OverlayOpen    --open()-->  (close cleanup)  -->  OverlayOpen(new content)
    OverlayOpen    --close()--> OverlayClosed

Opening always runs the close cleanup of whatever was showing first, so
no title, body, footer, inline error, ``on_open`` callback or action
handler of a previous flow survives into the next one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict

from controltower.exceptions import OverlayError
from controltower.settings import OverlaySize, OverlayStyle, Settings
from controltower.surface import OverlaySurface

_logger = logging.getLogger(__name__)

OnOpen = Callable[[], Any]


@dataclass(frozen=True)
class OverlayContent:
    title: str = ""
    body: str = ""
    footer: str = ""
    on_open: OnOpen | None = None
    actions: Mapping[str, Callable[..., Any]] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class OverlayClosed:
    pass


@dataclass(frozen=True)
class OverlayOpen:
    content: OverlayContent
    size: OverlaySize
    ticket: int
    error: str | None = None


class OverlayState(BaseModel):
    """Read-only snapshot of the overlay."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_open: bool = False
    title: str = ""
    body: str = ""
    footer: str = ""
    size: OverlaySize = OverlaySize.REGULAR
    on_open: OnOpen | None = None
    error: str | None = None


class OverlayManager:
    """Owns the overlay's open/closed state and its content slots.

    Parameters
    ----------
    surface : OverlaySurface
        Where the overlay is drawn.
    settings : callable, optional
        Returns current :class:`Settings`; consulted for the default size
        when ``open`` gets no explicit size.
    """

    def __init__(self, surface: OverlaySurface, settings: Callable[[], Settings] | None = None) -> None:
        self._surface = surface
        self._settings = settings
        self._state: OverlayClosed | OverlayOpen = OverlayClosed()
        self._tickets = 0

    @property
    def is_open(self) -> bool:
        return isinstance(self._state, OverlayOpen)

    @property
    def state(self) -> OverlayState:
        current = self._state
        if isinstance(current, OverlayClosed):
            return OverlayState()
        return OverlayState(
            is_open=True,
            title=current.content.title,
            body=current.content.body,
            footer=current.content.footer,
            size=current.size,
            on_open=current.content.on_open,
            error=current.error,
        )

    def is_current(self, ticket: int) -> bool:
        """Whether ``ticket`` (returned by :meth:`open`) is still on screen."""
        return isinstance(self._state, OverlayOpen) and self._state.ticket == ticket

    def _resolve_size(self, size: OverlaySize | str | None) -> OverlaySize:
        if size:
            return OverlaySize(size)
        if self._settings is not None:
            try:
                return self._settings().default_overlay_size
            except Exception:
                _logger.debug("Could not read default overlay size", exc_info=True)
        return OverlaySize.REGULAR

    def open(
        self,
        *,
        title: str = "",
        body: str = "",
        footer: str = "",
        size: OverlaySize | str | None = None,
        on_open: OnOpen | None = None,
        actions: Mapping[str, Callable[..., Any]] | None = None,
    ) -> int:
        """Show new content, replacing everything from any previous flow.

        Returns a ticket identifying this opening; flows that resume after
        an await use :meth:`is_current` to check they still own the overlay.
        """
        if isinstance(self._state, OverlayOpen):
            self._teardown()

        self._tickets += 1
        content = OverlayContent(
            title=title,
            body=body,
            footer=footer,
            on_open=on_open,
            actions=MappingProxyType(dict(actions or {})),
        )
        resolved = self._resolve_size(size)
        self._state = OverlayOpen(content=content, size=resolved, ticket=self._tickets)
        self._surface.show_overlay(title=title, body=body, footer=footer, size=resolved)

        if on_open is not None:
            try:
                on_open()
            except Exception:
                _logger.error("Overlay on_open callback failed", exc_info=True)
        return self._tickets

    def close(self) -> None:
        if isinstance(self._state, OverlayClosed):
            return
        self._teardown()

    def _teardown(self) -> None:
        self._state = OverlayClosed()
        self._surface.set_overlay_error(None)
        self._surface.hide_overlay()

    def trigger(self, action: str, *args: Any, **kwargs: Any) -> Any:
        """Dispatch an action handler registered by the current content."""
        current = self._state
        if isinstance(current, OverlayClosed):
            raise OverlayError(f"overlay is closed; cannot dispatch {action!r}")
        handler = current.content.actions.get(action)
        if handler is None:
            raise OverlayError(f"overlay content has no {action!r} action")
        return handler(*args, **kwargs)

    def show_error(self, message: str) -> None:
        """Display an inline error that stays until cleared."""
        if isinstance(self._state, OverlayOpen):
            self._state = replace(self._state, error=message)
            self._surface.set_overlay_error(message)

    def clear_error(self) -> None:
        if isinstance(self._state, OverlayOpen) and self._state.error is not None:
            self._state = replace(self._state, error=None)
            self._surface.set_overlay_error(None)

    def focus(self, element_id: str) -> bool:
        return self._surface.focus(element_id)

    def apply_style(self, style: OverlayStyle) -> None:
        self._surface.set_overlay_style(style)
