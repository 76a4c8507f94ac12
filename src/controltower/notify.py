"""Toasts and blocking alerts."""

from __future__ import annotations

import html

from controltower._constants import TOAST_DURATION_S
from controltower.overlay import OverlayManager
from controltower.settings import OverlaySize
from controltower.surface import RenderSurface


class Notifier:
    """User-facing notices.

    Toasts are transient; alerts occupy the shared overlay with a single
    OK button. Without an overlay, alerts degrade to toasts.
    """

    def __init__(
        self,
        surface: RenderSurface,
        overlay: OverlayManager | None = None,
        *,
        toast_duration: float = TOAST_DURATION_S,
    ) -> None:
        self._surface = surface
        self._overlay = overlay
        self._toast_duration = toast_duration

    def toast(self, message: str, duration: float | None = None) -> None:
        self._surface.show_toast(message, self._toast_duration if duration is None else duration)

    def alert(self, message: str, title: str = "Alert", *, markup: bool = False) -> None:
        """Show ``message`` in the overlay.

        Plain text is escaped and newlines become line breaks; pass
        ``markup=True`` for pre-built markup.
        """
        if self._overlay is None:
            self.toast(message)
            return
        body_html = message if markup else html.escape(message).replace("\n", "<br>")
        self._overlay.open(
            title=title,
            body=f'<div class="alert-body">{body_html}</div>',
            footer='<button class="btn-primary" data-action="close">OK</button>',
            size=OverlaySize.SMALL,
            actions={"close": self._overlay.close},
        )
