"""Activate views: fetch or build the markup, install it, wire it up.

Each activation takes a ``(route, generation)`` ticket before its first
await. A fetch that completes after a newer activation has started is
discarded, so a slow response can never overwrite the view the user
navigated to last.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from controltower._constants import GREETING_ID, LAST_UPDATED_ID, STAT_IDS
from controltower._transport import FragmentSource
from controltower.exceptions import ViewFragmentError
from controltower.notify import Notifier
from controltower.provider import ShipmentProvider
from controltower.router import ResolutionStrategy, Route, Router
from controltower.session import SessionStore
from controltower.settings import SettingsStore
from controltower.surface import RenderSurface
from controltower.views.bindings import EventBindings
from controltower.views.builders import LOCAL_BUILDERS, SECONDARY_RENDERERS, ViewContext, greeting_text

_logger = logging.getLogger(__name__)

NAVIGATION_ERROR_TITLE = "Navigation Error"
NAVIGATION_ERROR_MESSAGE = "An error occurred while switching views. Please refresh the page."


class ViewResolver:
    """Install the view for a route into the main content region.

    Parameters
    ----------
    router : Router
        Route table lookups.
    surface : RenderSurface
        Receives the markup and post-install updates.
    bindings : EventBindings
        Rebound on every install.
    notifier : Notifier
        Reports view-switch failures.
    provider : ShipmentProvider
        Data for local builders, stats and the shipment list.
    sessions : SessionStore
        Source of the vendor greeting.
    settings : SettingsStore
        Thresholds used by the telemetry builder.
    fragments : FragmentSource, optional
        Remote fragments; ``None`` means every view is built locally.
    clock : callable, optional
        Returns the "last updated" time.
    """

    def __init__(
        self,
        router: Router,
        surface: RenderSurface,
        bindings: EventBindings,
        notifier: Notifier,
        provider: ShipmentProvider,
        sessions: SessionStore,
        settings: SettingsStore,
        fragments: FragmentSource | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._router = router
        self._surface = surface
        self._bindings = bindings
        self._notifier = notifier
        self._provider = provider
        self._sessions = sessions
        self._settings = settings
        self._fragments = fragments
        self._clock = clock
        self._generation = 0
        self._current: Route | None = None
        self._markup = ""

    @property
    def current(self) -> Route | None:
        """Route of the most recently installed view."""
        return self._current

    def _context(self) -> ViewContext:
        return ViewContext(
            provider=self._provider,
            settings=self._settings.load(),
            session=self._sessions.load(),
        )

    def _is_latest(self, ticket: tuple[Route, int]) -> bool:
        return ticket[1] == self._generation

    async def activate_view(self, route: Route) -> bool:
        """Show ``route``; returns False when superseded or failed."""
        self._surface.set_active_nav(route.value)
        self._generation += 1
        ticket = (route, self._generation)

        try:
            markup = await self._fetch(route)
            if not self._is_latest(ticket):
                _logger.debug("Discarding stale view %s (generation %d)", route.value, ticket[1])
                return False
            if markup is None:
                markup = LOCAL_BUILDERS[route](self._context())
            self._install(route, markup)
        except Exception:
            _logger.error("Failed to switch to view %s", route.value, exc_info=True)
            if self._is_latest(ticket):
                self._notifier.alert(NAVIGATION_ERROR_MESSAGE, NAVIGATION_ERROR_TITLE)
            return False
        return True

    async def _fetch(self, route: Route) -> str | None:
        if self._fragments is None:
            return None
        if self._router.descriptor(route).strategy is not ResolutionStrategy.REMOTE_THEN_LOCAL:
            return None
        try:
            return await self._fragments.fetch(route.value)
        except ViewFragmentError as exc:
            _logger.debug("No remote fragment for %s (%s); building locally", route.value, exc)
            return None
        except Exception:
            _logger.warning("Fragment source failed for %s; building locally", route.value, exc_info=True)
            return None

    def _install(self, route: Route, markup: str) -> None:
        self._surface.set_main_content(markup)
        self._current = route
        self._markup = markup
        ctx = self._context()

        extra: list[str] = []
        renderer = SECONDARY_RENDERERS.get(route)
        if renderer is not None:
            try:
                element_id, inner = renderer(ctx)
            except Exception:
                _logger.error("Secondary renderer for %s failed", route.value, exc_info=True)
            else:
                if self._surface.set_element_markup(element_id, inner):
                    extra.append(inner)

        self._bindings.rebind(markup, *extra)
        self._surface.set_element_text(GREETING_ID, greeting_text(ctx.session))
        self.refresh_stats()
        self._surface.set_element_text(LAST_UPDATED_ID, f"Last updated: {self._clock():%Y-%m-%d %H:%M:%S}")

    def refresh_stats(self) -> None:
        stats = self._provider.get_stats()
        for field_name, element_id in STAT_IDS.items():
            self._surface.set_element_text(element_id, str(getattr(stats, field_name)))

    def refresh_secondary(self) -> None:
        """Re-run the current view's secondary renderer (after data changes)."""
        if self._current is None:
            return
        renderer = SECONDARY_RENDERERS.get(self._current)
        if renderer is None:
            return
        element_id, inner = renderer(self._context())
        if self._surface.set_element_markup(element_id, inner):
            self._bindings.rebind(self._markup, inner)
        self.refresh_stats()
