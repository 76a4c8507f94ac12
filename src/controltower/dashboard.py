"""Dashboard composition root."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import aiohttp
from pydantic import ValidationError

from controltower._constants import (
    CHANGE_PASSWORD_BUTTON_ID,
    LOGOUT_ADDRESS,
    NEW_ORDER_BUTTON_ID,
    RESET_SETTINGS_BUTTON_ID,
    SETTINGS_FORM_ID,
    WHATSAPP_DEMO_BUTTON_ID,
)
from controltower._transport import FragmentSource, HttpFragmentSource, HttpTransport, JsonTransport
from controltower.config import DashboardConfig
from controltower.credentials import UNSET, CredentialChangeController, PasswordForm, _Unset
from controltower.exceptions import ControlTowerError
from controltower.models.shipment import Shipment
from controltower.notify import Notifier
from controltower.overlay import OverlayManager
from controltower.provider import InMemoryShipmentProvider, ShipmentProvider
from controltower.router import Location, Route, Router, path_for, resolve_route
from controltower.session import Session, SessionStore
from controltower.settings import OverlaySize, Settings, SettingsStore
from controltower.share import (
    ClipboardCapability,
    PromptCapability,
    ShareCapability,
    ShareController,
    ShareOutcome,
    build_telemetry_snapshot,
)
from controltower.storage import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from controltower.surface import MemorySurface
from controltower.views import overlays as _overlays
from controltower.views.bindings import EventBindings
from controltower.views.resolver import ViewResolver

_logger = logging.getLogger(__name__)

MSG_SHARE_UNAVAILABLE = "Telemetry not available to share"
MSG_ORDER_FIELDS = "Please fill in origin and destination"
MSG_ORDER_CRATES = "Crates must be at least 1"
MSG_SETTINGS_SAVED = "Settings saved successfully!\n\nYour preferences have been updated."
MSG_SETTINGS_RESET = "Settings reset to default values!"
MSG_SETTINGS_INVALID = "Please enter valid settings values."


class Dashboard:
    """The control tower dashboard: routing, views, overlays and flows.

    Usage::

        async with Dashboard(config, provider=provider) as dashboard:
            await dashboard.start("/dashboard/telemetry")
            await dashboard.share_telemetry("SHP-001")

    Parameters
    ----------
    config : DashboardConfig, optional
        Defaults to :meth:`DashboardConfig.from_env`.
    store : KeyValueStore, optional
        Settings and session storage. Defaults to a JSON file when
        ``config.storage_path`` is set, else memory.
    provider : ShipmentProvider, optional
        Shipment and telemetry data.
    surface : optional
        Object implementing both ``RenderSurface`` and ``OverlaySurface``.
    transport : JsonTransport, optional
        Backend transport; built over the HTTP session when omitted.
    fragments : FragmentSource, optional
        Remote view fragments; built from ``config.views_base_url`` when
        omitted and remote fragments are enabled.
    session : aiohttp.ClientSession, optional
        Shared HTTP session; owned (and closed) by the dashboard when omitted.
    share, clipboard, prompt : optional
        Platform capabilities for telemetry sharing.
    """

    def __init__(
        self,
        config: DashboardConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        provider: ShipmentProvider | None = None,
        surface: Any = None,
        transport: JsonTransport | None = None,
        fragments: FragmentSource | None = None,
        session: aiohttp.ClientSession | None = None,
        share: ShareCapability | None = None,
        clipboard: ClipboardCapability | None = None,
        prompt: PromptCapability | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config or DashboardConfig.from_env()
        if store is None:
            if self._config.storage_path is not None:
                store = JsonFileKeyValueStore(self._config.storage_path)
            else:
                store = MemoryKeyValueStore()
        self._store = store
        self._provider = provider if provider is not None else InMemoryShipmentProvider()
        self._surface = surface if surface is not None else MemorySurface()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._fragments = fragments
        self._clock = clock

        self._settings = SettingsStore(store, key=self._config.settings_key)
        self._sessions = SessionStore(store, keys=self._config.session_keys)
        self._router = Router()
        self._bindings = EventBindings()
        self._overlay = OverlayManager(self._surface, self._settings.load)
        self._notifier = Notifier(self._surface, self._overlay, toast_duration=self._config.toast_duration)
        self._share = ShareController(
            self._notifier,
            share=share,
            clipboard=clipboard,
            prompt=prompt,
            retry_delay=self._config.share_retry_delay,
        )
        self._resolver: ViewResolver | None = None
        self._credentials: CredentialChangeController | None = None

        self._bindings.register(NEW_ORDER_BUTTON_ID, self.open_order_form)
        self._bindings.register(CHANGE_PASSWORD_BUTTON_ID, lambda: self.open_change_password(""))
        self._bindings.register(SETTINGS_FORM_ID, self.save_settings)
        self._bindings.register(RESET_SETTINGS_BUTTON_ID, self.reset_settings)
        self._bindings.register(WHATSAPP_DEMO_BUTTON_ID, self.show_whatsapp_demo)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Dashboard:
        needs_http = self._transport is None or (self._fragments is None and self._config.remote_fragments)
        if needs_http and self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        transport = self._transport
        if transport is None:
            assert self._http_session is not None  # noqa: S101
            transport = HttpTransport(self._config.backend_url, self._http_session)
        fragments = self._fragments
        if fragments is None and self._config.remote_fragments:
            assert self._http_session is not None and self._config.views_base_url is not None  # noqa: S101
            fragments = HttpFragmentSource(self._config.views_base_url, self._http_session)

        self._resolver = ViewResolver(
            self._router,
            self._surface,
            self._bindings,
            self._notifier,
            self._provider,
            self._sessions,
            self._settings,
            fragments,
            clock=self._clock,
        )
        self._credentials = CredentialChangeController(
            self._overlay,
            self._sessions,
            self._notifier,
            transport,
            location=lambda: self._router.location,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._overlay.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._resolver = None
        self._credentials = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _require_resolver(self) -> ViewResolver:
        if self._resolver is None:
            raise ControlTowerError("Dashboard not started. Use 'async with Dashboard(...) as dashboard:'")
        return self._resolver

    @property
    def credentials(self) -> CredentialChangeController:
        if self._credentials is None:
            raise ControlTowerError("Dashboard not started. Use 'async with Dashboard(...) as dashboard:'")
        return self._credentials

    @property
    def overlay(self) -> OverlayManager:
        return self._overlay

    @property
    def router(self) -> Router:
        return self._router

    @property
    def bindings(self) -> EventBindings:
        return self._bindings

    @property
    def sharing(self) -> ShareController:
        return self._share

    @property
    def settings(self) -> Settings:
        return self._settings.load()

    @property
    def current_route(self) -> Route | None:
        return self._require_resolver().current

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def check_authentication(self) -> Session | None:
        """Current session, or ``None``. Never redirects."""
        return self._sessions.load()

    async def start(self, location: Location | str | None = None) -> Route:
        """Apply saved preferences and show the view the address points at."""
        if isinstance(location, str):
            location = Location.parse(location)
        if location is not None:
            self._router.replace_location(location)
        self._overlay.apply_style(self._settings.load().overlay_style)
        route = self._router.resolve_route()
        _logger.debug("Starting on route %s", route.value)
        await self._require_resolver().activate_view(route)
        return route

    async def navigate(self, route: Route | str) -> bool:
        """Sidebar navigation: record a clean path, then switch views.

        Unknown route keys fall back to the dashboard.
        """
        if not isinstance(route, Route):
            route = resolve_route(Location(path=path_for(Route.DASHBOARD), fragment=route))
        location = self._router.push(route)
        self._surface.set_address(location.to_url())
        return await self._require_resolver().activate_view(route)

    async def on_location_changed(self, location: Location | str) -> bool:
        """Back/forward or fragment change."""
        if isinstance(location, str):
            location = Location.parse(location)
        route = self._router.replace_location(location)
        return await self._require_resolver().activate_view(route)

    async def dispatch(self, element_id: str, *args: Any, **kwargs: Any) -> Any:
        """Run the handler bound to ``element_id`` in the current view."""
        result = self._bindings.dispatch(element_id, *args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def trigger(self, action: str, *args: Any, **kwargs: Any) -> Any:
        """Run an action of the content currently in the overlay."""
        result = self._overlay.trigger(action, *args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def handle_card_action(self, action: str, shipment_id: str) -> Any:
        """``data-action`` buttons on shipment and sensor cards."""
        handlers: dict[str, Callable[[str], Any]] = {
            "telemetry": self.open_telemetry_detail,
            "alerts": self.view_alerts,
            "freshness": self.generate_freshness_report,
            "share": self.share_telemetry,
        }
        handler = handlers.get(action)
        if handler is None:
            raise ControlTowerError(f"Unknown card action: {action!r}")
        result = handler(shipment_id)
        if inspect.isawaitable(result):
            result = await result
        return result

    def dismiss(self) -> None:
        """Escape key or the overlay close button."""
        self._overlay.close()

    def logout(self) -> None:
        self._sessions.clear()
        _logger.debug("Session cleared; leaving for %s", LOGOUT_ADDRESS)
        self._surface.set_address(LOGOUT_ADDRESS)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def open_order_form(self) -> int:
        return self._overlay.open(
            title="Create New Order",
            body=_overlays.order_form(),
            footer=_overlays.ORDER_FOOTER,
            on_open=lambda: self._overlay.focus("orderOrigin"),
            actions={"submit": self.submit_order, "close": self._overlay.close},
        )

    async def submit_order(
        self,
        *,
        origin: str,
        destination: str,
        crates: int | str,
        bio_shield: bool = True,
    ) -> Shipment | None:
        origin, destination = origin.strip(), destination.strip()
        if not origin or not destination:
            self._overlay.show_error(MSG_ORDER_FIELDS)
            return None
        try:
            count = int(crates)
        except (TypeError, ValueError):
            count = 0
        if count < 1:
            self._overlay.show_error(MSG_ORDER_CRATES)
            return None

        shipment = self._provider.create_order(
            origin=origin,
            destination=destination,
            crates=count,
            bio_shield=bio_shield,
        )
        self._overlay.close()
        self._notifier.toast(f"Order {shipment.id} created successfully")

        resolver = self._require_resolver()
        if resolver.current is Route.DASHBOARD:
            resolver.refresh_secondary()
        elif resolver.current is Route.SHIPMENTS:
            await resolver.activate_view(Route.SHIPMENTS)
        return shipment

    # ------------------------------------------------------------------
    # Shipment overlays
    # ------------------------------------------------------------------

    def open_telemetry_detail(self, shipment_id: str) -> bool:
        shipment = self._provider.get_shipment(shipment_id)
        if shipment is None:
            self._notifier.alert("Shipment not found!", "Shipment")
            return False
        body = _overlays.telemetry_detail(
            shipment,
            self._provider.get_latest_telemetry(shipment_id),
            self._provider.get_telemetry_history(shipment_id),
            self._settings.load(),
        )
        self._overlay.open(
            title=f"Shipment {shipment.id}",
            body=body,
            footer=_overlays.CLOSE_FOOTER,
            actions={"close": self._overlay.close},
        )
        return True

    def view_alerts(self, shipment_id: str) -> bool:
        shipment = self._provider.get_shipment(shipment_id)
        if shipment is None or not shipment.alerts:
            return False
        self._notifier.alert(_overlays.alerts_message(shipment), f"Alerts — {shipment.id}")
        return True

    def generate_freshness_report(self, shipment_id: str) -> bool:
        shipment = self._provider.get_shipment(shipment_id)
        if shipment is None:
            return False
        self._notifier.alert(_overlays.freshness_certificate(shipment, self._clock()), "Freshness Certificate")
        return True

    def show_whatsapp_demo(self) -> int:
        return self._overlay.open(
            title="WhatsApp — Sample Order",
            body=_overlays.whatsapp_sample(),
            footer=_overlays.CLOSE_FOOTER,
            size=OverlaySize.SMALL,
            actions={"close": self._overlay.close},
        )

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    async def share_telemetry(self, shipment_id: str) -> ShareOutcome | None:
        shipment = self._provider.get_shipment(shipment_id)
        reading = self._provider.get_latest_telemetry(shipment_id)
        if shipment is None or reading is None:
            self._notifier.toast(MSG_SHARE_UNAVAILABLE)
            return None
        snapshot = build_telemetry_snapshot(shipment, reading)
        url = Location(path=self._router.location.path, fragment=Route.TELEMETRY.value).to_url()
        return await self._share.share_snapshot(snapshot.subject, snapshot.body_text, url)

    # ------------------------------------------------------------------
    # Settings and credentials
    # ------------------------------------------------------------------

    def open_change_password(self, token: str | None | _Unset = UNSET) -> PasswordForm:
        return self.credentials.present_change_form(token)

    def save_settings(self, values: Settings | Mapping[str, Any]) -> Settings | None:
        """Persist ``values``; an unparsable form is reported and nothing is saved."""
        try:
            settings = values if isinstance(values, Settings) else Settings.model_validate(dict(values))
        except ValidationError as exc:
            _logger.debug("Rejected settings form: %s", exc)
            self._notifier.alert(MSG_SETTINGS_INVALID, "Settings")
            return None
        self._settings.save(settings)
        self._overlay.apply_style(settings.overlay_style)
        self._notifier.alert(MSG_SETTINGS_SAVED, "Settings")
        return settings

    async def reset_settings(self) -> Settings:
        settings = self._settings.reset()
        self._overlay.apply_style(settings.overlay_style)
        resolver = self._require_resolver()
        if resolver.current is Route.SETTINGS:
            await resolver.activate_view(Route.SETTINGS)
        self._notifier.alert(MSG_SETTINGS_RESET, "Settings")
        return settings
