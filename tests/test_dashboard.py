"""End-to-end flows through the Dashboard composition root."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import pytest

from controltower._transport import JsonResponse
from controltower.config import DashboardConfig
from controltower.dashboard import MSG_SETTINGS_INVALID, MSG_SHARE_UNAVAILABLE, Dashboard
from controltower.exceptions import BindingError, ControlTowerError, ViewFragmentError
from controltower.provider import InMemoryShipmentProvider
from controltower.router import Route
from controltower.settings import OverlaySize, OverlayStyle, Settings
from controltower.share import ShareOutcome
from controltower.storage import MemoryKeyValueStore
from controltower.surface import MemorySurface

SHIPMENTS = [
    {
        "id": "SHP-001",
        "truckId": "TRK-1",
        "origin": "Kano Hub",
        "destination": "Mile 12 Market",
        "qualityStatus": "Green",
        "bioShieldApplied": True,
        "hubTriageDecision": "Priority Dispatch",
        "hubTemperature": 24,
        "hubGasReading": 110,
        "hubHumidity": 78,
    },
    {
        "id": "SHP-002",
        "truckId": "TRK-2",
        "origin": "Jos",
        "destination": "Abuja",
        "qualityStatus": "Orange",
        "networkStatus": "offline",
        "sdSyncStatus": {"pendingRecords": 3},
        "alerts": [{"severity": "orange", "message": "Gas rising"}],
    },
    {"id": "SHP-003", "truckId": "TRK-3", "origin": "Ibadan", "destination": "Lagos", "status": "Completed"},
]

TELEMETRY = {
    "SHP-001": [
        {"timestamp": "2024-03-01T08:00:00Z", "temperature": 22, "gasLevel": 100, "humidity": 80,
         "location": {"name": "Zaria"}},
        {"timestamp": "2024-03-01T10:00:00Z", "temperature": 26, "gasLevel": 120, "humidity": 82,
         "location": {"name": "Kaduna"}},
    ],
    "SHP-002": [
        {"timestamp": "2024-03-01T10:00:00Z", "temperature": 30, "gasLevel": 320, "humidity": 97,
         "location": {"name": "Lokoja"}},
    ],
}


class _NoFragments:
    def __init__(self) -> None:
        self.requested: list[str] = []

    async def fetch(self, route: str) -> str:
        self.requested.append(route)
        raise ViewFragmentError("HTTP 404", status_code=404)


class _Transport:
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def post_json(self, endpoint: str, payload: Mapping[str, Any], *, bearer: str | None = None) -> JsonResponse:
        self.calls.append(endpoint)
        return JsonResponse(status=200, body={})


class _Clipboard:
    def __init__(self) -> None:
        self.written: list[str] = []

    async def write_text(self, text: str) -> None:
        self.written.append(text)


class _Share:
    def __init__(self) -> None:
        self.calls: list[dict[str, str]] = []

    async def share(self, *, title: str, text: str, url: str) -> None:
        self.calls.append({"title": title, "text": text, "url": url})


def _dashboard(
    *,
    store: MemoryKeyValueStore | None = None,
    fragments: object = None,
    **kwargs: Any,
) -> tuple[Dashboard, MemorySurface, MemoryKeyValueStore]:
    store = store if store is not None else MemoryKeyValueStore()
    surface = MemorySurface()
    dashboard = Dashboard(
        DashboardConfig(),
        store=store,
        provider=InMemoryShipmentProvider(SHIPMENTS, TELEMETRY),
        surface=surface,
        transport=_Transport(),
        fragments=fragments,  # type: ignore[arg-type]
        clock=lambda: datetime(2024, 3, 1, 12, 0, 0),
        **kwargs,
    )
    return dashboard, surface, store


@pytest.mark.asyncio
async def test_telemetry_route_without_fragments_renders_classified_cards() -> None:
    fragments = _NoFragments()
    dashboard, surface, _ = _dashboard(fragments=fragments)

    async with dashboard:
        route = await dashboard.start("/dashboard/telemetry")

    assert route is Route.TELEMETRY
    assert fragments.requested == ["telemetry"]
    cards = re.findall(r'<div class="sensor-card" data-shipment="([^"]+)"', surface.main_content)
    assert cards == ["SHP-001", "SHP-002"]

    first, second = surface.main_content.split('class="sensor-card"')[1:]
    # SHP-001 latest: 26°C warning, 120 ppm safe, 82% optimal.
    assert "badge status-warning" in first and ">Warning<" in first
    assert ">Safe<" in first
    # SHP-002 latest: 30°C critical, 320 ppm critical, 97% saturated.
    assert second.count("badge status-critical") == 3
    assert ">Saturated<" in second


@pytest.mark.asyncio
async def test_malformed_session_reports_no_session_and_clears_keys() -> None:
    store = MemoryKeyValueStore({"qooa_vendor_session": "not json {", "qooa_session": '{"token": "x"}'})
    dashboard, surface, _ = _dashboard(store=store)

    async with dashboard:
        assert dashboard.check_authentication() is None
        await dashboard.start("/dashboard")

    assert store.get("qooa_vendor_session") is None
    assert store.get("qooa_session") is None
    assert surface.element_text["vendorGreeting"] == "Welcome to QOOA Control Tower"


@pytest.mark.asyncio
async def test_dashboard_fills_greeting_stats_and_shipments() -> None:
    store = MemoryKeyValueStore({"qooa_vendor_session": '{"token": "t", "vendor": {"name": "Ada Farms"}}'})
    dashboard, surface, _ = _dashboard(store=store)

    async with dashboard:
        await dashboard.start()

    assert surface.element_text["vendorGreeting"] == "Welcome back, Ada Farms"
    assert surface.element_text["totalShipments"] == "3"
    assert surface.element_text["inTransit"] == "2"
    assert surface.element_text["completed"] == "1"
    assert surface.element_text["bioShieldActive"] == "1"
    listing = surface.element_markup["shipmentsContainer"]
    assert "Cached to SD" in listing
    assert "3 records pending sync" in listing
    assert "1 Warning" in listing
    assert surface.element_text["lastUpdated"] == "Last updated: 2024-03-01 12:00:00"


@pytest.mark.asyncio
async def test_navigate_records_clean_path() -> None:
    dashboard, surface, _ = _dashboard()

    async with dashboard:
        await dashboard.start("/dashboard#reports")
        assert dashboard.current_route is Route.REPORTS
        assert await dashboard.navigate("settings")

        assert surface.address == "/dashboard/settings"
        assert surface.active_nav == "settings"
        assert dashboard.current_route is Route.SETTINGS

        assert await dashboard.on_location_changed("/dashboard/settings#shipments")
        assert dashboard.current_route is Route.SHIPMENTS


@pytest.mark.asyncio
async def test_navigate_unknown_key_falls_back_to_dashboard() -> None:
    dashboard, surface, _ = _dashboard()

    async with dashboard:
        await dashboard.start("/dashboard#reports")
        assert await dashboard.navigate("Nowhere")

        assert dashboard.current_route is Route.DASHBOARD
        assert surface.address == "/dashboard"
        assert surface.active_nav == "dashboard"

        assert await dashboard.navigate("REPORTS")
        assert dashboard.current_route is Route.REPORTS


@pytest.mark.asyncio
async def test_requires_context_manager() -> None:
    dashboard, _, _ = _dashboard()
    with pytest.raises(ControlTowerError):
        await dashboard.navigate(Route.REPORTS)


@pytest.mark.asyncio
async def test_new_order_flow_refreshes_dashboard_list() -> None:
    dashboard, surface, _ = _dashboard()

    async with dashboard:
        await dashboard.start()
        await dashboard.dispatch("newOrderBtn")
        assert surface.overlay.title == "Create New Order"
        assert surface.focused == "orderOrigin"

        created = await dashboard.trigger(
            "submit", origin="Kano Hub", destination="Onitsha", crates="12", bio_shield=True
        )

    assert created is not None
    assert created.id == "SHP-004"
    assert not surface.overlay.visible
    assert surface.last_toast == "Order SHP-004 created successfully"
    assert "SHP-004" in surface.rendered()
    assert surface.element_text["totalShipments"] == "4"


@pytest.mark.asyncio
async def test_new_order_validation_keeps_form_open() -> None:
    dashboard, surface, _ = _dashboard()

    async with dashboard:
        await dashboard.start()
        dashboard.open_order_form()
        assert await dashboard.submit_order(origin=" ", destination="Lagos", crates=2) is None
        assert surface.overlay.error == "Please fill in origin and destination"
        assert await dashboard.submit_order(origin="Kano", destination="Lagos", crates="zero") is None
        assert surface.overlay.error == "Crates must be at least 1"
        assert surface.overlay.visible


@pytest.mark.asyncio
async def test_telemetry_detail_overlay() -> None:
    dashboard, surface, _ = _dashboard()

    async with dashboard:
        await dashboard.start()
        assert await dashboard.handle_card_action("telemetry", "SHP-001")

        body = surface.overlay.body
        assert surface.overlay.title == "Shipment SHP-001"
        assert "Priority Dispatch" in body
        assert body.index("Kaduna") < body.index("Zaria")
        assert 'timeline-marker orange' in body
        assert 'timeline-marker green' in body

        dashboard.dismiss()
        assert not surface.overlay.visible

        assert dashboard.open_telemetry_detail("SHP-404") is False
        assert surface.overlay.title == "Shipment"


@pytest.mark.asyncio
async def test_alerts_and_freshness_overlays() -> None:
    dashboard, surface, _ = _dashboard()

    async with dashboard:
        await dashboard.start()
        assert dashboard.view_alerts("SHP-002")
        assert surface.overlay.title == "Alerts — SHP-002"
        assert "1. [ORANGE] Gas rising" in surface.overlay.body

        assert not dashboard.view_alerts("SHP-001")

        assert dashboard.generate_freshness_report("SHP-001")
        assert surface.overlay.title == "Freshness Certificate"
        assert "Certificate ID: FC-" in surface.overlay.body


@pytest.mark.asyncio
async def test_share_telemetry_uses_platform_share() -> None:
    share = _Share()
    dashboard, surface, _ = _dashboard(share=share)

    async with dashboard:
        await dashboard.start("/dashboard/telemetry?x=1")
        outcome = await dashboard.handle_card_action("share", "SHP-001")

    assert outcome is ShareOutcome.SHARED
    assert share.calls[0]["title"] == "Telemetry — SHP-001"
    assert share.calls[0]["url"] == "/dashboard/telemetry#telemetry"
    assert "Location: Kaduna" in share.calls[0]["text"]


@pytest.mark.asyncio
async def test_share_telemetry_without_reading() -> None:
    clipboard = _Clipboard()
    dashboard, surface, _ = _dashboard(clipboard=clipboard)

    async with dashboard:
        assert await dashboard.share_telemetry("SHP-003") is None

    assert surface.last_toast == MSG_SHARE_UNAVAILABLE
    assert clipboard.written == []


@pytest.mark.asyncio
async def test_settings_view_save_and_reset() -> None:
    dashboard, surface, store = _dashboard()

    async with dashboard:
        await dashboard.navigate(Route.SETTINGS)
        saved = await dashboard.dispatch(
            "settingsForm",
            {"smsAlerts": False, "overlayStyle": "side", "defaultOverlaySize": "small", "criticalTemperature": 26},
        )
        assert saved.sms_alerts is False
        assert surface.overlay_style is OverlayStyle.SIDE
        assert surface.overlay.title == "Settings"
        assert surface.overlay.size is OverlaySize.SMALL
        assert dashboard.settings.critical_temperature == 26

        reset = await dashboard.dispatch("resetSettingsBtn")

    assert reset == Settings()
    assert surface.overlay_style is OverlayStyle.CENTERED
    assert "Settings reset to default values!" in surface.overlay.body
    assert 'value="28"' in surface.main_content


@pytest.mark.asyncio
async def test_invalid_settings_form_is_reported_and_not_saved() -> None:
    dashboard, surface, store = _dashboard()

    async with dashboard:
        await dashboard.navigate(Route.SETTINGS)
        result = await dashboard.dispatch("settingsForm", {"criticalTemperature": "hot", "smsAlerts": False})

        assert result is None
        assert surface.overlay.title == "Settings"
        assert MSG_SETTINGS_INVALID in surface.overlay.body
        assert dashboard.settings == Settings()
        assert store.get("qooa_settings") is None


@pytest.mark.asyncio
async def test_settings_change_password_button_uses_authenticated_flow() -> None:
    dashboard, surface, _ = _dashboard()

    async with dashboard:
        await dashboard.start("/dashboard/settings?token=from-link")
        await dashboard.dispatch("changePasswordBtn")
        assert 'id="currentPassword"' in surface.overlay.body

        await dashboard.dispatch("whatsappDemoBtn")
        assert surface.overlay.title == "WhatsApp — Sample Order"
        assert 'id="currentPassword"' not in surface.overlay.body


@pytest.mark.asyncio
async def test_unbound_element_raises() -> None:
    dashboard, _, _ = _dashboard()

    async with dashboard:
        await dashboard.start("/dashboard/reports")
        with pytest.raises(BindingError):
            await dashboard.dispatch("settingsForm", {})


@pytest.mark.asyncio
async def test_start_applies_saved_overlay_style() -> None:
    store = MemoryKeyValueStore({"qooa_settings": '{"overlayModals": false}'})
    dashboard, surface, _ = _dashboard(store=store)

    async with dashboard:
        await dashboard.start()

    assert surface.overlay_style is OverlayStyle.SIDE


@pytest.mark.asyncio
async def test_logout_clears_both_keys() -> None:
    store = MemoryKeyValueStore({"qooa_vendor_session": '{"token": "a"}', "qooa_session": '{"token": "b"}'})
    dashboard, surface, _ = _dashboard(store=store)

    async with dashboard:
        dashboard.logout()

    assert store.get("qooa_vendor_session") is None
    assert store.get("qooa_session") is None
    assert surface.address == "index.html"
