"""Local view builders, one per route.

These synthesize every view straight from the data provider, so the
dashboard is fully usable with no remote fragment source. Each builder
leaves the same element ids a fragment would (stat placeholders,
greeting, ``lastUpdated``, ``shipmentsContainer``) so the post-install
pass treats both paths identically.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from controltower._constants import SHIPMENTS_CONTAINER_ID
from controltower.provider import ShipmentProvider
from controltower.router import Route, _check_exhaustive
from controltower.session import Session
from controltower.settings import Settings
from controltower.views import _markup


@dataclass(frozen=True)
class ViewContext:
    """Everything a builder may read."""

    provider: ShipmentProvider
    settings: Settings
    session: Session | None = None


ViewBuilder = Callable[[ViewContext], str]
SecondaryRenderer = Callable[[ViewContext], tuple[str, str]]


def build_dashboard(ctx: ViewContext) -> str:
    # The shipment list is filled by the dashboard's secondary renderer.
    return (
        _markup.header("Control Tower", "Live overview of all shipments", with_new_order=True, with_greeting=True)
        + _markup.stat_cards()
        + '<section class="shipments-section"><h2>Active Shipments</h2>'
        f'<div id="{SHIPMENTS_CONTAINER_ID}"><div class="loading">Loading shipments...</div></div></section>'
    )


def build_shipments(ctx: ViewContext) -> str:
    return (
        _markup.header("All Shipments", "Manage and track all shipments", with_new_order=True)
        + '<section class="shipments-section">'
        f'<div id="{SHIPMENTS_CONTAINER_ID}">{_markup.shipment_list(ctx.provider.get_shipments())}</div></section>'
    )


def build_telemetry(ctx: ViewContext) -> str:
    cards = []
    for shipment in ctx.provider.get_shipments():
        reading = ctx.provider.get_latest_telemetry(shipment.id)
        if reading is None:
            continue
        cards.append(_markup.sensor_card(shipment, reading, ctx.settings))
    return (
        _markup.header("Live Telemetry", "Real-time sensor monitoring for all shipments")
        + f'<section class="shipments-section"><div class="telemetry-grid">{"".join(cards)}</div></section>'
    )


def build_reports(ctx: ViewContext) -> str:
    rows = "".join(_markup.report_row(s) for s in ctx.provider.get_shipments())
    return (
        _markup.header("Reports & Analytics", "Performance metrics and quality reports")
        + _markup.stat_cards(ctx.provider.get_stats())
        + '<section class="shipments-section"><h2>Quality Reports</h2>'
        '<table class="report-table"><thead><tr>'
        "<th>Shipment ID</th><th>Route</th><th>Quality Status</th><th>Hub Triage</th><th>Bio-Shield</th>"
        f"</tr></thead><tbody>{rows}</tbody></table></section>"
    )


def build_settings(ctx: ViewContext) -> str:
    return (
        _markup.header("Settings", "Configure your dashboard preferences")
        + f'<section class="shipments-section"><h3>System Configuration</h3>{_markup.settings_form(ctx.settings)}</section>'
    )


LOCAL_BUILDERS: Mapping[Route, ViewBuilder] = MappingProxyType(
    {
        Route.DASHBOARD: build_dashboard,
        Route.SHIPMENTS: build_shipments,
        Route.TELEMETRY: build_telemetry,
        Route.REPORTS: build_reports,
        Route.SETTINGS: build_settings,
    }
)
_check_exhaustive(LOCAL_BUILDERS, "LOCAL_BUILDERS")


def render_dashboard_shipments(ctx: ViewContext) -> tuple[str, str]:
    return SHIPMENTS_CONTAINER_ID, _markup.shipment_list(ctx.provider.get_shipments())


# Filled after installation, whichever path produced the view.
SECONDARY_RENDERERS: Mapping[Route, SecondaryRenderer] = MappingProxyType(
    {
        Route.DASHBOARD: render_dashboard_shipments,
    }
)


def greeting_text(session: Session | None) -> str:
    name = session.display_name if session is not None else None
    if name:
        return f"Welcome back, {name}"
    return "Welcome to QOOA Control Tower"
