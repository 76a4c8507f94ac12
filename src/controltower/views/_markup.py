"""Markup fragments shared by the local view builders and overlays."""

from __future__ import annotations

from datetime import datetime
from html import escape

from controltower._constants import (
    CHANGE_PASSWORD_BUTTON_ID,
    GREETING_ID,
    LAST_UPDATED_ID,
    NEW_ORDER_BUTTON_ID,
    RESET_SETTINGS_BUTTON_ID,
    SETTINGS_FORM_ID,
    STAT_IDS,
    WHATSAPP_DEMO_BUTTON_ID,
)
from controltower.classifier import classify_gas, classify_humidity, classify_temperature
from controltower.models.shipment import DashboardStats, NetworkStatus, Shipment
from controltower.models.telemetry import TelemetryReading
from controltower.settings import Settings


def badge(label: str, css_class: str = "") -> str:
    classes = f"badge {css_class}".strip()
    return f'<span class="{classes}">{escape(label)}</span>'


def format_time(value: datetime | None) -> str:
    if value is None:
        return "—"
    return value.strftime("%b %d, %H:%M")


def header(title: str, subtitle: str, *, with_new_order: bool = False, with_greeting: bool = False) -> str:
    right = ""
    if with_new_order:
        right = f'<div class="header-right"><button id="{NEW_ORDER_BUTTON_ID}" class="btn-primary">New Order</button></div>'
    greeting = f'<p id="{GREETING_ID}"></p>' if with_greeting else ""
    return (
        '<header class="dashboard-header">'
        f'<div class="header-left"><h1>{escape(title)}</h1><p>{escape(subtitle)}</p>{greeting}'
        f'<p id="{LAST_UPDATED_ID}" class="last-updated"></p></div>'
        f"{right}</header>"
    )


def stat_cards(stats: DashboardStats | None = None) -> str:
    labels = {
        "total_shipments": "Total Shipments",
        "in_transit": "In Transit",
        "completed": "Completed",
        "bio_shield_active": "Bio-Shield Active",
    }
    cards = []
    for field_name, label in labels.items():
        value = "" if stats is None else str(getattr(stats, field_name))
        cards.append(
            '<div class="stat-card"><div class="stat-info">'
            f'<h3 id="{STAT_IDS[field_name]}">{value}</h3><p>{label}</p></div></div>'
        )
    return f'<section class="stats-section"><div class="stats-grid">{"".join(cards)}</div></section>'


def shipment_card(shipment: Shipment) -> str:
    """Summary card for the shipment lists."""
    badges = [badge(shipment.quality_status.value, shipment.quality_status.badge_class)]
    if shipment.hub_triage_decision:
        badges.append(badge(shipment.hub_triage_decision, "badge-triage"))
    if shipment.field_heat_detected:
        badges.append(badge("Field Heat Extracted", "badge-heat"))

    sync = shipment.sd_sync_status
    if shipment.network_status is NetworkStatus.OFFLINE:
        badges.append(badge("Cached to SD", "badge-offline"))
        if sync is not None and sync.pending_records > 0:
            badges.append(badge(f"{sync.pending_records} records pending sync", "badge-pending"))
    else:
        badges.append(badge("Online", "badge-online"))
        if sync is not None and sync.last_sync_time is not None:
            badges.append(badge(f"Synced at {format_time(sync.last_sync_time)}", "badge-synced"))

    badges.append(badge("Bio-Shield", "badge-green") if shipment.bio_shield_applied else badge("No Bio-Shield", "badge-red"))

    critical, warnings = shipment.critical_alerts, shipment.warning_alerts
    if critical:
        badges.append(badge(f"{critical} Critical Alert{'s' if critical > 1 else ''}", "badge-red"))
    elif warnings:
        badges.append(badge(f"{warnings} Warning{'s' if warnings > 1 else ''}", "badge-orange"))

    sid = escape(shipment.id, quote=True)
    actions = [f'<button class="btn-small" data-action="telemetry" data-shipment="{sid}">View Telemetry</button>']
    if critical or warnings:
        actions.append(f'<button class="btn-small" data-action="alerts" data-shipment="{sid}">View Alerts</button>')
    if shipment.freshness_report_available:
        actions.append(f'<button class="btn-small" data-action="freshness" data-shipment="{sid}">Freshness Report</button>')
    else:
        actions.append('<button class="btn-small" disabled>Report Unavailable</button>')

    return (
        f'<div class="shipment-card" data-shipment="{sid}">'
        f'<div class="shipment-id">{escape(shipment.id)}</div>'
        f'<div class="shipment-route">{escape(shipment.origin)} → {escape(shipment.destination)}</div>'
        f'<div class="shipment-badges">{"".join(badges)}</div>'
        f'<div class="shipment-actions">{"".join(actions)}</div>'
        "</div>"
    )


def shipment_list(shipments: list[Shipment]) -> str:
    if not shipments:
        return '<p class="loading">No shipments available</p>'
    return "".join(shipment_card(s) for s in shipments)


def reading_cell(label: str, value: str, css_class: str, unit: str) -> str:
    return (
        f'<div class="reading"><div class="reading-label">{label}</div>'
        f'<div class="sensor-value {css_class}">{value}</div>'
        f'<div class="sensor-unit">{unit}</div></div>'
    )


def sensor_card(shipment: Shipment, reading: TelemetryReading, settings: Settings) -> str:
    """Live telemetry card with one classified badge per sensor."""
    temp = classify_temperature(reading.temperature, critical=settings.critical_temperature)
    gas = classify_gas(reading.gas_level, critical=settings.critical_gas)
    humidity = classify_humidity(reading.humidity)
    sid = escape(shipment.id, quote=True)
    readings = "".join(
        [
            reading_cell("Temperature", f"{reading.temperature:g}°C", temp.css_class, "°C"),
            reading_cell("Ethylene Gas", f"{reading.gas_level:g} ppm", gas.css_class, "ppm"),
            reading_cell("Humidity", f"{reading.humidity:g}%", humidity.css_class, "%"),
        ]
    )
    badges = "".join(badge(status.label, status.css_class) for status in (temp, gas, humidity))
    return (
        f'<div class="sensor-card" data-shipment="{sid}">'
        f'<div class="sensor-head"><span class="shipment-id">{escape(shipment.id)}</span>'
        f'<span class="sensor-meta">{escape(shipment.truck_id)} • {escape(reading.location.name)}</span>'
        f"{badge(shipment.quality_status.value, shipment.quality_status.badge_class)}</div>"
        f'<div class="sensor-readings">{readings}</div>'
        f'<div class="sensor-badges">{badges}</div>'
        '<div class="sensor-actions">'
        f'<button class="btn-small" data-action="telemetry" data-shipment="{sid}">View Details</button>'
        f'<button class="btn-small" data-action="share" data-shipment="{sid}">Share</button>'
        "</div></div>"
    )


def report_row(shipment: Shipment) -> str:
    triage = shipment.hub_triage_decision or "Pending"
    bio = "Yes" if shipment.bio_shield_applied else "No"
    return (
        "<tr>"
        f"<td>{escape(shipment.id)}</td>"
        f"<td>{escape(shipment.origin)} → {escape(shipment.destination)}</td>"
        f"<td>{badge(shipment.quality_status.value, shipment.quality_status.badge_class)}</td>"
        f"<td>{badge(triage, 'badge-triage')}</td>"
        f"<td>{bio}</td>"
        "</tr>"
    )


def settings_form(settings: Settings) -> str:
    def checked(flag: bool) -> str:
        return " checked" if flag else ""

    def selected(flag: bool) -> str:
        return " selected" if flag else ""

    small = settings.default_overlay_size.value == "small"
    centered = settings.overlay_style.value == "centered"
    return (
        f'<form id="{SETTINGS_FORM_ID}" class="settings-form">'
        "<fieldset><legend>Notification Preferences</legend>"
        f'<label><input type="checkbox" id="emailAlerts"{checked(settings.email_alerts)}> Email alerts for critical temperature</label>'
        f'<label><input type="checkbox" id="smsAlerts"{checked(settings.sms_alerts)}> SMS alerts for gas level warnings</label>'
        f'<label><input type="checkbox" id="whatsappAlerts"{checked(settings.whatsapp_alerts)}> WhatsApp notifications</label>'
        f'<label><input type="checkbox" id="overlayCentered"{checked(centered)}> Use overlay-style modals (centered)</label>'
        '<label for="defaultOverlaySize">Default modal size</label>'
        '<select id="defaultOverlaySize">'
        f'<option value="regular"{selected(not small)}>Regular (centered)</option>'
        f'<option value="small"{selected(small)}>Small (compact)</option>'
        "</select></fieldset>"
        "<fieldset><legend>Quality Thresholds</legend>"
        '<label for="criticalTemperature">Critical Temperature (°C)</label>'
        f'<input type="number" id="criticalTemperature" value="{settings.critical_temperature:g}" min="15" max="35">'
        '<label for="criticalGas">Critical Gas Level (ppm)</label>'
        f'<input type="number" id="criticalGas" value="{settings.critical_gas:g}" min="50" max="500">'
        "</fieldset>"
        '<div class="form-actions">'
        '<button type="submit" class="btn-primary" id="saveSettingsBtn">Save Settings</button>'
        f'<button type="button" class="btn-secondary" id="{RESET_SETTINGS_BUTTON_ID}">Reset to Default</button>'
        f'<button type="button" class="btn-secondary" id="{WHATSAPP_DEMO_BUTTON_ID}">WhatsApp Sample</button>'
        f'<button type="button" class="btn-secondary" id="{CHANGE_PASSWORD_BUTTON_ID}">Change Password</button>'
        "</div></form>"
    )
