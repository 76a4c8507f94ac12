"""Bodies for the overlay-driven dashboard flows."""

from __future__ import annotations

from datetime import datetime
from html import escape

from controltower.classifier import classify_gas, classify_humidity, classify_overall, classify_temperature
from controltower.models.shipment import NetworkStatus, Shipment
from controltower.models.telemetry import TelemetryReading
from controltower.settings import Settings
from controltower.views._markup import format_time

CLOSE_FOOTER = '<button class="btn-secondary" data-action="close">Close</button>'

ORDER_FOOTER = (
    '<button class="btn-primary" data-action="submit">Create Order</button> '
    '<button class="btn-secondary" data-action="close">Cancel</button>'
)


def order_form() -> str:
    return (
        '<form id="orderForm">'
        '<div class="form-group"><label for="orderOrigin">Origin</label>'
        '<input type="text" id="orderOrigin" name="origin" required /></div>'
        '<div class="form-group"><label for="orderDestination">Destination</label>'
        '<input type="text" id="orderDestination" name="destination" required /></div>'
        '<div class="form-group"><label for="orderCrates">Crates</label>'
        '<input type="number" id="orderCrates" name="crates" min="1" value="1" /></div>'
        '<div class="form-group"><label>'
        '<input type="checkbox" id="orderBioShield" name="bioShield" checked /> Apply Bio-Shield coating'
        "</label></div>"
        "</form>"
    )


def _value(value: float | None, unit: str) -> str:
    return "—" if value is None else f"{value:g}{unit}"


def current_readings(shipment: Shipment, reading: TelemetryReading | None, settings: Settings) -> str:
    if reading is None:
        return "<p>No telemetry data available</p>"

    temp = classify_temperature(reading.temperature, critical=settings.critical_temperature)
    gas = classify_gas(reading.gas_level, critical=settings.critical_gas)
    humidity = classify_humidity(reading.humidity)
    if shipment.network_status is NetworkStatus.OFFLINE:
        network = '<span class="status-warning">Cached to SD (Offline)</span>'
    else:
        network = '<span class="status-good">Online</span>'

    cards = [
        ("Temperature", f"{reading.temperature:g}°C", temp.css_class, temp.label),
        ("Ethylene Gas", f"{reading.gas_level:g} ppm", gas.css_class, gas.label),
        ("Humidity", f"{reading.humidity:g}%", humidity.css_class, humidity.label),
    ]
    parts = [
        '<div class="sensor-card"><div class="sensor-data">'
        f'<h4>{label}</h4><div class="sensor-value {css}">{value}</div>'
        f'<div class="sensor-unit">{note}</div></div></div>'
        for label, value, css, note in cards
    ]
    parts.append(
        '<div class="sensor-card"><div class="sensor-data"><h4>Network Status</h4>'
        f'<div class="sensor-value">{network}</div>'
        f'<div class="sensor-unit">{escape(reading.location.name)}</div></div></div>'
    )
    parts.append(
        '<div class="sensor-card hub-entry"><h4>Hub Triage Results</h4>'
        f"<div>Initial Temp: <strong>{_value(shipment.hub_temperature, '°C')}</strong></div>"
        f"<div>Initial Gas: <strong>{_value(shipment.hub_gas_reading, ' ppm')}</strong></div>"
        f"<div>Initial Humidity: <strong>{_value(shipment.hub_humidity, '%')}</strong></div>"
        f'<div class="hub-decision">{escape(shipment.hub_triage_decision or "Pending")}</div>'
        "</div>"
    )
    return f'<div id="currentReadings" class="readings-grid">{"".join(parts)}</div>'


def timeline(history: list[TelemetryReading], settings: Settings) -> str:
    """History, most recent first, each entry marked with its overall level."""
    if not history:
        return "<p>No historical data available</p>"

    items = []
    for reading in reversed(history):
        temp = classify_temperature(reading.temperature, critical=settings.critical_temperature)
        gas = classify_gas(reading.gas_level, critical=settings.critical_gas)
        level = classify_overall(
            reading.temperature,
            reading.gas_level,
            critical_temperature=settings.critical_temperature,
            critical_gas=settings.critical_gas,
        )
        items.append(
            '<div class="timeline-item">'
            f'<div class="timeline-marker {level.value}"></div>'
            '<div class="timeline-content">'
            f"<h4>{escape(reading.location.name)}</h4>"
            f'<div class="timeline-time">{format_time(reading.timestamp)}</div>'
            '<div class="timeline-readings">'
            f'<span class="{temp.css_class}">{reading.temperature:g}°C</span>'
            f'<span class="{gas.css_class}">{reading.gas_level:g} ppm</span>'
            f"<span>{reading.humidity:g}%</span>"
            "</div></div></div>"
        )
    return f'<div id="telemetryTimeline" class="timeline">{"".join(items)}</div>'


def telemetry_detail(
    shipment: Shipment,
    latest: TelemetryReading | None,
    history: list[TelemetryReading],
    settings: Settings,
) -> str:
    return (
        f'<div class="truck-meta">Truck <span id="modalTruckId">{escape(shipment.truck_id)}</span></div>'
        "<h3>Current Readings</h3>"
        f"{current_readings(shipment, latest, settings)}"
        "<h3>Telemetry Timeline</h3>"
        f"{timeline(history, settings)}"
    )


def alerts_message(shipment: Shipment) -> str:
    lines = [f"Alerts for {shipment.id}:", ""]
    for index, alert in enumerate(shipment.alerts, start=1):
        lines.append(f"{index}. [{alert.severity.value.upper()}] {alert.message}")
    return "\n".join(lines)


def freshness_certificate(shipment: Shipment, issued: datetime) -> str:
    return "\n".join(
        [
            "Freshness Certificate Generated!",
            "",
            f"Shipment: {shipment.id}",
            f"Quality Status: {shipment.quality_status.value}",
            "Temperature: Maintained within range",
            "Gas Levels: Within acceptable limits",
            "",
            f"Certificate ID: FC-{int(issued.timestamp() * 1000)}",
        ]
    )


_CHAT = (
    ("incoming", "QOOA Bot • 09:12", "Hello! Send 'Order &lt;qty&gt; crates from &lt;origin&gt; to &lt;destination&gt;'"),
    ("outgoing", "You • 09:13", "Order 30 crates from Kano Hub to Mile 12 Market"),
    ("incoming", "QOOA Bot • 09:13", "Order received. Pickup scheduled. Tracking: SHP-004"),
)


def whatsapp_sample() -> str:
    messages = "".join(
        f'<div class="chat-message {side}"><div class="chat-meta">{meta}</div><div class="chat-text">{text}</div></div>'
        for side, meta, text in _CHAT
    )
    return f'<div class="whatsapp-sample-body"><div class="chat-window">{messages}</div></div>'
