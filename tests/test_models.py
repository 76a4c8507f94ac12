"""Tests for provider record parsing with ProviderModel."""

from __future__ import annotations

from datetime import UTC, datetime

from controltower.models import (
    AlertSeverity,
    NetworkStatus,
    QualityStatus,
    Shipment,
    ShipmentState,
    TelemetryReading,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_epoch_seconds(self) -> None:
        assert parse_timestamp(1_700_000_000) == datetime.fromtimestamp(1_700_000_000, tz=UTC)

    def test_epoch_milliseconds(self) -> None:
        assert parse_timestamp(1_700_000_000_000) == datetime.fromtimestamp(1_700_000_000, tz=UTC)

    def test_iso_string_with_z(self) -> None:
        assert parse_timestamp("2024-03-01T10:15:00Z") == datetime(2024, 3, 1, 10, 15, tzinfo=UTC)

    def test_naive_datetime_becomes_utc(self) -> None:
        assert parse_timestamp(datetime(2024, 3, 1, 10, 15)).tzinfo is UTC

    def test_none(self) -> None:
        assert parse_timestamp(None) is None


class TestShipment:
    def test_camel_case_record(self) -> None:
        shipment = Shipment.model_validate(
            {
                "id": "SHP-001",
                "truckId": "TRK-12",
                "origin": "Kano Hub",
                "destination": "Mile 12 Market",
                "status": "In Transit",
                "qualityStatus": "Orange",
                "networkStatus": "offline",
                "bioShieldApplied": True,
                "sdSyncStatus": {"pendingRecords": 4, "lastSyncTime": "2024-03-01T09:00:00Z"},
                "alerts": [
                    {"severity": "red", "message": "Temperature spike"},
                    {"severity": "orange", "message": "Gas rising"},
                    {"severity": "orange", "message": "Door opened"},
                ],
            }
        )
        assert shipment.truck_id == "TRK-12"
        assert shipment.status is ShipmentState.IN_TRANSIT
        assert shipment.quality_status is QualityStatus.ORANGE
        assert shipment.network_status is NetworkStatus.OFFLINE
        assert shipment.sd_sync_status is not None
        assert shipment.sd_sync_status.pending_records == 4
        assert shipment.critical_alerts == 1
        assert shipment.warning_alerts == 2
        assert shipment.alerts[0].severity is AlertSeverity.RED
        assert shipment.raw["truckId"] == "TRK-12"

    def test_placeholders_use_defaults(self) -> None:
        shipment = Shipment.model_validate({"id": "SHP-002", "truckId": "--", "hubTriageDecision": ""})
        assert shipment.truck_id == ""
        assert shipment.hub_triage_decision is None

    def test_freshness_report_needs_green_and_online(self) -> None:
        assert Shipment(id="A").freshness_report_available
        assert not Shipment(id="B", quality_status=QualityStatus.RED).freshness_report_available
        assert not Shipment(id="C", network_status=NetworkStatus.OFFLINE).freshness_report_available

    def test_badge_class(self) -> None:
        assert QualityStatus.GREEN.badge_class == "badge-green"


class TestTelemetryReading:
    def test_location_default(self) -> None:
        reading = TelemetryReading.model_validate({"temperature": 21.5, "gasLevel": 120, "humidity": 80})
        assert reading.location.name == "Unknown"
        assert reading.gas_level == 120.0
        assert reading.timestamp is None

    def test_timestamp_from_epoch_ms(self) -> None:
        reading = TelemetryReading.model_validate(
            {"timestamp": 1_700_000_000_000, "temperature": 20, "gasLevel": 100, "humidity": 70}
        )
        assert reading.timestamp == datetime.fromtimestamp(1_700_000_000, tz=UTC)
