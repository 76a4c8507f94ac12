"""Shipment records and dashboard statistics."""

from __future__ import annotations

import enum

from pydantic import Field

from controltower.models._base import ProviderModel, Timestamp


class QualityStatus(enum.StrEnum):
    GREEN = "Green"
    ORANGE = "Orange"
    RED = "Red"

    @property
    def badge_class(self) -> str:
        return f"badge-{self.value.lower()}"


class NetworkStatus(enum.StrEnum):
    ONLINE = "online"
    OFFLINE = "offline"


class ShipmentState(enum.StrEnum):
    PENDING = "Pending"
    IN_TRANSIT = "In Transit"
    COMPLETED = "Completed"


class AlertSeverity(enum.StrEnum):
    RED = "red"
    ORANGE = "orange"
    INFO = "info"


class ShipmentAlert(ProviderModel):
    severity: AlertSeverity = AlertSeverity.INFO
    message: str = ""


class SdSyncStatus(ProviderModel):
    """On-truck SD card buffering state while the truck is offline."""

    pending_records: int = 0
    last_sync_time: Timestamp = None


class Shipment(ProviderModel):
    """A single shipment as listed by the provider."""

    id: str
    truck_id: str = ""
    origin: str = ""
    destination: str = ""
    crates: int = 0
    status: ShipmentState = ShipmentState.IN_TRANSIT
    quality_status: QualityStatus = QualityStatus.GREEN
    network_status: NetworkStatus = NetworkStatus.ONLINE
    bio_shield_applied: bool = False
    field_heat_detected: bool = False
    hub_triage_decision: str | None = None
    hub_temperature: float | None = None
    hub_gas_reading: float | None = None
    hub_humidity: float | None = None
    sd_sync_status: SdSyncStatus | None = None
    alerts: list[ShipmentAlert] = Field(default_factory=list)

    @property
    def critical_alerts(self) -> int:
        return sum(1 for alert in self.alerts if alert.severity is AlertSeverity.RED)

    @property
    def warning_alerts(self) -> int:
        return sum(1 for alert in self.alerts if alert.severity is AlertSeverity.ORANGE)

    @property
    def freshness_report_available(self) -> bool:
        return self.quality_status is QualityStatus.GREEN and self.network_status is NetworkStatus.ONLINE


class DashboardStats(ProviderModel):
    total_shipments: int = 0
    in_transit: int = 0
    completed: int = 0
    bio_shield_active: int = 0
