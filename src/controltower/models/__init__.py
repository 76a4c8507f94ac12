"""Data models for shipment and telemetry records."""

from controltower.models._base import ProviderModel, Timestamp, parse_timestamp
from controltower.models.shipment import (
    AlertSeverity,
    DashboardStats,
    NetworkStatus,
    QualityStatus,
    SdSyncStatus,
    Shipment,
    ShipmentAlert,
    ShipmentState,
)
from controltower.models.telemetry import GeoPoint, TelemetryReading

__all__ = [
    "AlertSeverity",
    "DashboardStats",
    "GeoPoint",
    "NetworkStatus",
    "ProviderModel",
    "QualityStatus",
    "SdSyncStatus",
    "Shipment",
    "ShipmentAlert",
    "ShipmentState",
    "TelemetryReading",
    "Timestamp",
    "parse_timestamp",
]
