"""Shipment/telemetry data provider boundary.

The provider is an external collaborator: the dashboard only reads
through :class:`ShipmentProvider`. :class:`InMemoryShipmentProvider` is a
complete implementation over plain records, used headless and in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from controltower.models.shipment import DashboardStats, Shipment, ShipmentState
from controltower.models.telemetry import TelemetryReading

_logger = logging.getLogger(__name__)


class ShipmentProvider(Protocol):
    """Read access to shipments and their telemetry."""

    def get_shipments(self) -> list[Shipment]:
        ...

    def get_shipment(self, shipment_id: str) -> Shipment | None:
        ...

    def get_latest_telemetry(self, shipment_id: str) -> TelemetryReading | None:
        ...

    def get_telemetry_history(self, shipment_id: str) -> list[TelemetryReading]:
        ...

    def get_stats(self) -> DashboardStats:
        ...

    def create_order(self, *, origin: str, destination: str, crates: int, bio_shield: bool) -> Shipment:
        ...


def _coerce_shipment(record: Shipment | Mapping[str, Any]) -> Shipment:
    if isinstance(record, Shipment):
        return record
    return Shipment.model_validate(dict(record))


def _coerce_reading(record: TelemetryReading | Mapping[str, Any]) -> TelemetryReading:
    if isinstance(record, TelemetryReading):
        return record
    return TelemetryReading.model_validate(dict(record))


class InMemoryShipmentProvider:
    """Provider over in-process shipment records.

    Telemetry history is kept in insertion order (oldest first); the
    latest reading is the last one.
    """

    def __init__(
        self,
        shipments: Iterable[Shipment | Mapping[str, Any]] = (),
        telemetry: Mapping[str, Iterable[TelemetryReading | Mapping[str, Any]]] | None = None,
    ) -> None:
        self._shipments: dict[str, Shipment] = {}
        for record in shipments:
            shipment = _coerce_shipment(record)
            self._shipments[shipment.id] = shipment
        self._telemetry: dict[str, list[TelemetryReading]] = {}
        for shipment_id, readings in (telemetry or {}).items():
            self._telemetry[shipment_id] = [_coerce_reading(r) for r in readings]

    def get_shipments(self) -> list[Shipment]:
        return list(self._shipments.values())

    def get_shipment(self, shipment_id: str) -> Shipment | None:
        return self._shipments.get(shipment_id)

    def get_latest_telemetry(self, shipment_id: str) -> TelemetryReading | None:
        history = self._telemetry.get(shipment_id)
        return history[-1] if history else None

    def get_telemetry_history(self, shipment_id: str) -> list[TelemetryReading]:
        return list(self._telemetry.get(shipment_id, ()))

    def add_reading(self, shipment_id: str, reading: TelemetryReading | Mapping[str, Any]) -> None:
        self._telemetry.setdefault(shipment_id, []).append(_coerce_reading(reading))

    def get_stats(self) -> DashboardStats:
        shipments = self._shipments.values()
        return DashboardStats(
            total_shipments=len(self._shipments),
            in_transit=sum(1 for s in shipments if s.status is ShipmentState.IN_TRANSIT),
            completed=sum(1 for s in shipments if s.status is ShipmentState.COMPLETED),
            bio_shield_active=sum(1 for s in shipments if s.bio_shield_applied),
        )

    def _next_id(self) -> str:
        highest = 0
        for shipment_id in self._shipments:
            prefix, _, number = shipment_id.rpartition("-")
            if prefix == "SHP" and number.isdigit():
                highest = max(highest, int(number))
        return f"SHP-{highest + 1:03d}"

    def create_order(self, *, origin: str, destination: str, crates: int, bio_shield: bool) -> Shipment:
        shipment = Shipment(
            id=self._next_id(),
            origin=origin,
            destination=destination,
            crates=crates,
            status=ShipmentState.PENDING,
            bio_shield_applied=bio_shield,
        )
        self._shipments[shipment.id] = shipment
        _logger.debug("Created order %s (%s -> %s, %d crates)", shipment.id, origin, destination, crates)
        return shipment
