"""Sensor telemetry readings."""

from __future__ import annotations

from controltower.models._base import ProviderModel, Timestamp


class GeoPoint(ProviderModel):
    name: str = "Unknown"
    lat: float | None = None
    lng: float | None = None


class TelemetryReading(ProviderModel):
    """One sensor sample from a truck.

    Parameters
    ----------
    timestamp : datetime or None
        Sample time (UTC).
    temperature : float
        Cargo temperature in °C.
    gas_level : float
        Ethylene concentration in ppm.
    humidity : float
        Relative humidity in percent.
    location : GeoPoint
        Where the sample was taken.
    """

    timestamp: Timestamp = None
    temperature: float
    gas_level: float
    humidity: float
    location: GeoPoint = GeoPoint()
