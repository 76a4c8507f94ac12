"""controltower - Presentation layer for the QOOA logistics control tower."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycontroltower")
except PackageNotFoundError:
    __version__ = "0+local"
from controltower.classifier import (
    OverallLevel,
    SensorStatus,
    Severity,
    classify_gas,
    classify_humidity,
    classify_overall,
    classify_temperature,
)
from controltower.config import DashboardConfig
from controltower.credentials import CredentialChangeController, CredentialFlowState, PasswordProtocol
from controltower.dashboard import Dashboard
from controltower.exceptions import (
    BackendError,
    BindingError,
    ClipboardError,
    ConfigError,
    ControlTowerError,
    NotAuthenticatedError,
    OverlayError,
    PasswordValidationError,
    ShareError,
    ShareInvalidStateError,
    TransportError,
    ViewFragmentError,
)
from controltower.models import (
    DashboardStats,
    GeoPoint,
    NetworkStatus,
    QualityStatus,
    Shipment,
    ShipmentAlert,
    ShipmentState,
    TelemetryReading,
)
from controltower.overlay import OverlayManager
from controltower.provider import InMemoryShipmentProvider, ShipmentProvider
from controltower.router import Location, Route, Router, resolve_route
from controltower.session import Session, SessionStore
from controltower.settings import OverlaySize, OverlayStyle, Settings, SettingsStore
from controltower.share import ShareController, ShareOutcome
from controltower.storage import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from controltower.surface import MemorySurface
from controltower.views import ViewResolver

__all__ = [
    "__version__",
    "BackendError",
    "BindingError",
    "ClipboardError",
    "ConfigError",
    "ControlTowerError",
    "CredentialChangeController",
    "CredentialFlowState",
    "Dashboard",
    "DashboardConfig",
    "DashboardStats",
    "GeoPoint",
    "InMemoryShipmentProvider",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "Location",
    "MemoryKeyValueStore",
    "MemorySurface",
    "NetworkStatus",
    "NotAuthenticatedError",
    "OverallLevel",
    "OverlayError",
    "OverlayManager",
    "OverlaySize",
    "OverlayStyle",
    "PasswordProtocol",
    "PasswordValidationError",
    "QualityStatus",
    "Route",
    "Router",
    "SensorStatus",
    "Session",
    "SessionStore",
    "Settings",
    "SettingsStore",
    "Severity",
    "ShareController",
    "ShareError",
    "ShareInvalidStateError",
    "ShareOutcome",
    "Shipment",
    "ShipmentAlert",
    "ShipmentProvider",
    "ShipmentState",
    "TelemetryReading",
    "TransportError",
    "ViewFragmentError",
    "ViewResolver",
    "classify_gas",
    "classify_humidity",
    "classify_overall",
    "classify_temperature",
    "resolve_route",
]
