"""Route resolution from the address bar.

Two addressing schemes map onto one canonical :class:`Route`:

* fragment deep links, ``/anything#telemetry``;
* clean paths, ``/dashboard`` and ``/dashboard/<route>``.

A non-empty fragment always wins over the path.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from urllib.parse import parse_qsl, urlencode, urlsplit

from pydantic import BaseModel, ConfigDict, Field

from controltower.exceptions import ConfigError

_logger = logging.getLogger(__name__)

_PATH_ANCHOR = "dashboard"
_SETTINGS_ALIASES = frozenset({"sidebar", "settings"})


class Route(enum.StrEnum):
    DASHBOARD = "dashboard"
    SHIPMENTS = "shipments"
    TELEMETRY = "telemetry"
    REPORTS = "reports"
    SETTINGS = "settings"


class ResolutionStrategy(enum.Enum):
    REMOTE_THEN_LOCAL = "remote_then_local"
    LOCAL_ONLY = "local_only"


@dataclass(frozen=True)
class ViewDescriptor:
    route: Route
    title: str
    strategy: ResolutionStrategy = ResolutionStrategy.REMOTE_THEN_LOCAL


def _check_exhaustive(table: Mapping[Route, object], what: str) -> None:
    missing = [route.value for route in Route if route not in table]
    if missing:
        raise ConfigError(f"{what} has no entry for: {', '.join(missing)}")


ROUTE_TABLE: Mapping[Route, ViewDescriptor] = MappingProxyType(
    {
        Route.DASHBOARD: ViewDescriptor(Route.DASHBOARD, "Dashboard"),
        Route.SHIPMENTS: ViewDescriptor(Route.SHIPMENTS, "Shipments"),
        Route.TELEMETRY: ViewDescriptor(Route.TELEMETRY, "Live Telemetry"),
        Route.REPORTS: ViewDescriptor(Route.REPORTS, "Reports"),
        Route.SETTINGS: ViewDescriptor(Route.SETTINGS, "Settings"),
    }
)
_check_exhaustive(ROUTE_TABLE, "ROUTE_TABLE")


class Location(BaseModel):
    """The address bar, split into path, query parameters and fragment."""

    model_config = ConfigDict(frozen=True)

    path: str = "/"
    query: dict[str, str] = Field(default_factory=dict)
    fragment: str = ""

    @classmethod
    def parse(cls, url: str) -> Location:
        parts = urlsplit(url)
        return cls(
            path=parts.path or "/",
            query=dict(parse_qsl(parts.query, keep_blank_values=True)),
            fragment=parts.fragment,
        )

    def param(self, name: str) -> str:
        return self.query.get(name, "")

    def with_path(self, path: str) -> Location:
        """Clean path navigation: drops the fragment, keeps nothing else."""
        return Location(path=path)

    def with_fragment(self, fragment: str) -> Location:
        return self.model_copy(update={"fragment": fragment})

    def to_url(self) -> str:
        url = self.path
        if self.query:
            url += "?" + urlencode(self.query)
        if self.fragment:
            url += "#" + self.fragment
        return url


def route_key(location: Location) -> str:
    """Raw route key from the address, before validation against :class:`Route`."""
    fragment = location.fragment.lstrip("#").strip().lower()
    if fragment:
        return fragment

    parts = location.path.strip("/").split("/")
    try:
        idx = parts.index(_PATH_ANCHOR)
    except ValueError:
        return ""
    sub = parts[idx + 1].lower() if idx + 1 < len(parts) else ""
    if not sub:
        return Route.DASHBOARD.value
    if sub in _SETTINGS_ALIASES:
        return Route.SETTINGS.value
    return sub


def resolve_route(location: Location) -> Route:
    """Canonical route for ``location``; unknown keys fall back to the dashboard."""
    key = route_key(location)
    try:
        return Route(key)
    except ValueError:
        if key:
            _logger.debug("Unknown route key %r; defaulting to dashboard", key)
        return Route.DASHBOARD


def path_for(route: Route) -> str:
    return "/dashboard" if route is Route.DASHBOARD else f"/dashboard/{route.value}"


class Router:
    """Holds the current address and resolves it on demand."""

    def __init__(self, location: Location | None = None) -> None:
        self._location = location or Location(path=path_for(Route.DASHBOARD))

    @property
    def location(self) -> Location:
        return self._location

    def resolve_route(self) -> Route:
        return resolve_route(self._location)

    def push(self, route: Route) -> Location:
        """Record a clean path for ``route`` as the new address."""
        self._location = self._location.with_path(path_for(route))
        return self._location

    def replace_location(self, location: Location) -> Route:
        """Adopt an address from back/forward or a fragment change."""
        self._location = location
        return self.resolve_route()

    @staticmethod
    def descriptor(route: Route) -> ViewDescriptor:
        return ROUTE_TABLE[route]
