"""User settings model and its key-value persistence."""

from __future__ import annotations

import enum
import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from controltower._constants import SETTINGS_KEY
from controltower.classifier import DEFAULT_CRITICAL_GAS, DEFAULT_CRITICAL_TEMPERATURE
from controltower.storage import KeyValueStore

_logger = logging.getLogger(__name__)


class OverlayStyle(enum.StrEnum):
    CENTERED = "centered"
    SIDE = "side"


class OverlaySize(enum.StrEnum):
    REGULAR = "regular"
    SMALL = "small"


# Keys written by earlier dashboard releases.
_LEGACY_KEYS: dict[str, str] = {
    "criticalTemp": "criticalTemperature",
    "defaultModalSize": "defaultOverlaySize",
}


class Settings(BaseModel):
    """Dashboard preferences.

    Serialized with camelCase keys (``emailAlerts``, ``criticalTemperature``,
    ...). Saving replaces the stored blob wholesale.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    email_alerts: bool = True
    sms_alerts: bool = True
    whatsapp_alerts: bool = False
    overlay_style: OverlayStyle = OverlayStyle.CENTERED
    default_overlay_size: OverlaySize = OverlaySize.REGULAR
    critical_temperature: float = DEFAULT_CRITICAL_TEMPERATURE
    critical_gas: float = DEFAULT_CRITICAL_GAS

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        working = dict(values)
        for old_key, new_key in _LEGACY_KEYS.items():
            if old_key in working and new_key not in working:
                working[new_key] = working.pop(old_key)
        if "overlayModals" in working and "overlayStyle" not in working:
            overlay = working.pop("overlayModals")
            working["overlayStyle"] = OverlayStyle.SIDE if overlay is False else OverlayStyle.CENTERED
        return working

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True), separators=(",", ":"))


class SettingsStore:
    """Read and write :class:`Settings` under a single key."""

    def __init__(self, store: KeyValueStore, *, key: str = SETTINGS_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> Settings:
        """Return saved settings, or defaults when absent or unusable.

        A blob that is not JSON, not an object, or fails validation is
        replaced by the defaults as a whole; fields are never mixed from a
        partially valid blob.
        """
        raw = self._store.get(self._key)
        if raw is None:
            return Settings()
        try:
            return Settings.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            _logger.warning("Stored settings under %r are malformed; using defaults", self._key)
            return Settings()

    def save(self, settings: Settings) -> Settings:
        self._store.set(self._key, settings.to_json())
        return settings

    def reset(self) -> Settings:
        return self.save(Settings())
