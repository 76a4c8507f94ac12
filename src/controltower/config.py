"""Dashboard configuration for controltower."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from controltower._constants import (
    BACKEND_URL,
    SESSION_KEYS,
    SETTINGS_KEY,
    SHARE_RETRY_DELAY_S,
    TOAST_DURATION_S,
)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _trim_url(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip().rstrip("/")
    return trimmed or None


@dataclasses.dataclass(frozen=True)
class DashboardConfig:
    """Dashboard configuration.

    Parameters
    ----------
    backend_url : str
        Base URL of the vendor backend (password endpoints).
    views_base_url : str or None
        Base URL serving ``/components/views/<route>.html`` fragments.
        ``None`` disables remote fragments; every view is then built
        locally.
    fragments_enabled : bool
        Master switch for remote fragment retrieval.
    settings_key : str
        Key-value entry holding the settings blob.
    session_keys : tuple of str
        Session entries, current key first, legacy key second.
    share_retry_delay : float
        Seconds to wait before the clipboard fallback when the platform
        reports a share already pending.
    toast_duration : float
        Seconds a transient notification stays visible.
    storage_path : Path or None
        JSON file backing :class:`~controltower.storage.JsonFileKeyValueStore`.
        ``None`` keeps everything in memory.
    """

    backend_url: str = BACKEND_URL
    views_base_url: str | None = None
    fragments_enabled: bool = True
    settings_key: str = SETTINGS_KEY
    session_keys: tuple[str, ...] = SESSION_KEYS
    share_retry_delay: float = SHARE_RETRY_DELAY_S
    toast_duration: float = TOAST_DURATION_S
    storage_path: Path | None = None

    def __post_init__(self) -> None:
        # Frozen: normalise through object.__setattr__.
        object.__setattr__(self, "backend_url", _trim_url(self.backend_url) or "")
        object.__setattr__(self, "views_base_url", _trim_url(self.views_base_url))

    @property
    def remote_fragments(self) -> bool:
        """Whether remote view fragments should be attempted at all."""
        return self.fragments_enabled and self.views_base_url is not None

    @classmethod
    def from_env(cls, **overrides: Any) -> DashboardConfig:
        """Create configuration from environment variables.

        Reads optional ``CONTROLTOWER_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        DashboardConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "CONTROLTOWER_BACKEND_URL": "backend_url",
            "CONTROLTOWER_VIEWS_BASE_URL": "views_base_url",
            "CONTROLTOWER_SETTINGS_KEY": "settings_key",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "fragments_enabled" not in overrides:
            config_kwargs["fragments_enabled"] = _env_bool(env.get("CONTROLTOWER_FRAGMENTS_ENABLED"), True)

        delay_env = env.get("CONTROLTOWER_SHARE_RETRY_DELAY")
        if delay_env is not None and "share_retry_delay" not in overrides:
            config_kwargs["share_retry_delay"] = float(delay_env)

        toast_env = env.get("CONTROLTOWER_TOAST_DURATION")
        if toast_env is not None and "toast_duration" not in overrides:
            config_kwargs["toast_duration"] = float(toast_env)

        path_env = env.get("CONTROLTOWER_STORAGE_PATH")
        if path_env and "storage_path" not in overrides:
            config_kwargs["storage_path"] = Path(path_env).expanduser()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
