"""Vendor session state persisted in the key-value store."""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, ConfigDict, ValidationError

from controltower._constants import SESSION_KEYS
from controltower.storage import KeyValueStore

_logger = logging.getLogger(__name__)


class VendorIdentity(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str | None = None


class Session(BaseModel):
    """Authenticated vendor session, written at login by the host page.

    Parameters
    ----------
    token : str or None
        Bearer token for authenticated backend calls.
    vendor : VendorIdentity or None
        Vendor identity, used for the greeting.
    name : str or None
        Older sessions carry the display name at the top level.
    """

    model_config = ConfigDict(frozen=True, extra="allow", str_strip_whitespace=True)

    token: str | None = None
    vendor: VendorIdentity | None = None
    name: str | None = None

    @property
    def display_name(self) -> str | None:
        if self.vendor is not None and self.vendor.name:
            return self.vendor.name
        return self.name or None


class SessionStore:
    """Read the session blob; clear it when it is corrupt.

    Both the current and the legacy key are consulted on read (current
    first) and always cleared together.
    """

    def __init__(self, store: KeyValueStore, *, keys: tuple[str, ...] = SESSION_KEYS) -> None:
        if not keys:
            raise ValueError("at least one session key is required")
        self._store = store
        self._keys = keys

    def _raw(self) -> str | None:
        for key in self._keys:
            raw = self._store.get(key)
            if raw:
                return raw
        return None

    def load(self) -> Session | None:
        """Return the current session, or ``None`` when logged out.

        Malformed JSON (or a blob that is not a session object) clears
        every session key and reports no session.
        """
        raw = self._raw()
        if raw is None:
            return None
        try:
            return Session.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            _logger.warning("Stored session is malformed; clearing %s", ", ".join(self._keys))
            self.clear()
            return None

    def token(self) -> str | None:
        session = self.load()
        if session is None or not session.token:
            return None
        return session.token

    def save(self, session: Session) -> None:
        self._store.set(self._keys[0], session.model_dump_json(exclude_none=True))

    def clear(self) -> None:
        for key in self._keys:
            self._store.remove(key)
