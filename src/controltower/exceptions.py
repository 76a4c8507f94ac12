"""Custom exception hierarchy for controltower."""

from __future__ import annotations


class ControlTowerError(Exception):
    """Base exception for all controltower errors."""


class ConfigError(ControlTowerError):
    """Invalid or missing configuration."""


class TransportError(ControlTowerError):
    """HTTP-level failure (network, non-2xx, unreadable body)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ViewFragmentError(TransportError):
    """A remote view fragment could not be retrieved or was unusable.

    Never surfaced to the user: the view resolver falls back to the local
    builder for the route.
    """


class BackendError(ControlTowerError):
    """Backend answered with a non-success status.

    ``message`` is the backend-provided text (or a flow-specific default)
    and is shown to the user verbatim.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class NotAuthenticatedError(ControlTowerError):
    """An authenticated call was requested but no session token exists."""


class PasswordValidationError(ControlTowerError):
    """Password form input failed local validation."""


class OverlayError(ControlTowerError):
    """Action dispatched to an overlay that is closed or lacks it."""


class ShareError(ControlTowerError):
    """Native share invocation failed or was dismissed."""


class ShareInvalidStateError(ShareError):
    """Platform reports a share already pending (``InvalidStateError``)."""


class ClipboardError(ControlTowerError):
    """Clipboard write failed."""


class BindingError(ControlTowerError):
    """No handler is bound to the element in the current view."""
