"""Password change and token reset flows.

Two mutually exclusive protocols share one overlay form:

* **authenticated change**: a logged-in vendor enters the current and a
  new password; the request carries the session's bearer token.
* **token reset**: a reset link supplies a token; the user enters and
  confirms a new password; no authentication header is sent.

The protocol is chosen once, when the form is presented, from the token
text: empty means authenticated change, anything else means reset.
Submission never re-derives it from which fields happen to be filled.

Flow states::

    IDLE -> FORM_PRESENTED -> SUBMITTING -> SUCCESS
                   ^               |
                   +---------------+  (validation/backend/network error)
                                   -> FAILED   (no session token)
"""

from __future__ import annotations

import enum
import html
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Final, Literal

from pydantic import BaseModel, ConfigDict, Field

from controltower._api import passwords as _passwords_api
from controltower._transport import JsonTransport
from controltower.exceptions import (
    BackendError,
    NotAuthenticatedError,
    OverlayError,
    PasswordValidationError,
)
from controltower.notify import Notifier
from controltower.overlay import OverlayManager
from controltower.router import Location
from controltower.session import SessionStore
from controltower.settings import OverlaySize

_logger = logging.getLogger(__name__)


class _Unset(enum.Enum):
    TOKEN = "unset"


UNSET: Final = _Unset.TOKEN
"""Marker for "no token argument": read it from the address instead."""

MSG_REQUIRED = "Please fill the required password fields"
MSG_CURRENT_REQUIRED = "Please enter your old password"
MSG_MISMATCH = "New passwords do not match"
MSG_NOT_AUTHENTICATED = "Not authenticated"
MSG_CHANGED = "Password changed successfully"
MSG_RESET_DONE = "Password has been reset. You can now login."
MSG_CHANGE_NETWORK = "Network error while changing password"
MSG_RESET_NETWORK = "Network error while resetting password"


class PasswordProtocol(enum.StrEnum):
    AUTHENTICATED = "authenticated"
    TOKEN_RESET = "token_reset"


class CredentialFlowState(enum.StrEnum):
    IDLE = "idle"
    FORM_PRESENTED = "form_presented"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class AuthenticatedChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["authenticated"] = "authenticated"
    current_password: str
    new_password: str


class TokenReset(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["token_reset"] = "token_reset"
    token: str
    email: str = ""
    new_password: str
    confirm_password: str


ChangePasswordRequest = Annotated[AuthenticatedChange | TokenReset, Field(discriminator="kind")]


@dataclass(frozen=True)
class PasswordForm:
    """The form decided at presentation time."""

    protocol: PasswordProtocol
    token: str = ""
    email: str = ""

    @property
    def fields(self) -> tuple[str, ...]:
        if self.protocol is PasswordProtocol.AUTHENTICATED:
            return ("currentPassword", "newPassword")
        return ("newPassword", "confirmPassword")

    def build_request(
        self,
        *,
        current_password: str | None,
        new_password: str,
        confirm_password: str | None,
    ) -> ChangePasswordRequest:
        """Validate input for this form's protocol and build the request.

        Raises
        ------
        PasswordValidationError
            When a required field is empty or the confirmation differs.
        """
        new_password = new_password or ""
        if self.protocol is PasswordProtocol.AUTHENTICATED:
            if not new_password:
                raise PasswordValidationError(MSG_REQUIRED)
            current = (current_password or "").strip()
            if not current:
                raise PasswordValidationError(MSG_CURRENT_REQUIRED)
            return AuthenticatedChange(current_password=current, new_password=new_password)

        confirm = confirm_password or ""
        if not new_password or not confirm:
            raise PasswordValidationError(MSG_REQUIRED)
        if new_password != confirm:
            raise PasswordValidationError(MSG_MISMATCH)
        return TokenReset(token=self.token, email=self.email, new_password=new_password, confirm_password=confirm)


_FIELD_LABELS = {
    "currentPassword": "Old password",
    "newPassword": "New password",
    "confirmPassword": "Confirm new password",
}


def _form_markup(form: PasswordForm) -> str:
    parts = [
        '<div id="changePasswordError" class="form-error" hidden></div>',
        '<form id="changePasswordForm">',
        f'<input type="hidden" id="changeToken" name="token" value="{html.escape(form.token, quote=True)}" />',
    ]
    for field_id in form.fields:
        parts.append(
            '<div class="form-group">'
            f'<label for="{field_id}">{_FIELD_LABELS[field_id]}</label>'
            f'<input type="password" id="{field_id}" name="{field_id}" required />'
            "</div>"
        )
    parts.append("</form>")
    return "".join(parts)


_FOOTER = (
    '<button class="btn-primary" data-action="submit">Save password</button> '
    '<button class="btn-secondary" data-action="close">Cancel</button>'
)


class CredentialChangeController:
    """Present the password form and run whichever protocol it was built for.

    Parameters
    ----------
    overlay : OverlayManager
        Shared overlay the form is shown in.
    sessions : SessionStore
        Source of the bearer token for authenticated changes.
    notifier : Notifier
        Success toasts.
    transport : JsonTransport
        Backend transport.
    location : callable
        Returns the current address; reset links carry ``token`` and
        ``email`` query parameters.
    """

    def __init__(
        self,
        overlay: OverlayManager,
        sessions: SessionStore,
        notifier: Notifier,
        transport: JsonTransport,
        *,
        location: Callable[[], Location],
    ) -> None:
        self._overlay = overlay
        self._sessions = sessions
        self._notifier = notifier
        self._transport = transport
        self._location = location
        self._state = CredentialFlowState.IDLE
        self._form: PasswordForm | None = None
        self._ticket: int | None = None

    @property
    def state(self) -> CredentialFlowState:
        return self._state

    @property
    def form(self) -> PasswordForm | None:
        return self._form

    def _owns_overlay(self) -> bool:
        return self._ticket is not None and self._overlay.is_current(self._ticket)

    def present_change_form(self, token: str | None | _Unset = UNSET) -> PasswordForm:
        """Open the password form.

        An explicit ``token`` (even ``""``) is used as given; the settings
        view passes ``""`` for the in-app change. Without the argument the
        token comes from the address (reset-link flow).
        """
        location = self._location()
        if token is UNSET:
            token_text = location.param("token")
        else:
            token_text = token or ""

        if token_text:
            form = PasswordForm(PasswordProtocol.TOKEN_RESET, token=token_text, email=location.param("email"))
        else:
            form = PasswordForm(PasswordProtocol.AUTHENTICATED)

        first_field = form.fields[0]
        self._form = form
        self._ticket = self._overlay.open(
            title="Change Password",
            body=_form_markup(form),
            footer=_FOOTER,
            size=OverlaySize.SMALL,
            on_open=lambda: self._overlay.focus(first_field),
            actions={"submit": self.submit, "close": self.cancel},
        )
        self._state = CredentialFlowState.FORM_PRESENTED
        _logger.debug("Presented %s password form", form.protocol.value)
        return form

    def cancel(self) -> None:
        if self._owns_overlay():
            self._overlay.close()
        self._form = None
        self._ticket = None
        self._state = CredentialFlowState.IDLE

    def _inline(self, message: str) -> None:
        # The user may have moved on to another overlay flow meanwhile.
        if self._owns_overlay():
            self._overlay.show_error(message)
        else:
            _logger.debug("Dropping password message for a closed form: %s", message)

    async def submit(
        self,
        *,
        current_password: str | None = None,
        new_password: str = "",
        confirm_password: str | None = None,
    ) -> CredentialFlowState:
        """Validate and send the form; returns the resulting flow state."""
        form = self._form
        if form is None or not self._owns_overlay():
            raise OverlayError("no password form is open")
        if self._state is CredentialFlowState.SUBMITTING:
            return self._state

        self._overlay.clear_error()
        try:
            request = form.build_request(
                current_password=current_password,
                new_password=new_password,
                confirm_password=confirm_password,
            )
        except PasswordValidationError as exc:
            self._inline(str(exc))
            self._state = CredentialFlowState.FORM_PRESENTED
            return self._state

        self._state = CredentialFlowState.SUBMITTING
        try:
            if isinstance(request, AuthenticatedChange):
                return await self._run_change(request)
            return await self._run_reset(request)
        finally:
            if self._state is CredentialFlowState.SUBMITTING:
                self._state = CredentialFlowState.FORM_PRESENTED

    async def _run_change(self, request: AuthenticatedChange) -> CredentialFlowState:
        try:
            bearer = self._sessions.token()
            if not bearer:
                raise NotAuthenticatedError(MSG_NOT_AUTHENTICATED)
            response = await _passwords_api.change_password(
                self._transport,
                bearer=bearer,
                current_password=request.current_password,
                new_password=request.new_password,
            )
        except NotAuthenticatedError as exc:
            self._inline(str(exc))
            self._state = CredentialFlowState.FAILED
            return self._state
        except BackendError as exc:
            self._inline(str(exc))
            self._state = CredentialFlowState.FORM_PRESENTED
            return self._state
        except Exception:
            _logger.warning("Change password request failed", exc_info=True)
            self._inline(MSG_CHANGE_NETWORK)
            self._state = CredentialFlowState.FORM_PRESENTED
            return self._state

        self._finish(response.message or MSG_CHANGED)
        return self._state

    async def _run_reset(self, request: TokenReset) -> CredentialFlowState:
        try:
            await _passwords_api.reset_password(
                self._transport,
                token=request.token,
                email=request.email,
                new_password=request.new_password,
            )
        except BackendError as exc:
            self._inline(str(exc))
            self._state = CredentialFlowState.FORM_PRESENTED
            return self._state
        except Exception:
            _logger.warning("Reset password request failed", exc_info=True)
            self._inline(MSG_RESET_NETWORK)
            self._state = CredentialFlowState.FORM_PRESENTED
            return self._state

        self._finish(MSG_RESET_DONE)
        return self._state

    def _finish(self, message: str) -> None:
        if self._owns_overlay():
            self._overlay.close()
        self._ticket = None
        self._form = None
        self._state = CredentialFlowState.SUCCESS
        self._notifier.toast(message)
