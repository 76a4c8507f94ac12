from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from controltower._transport import JsonResponse
from controltower.credentials import (
    MSG_CHANGE_NETWORK,
    MSG_CHANGED,
    MSG_CURRENT_REQUIRED,
    MSG_MISMATCH,
    MSG_NOT_AUTHENTICATED,
    MSG_REQUIRED,
    MSG_RESET_DONE,
    MSG_RESET_NETWORK,
    AuthenticatedChange,
    CredentialChangeController,
    CredentialFlowState,
    PasswordForm,
    PasswordProtocol,
    TokenReset,
)
from controltower.exceptions import OverlayError, PasswordValidationError, TransportError
from controltower.notify import Notifier
from controltower.overlay import OverlayManager
from controltower.router import Location
from controltower.session import SessionStore
from controltower.settings import OverlaySize
from controltower.storage import MemoryKeyValueStore
from controltower.surface import MemorySurface


class _RecordingTransport:
    def __init__(self, response: JsonResponse | Exception | None = None) -> None:
        self.response = response if response is not None else JsonResponse(status=200, body={})
        self.calls: list[tuple[str, dict[str, Any], str | None]] = []

    async def post_json(
        self,
        endpoint: str,
        payload: Mapping[str, Any],
        *,
        bearer: str | None = None,
    ) -> JsonResponse:
        self.calls.append((endpoint, dict(payload), bearer))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _controller(
    transport: _RecordingTransport,
    *,
    url: str = "/dashboard/settings",
    session: str | None = '{"token": "bearer-1", "vendor": {"name": "Ada"}}',
) -> tuple[CredentialChangeController, OverlayManager, MemorySurface]:
    store = MemoryKeyValueStore({"qooa_vendor_session": session} if session is not None else {})
    surface = MemorySurface()
    overlay = OverlayManager(surface)
    location = Location.parse(url)
    controller = CredentialChangeController(
        overlay,
        SessionStore(store),
        Notifier(surface, overlay),
        transport,
        location=lambda: location,
    )
    return controller, overlay, surface


# ------------------------------------------------------------------
# Form construction
# ------------------------------------------------------------------


def test_empty_token_presents_authenticated_form() -> None:
    controller, _, surface = _controller(_RecordingTransport())
    form = controller.present_change_form("")

    assert form.protocol is PasswordProtocol.AUTHENTICATED
    assert form.fields == ("currentPassword", "newPassword")
    assert 'id="currentPassword"' in surface.overlay.body
    assert 'id="confirmPassword"' not in surface.overlay.body
    assert surface.overlay.size is OverlaySize.SMALL
    assert surface.focused == "currentPassword"
    assert controller.state is CredentialFlowState.FORM_PRESENTED


def test_token_from_address_presents_reset_form() -> None:
    controller, _, surface = _controller(
        _RecordingTransport(),
        url="/reset?token=reset-1&email=ada%40example.com",
    )
    form = controller.present_change_form()

    assert form == PasswordForm(PasswordProtocol.TOKEN_RESET, token="reset-1", email="ada@example.com")
    assert 'id="confirmPassword"' in surface.overlay.body
    assert 'id="currentPassword"' not in surface.overlay.body
    assert surface.focused == "newPassword"


def test_explicit_empty_token_overrides_address_token() -> None:
    controller, _, _ = _controller(_RecordingTransport(), url="/reset?token=reset-1")
    assert controller.present_change_form("").protocol is PasswordProtocol.AUTHENTICATED


def test_build_request_is_decided_by_protocol() -> None:
    auth = PasswordForm(PasswordProtocol.AUTHENTICATED)
    reset = PasswordForm(PasswordProtocol.TOKEN_RESET, token="t")

    assert isinstance(
        auth.build_request(current_password="old", new_password="new", confirm_password="ignored"),
        AuthenticatedChange,
    )
    assert isinstance(
        reset.build_request(current_password="ignored", new_password="new", confirm_password="new"),
        TokenReset,
    )
    with pytest.raises(PasswordValidationError, match=MSG_REQUIRED):
        reset.build_request(current_password=None, new_password="new", confirm_password="")


# ------------------------------------------------------------------
# Authenticated change
# ------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("current", [None, "", "   "])
async def test_empty_current_password_sends_nothing(current: str | None) -> None:
    transport = _RecordingTransport()
    controller, _, surface = _controller(transport)
    controller.present_change_form("")

    state = await controller.submit(current_password=current, new_password="n3w-pass")

    assert transport.calls == []
    assert state is CredentialFlowState.FORM_PRESENTED
    assert surface.overlay.error == MSG_CURRENT_REQUIRED


@pytest.mark.asyncio
async def test_empty_new_password_sends_nothing() -> None:
    transport = _RecordingTransport()
    controller, _, surface = _controller(transport)
    controller.present_change_form("")

    await controller.submit(current_password="old", new_password="")

    assert transport.calls == []
    assert surface.overlay.error == MSG_REQUIRED


@pytest.mark.asyncio
async def test_authenticated_change_success() -> None:
    transport = _RecordingTransport(JsonResponse(status=200, body={"message": "Password updated"}))
    controller, _, surface = _controller(transport)
    controller.present_change_form("")

    state = await controller.submit(current_password="old", new_password="n3w")

    assert state is CredentialFlowState.SUCCESS
    assert transport.calls == [
        ("/api/vendors/change-password", {"currentPassword": "old", "newPassword": "n3w"}, "bearer-1")
    ]
    assert not surface.overlay.visible
    assert surface.last_toast == "Password updated"


@pytest.mark.asyncio
async def test_authenticated_change_default_success_message() -> None:
    controller, _, surface = _controller(_RecordingTransport())
    controller.present_change_form("")
    await controller.submit(current_password="old", new_password="n3w")
    assert surface.last_toast == MSG_CHANGED


@pytest.mark.asyncio
async def test_authenticated_change_without_session_fails_without_request() -> None:
    transport = _RecordingTransport()
    controller, _, surface = _controller(transport, session=None)
    controller.present_change_form("")

    state = await controller.submit(current_password="old", new_password="n3w")

    assert state is CredentialFlowState.FAILED
    assert transport.calls == []
    assert surface.overlay.error == MSG_NOT_AUTHENTICATED


@pytest.mark.asyncio
async def test_backend_message_is_shown_verbatim() -> None:
    transport = _RecordingTransport(JsonResponse(status=400, body={"message": "Current password is incorrect"}))
    controller, _, surface = _controller(transport)
    controller.present_change_form("")

    state = await controller.submit(current_password="wrong", new_password="n3w")

    assert state is CredentialFlowState.FORM_PRESENTED
    assert surface.overlay.visible
    assert surface.overlay.error == "Current password is incorrect"


@pytest.mark.asyncio
async def test_network_failure_is_inline() -> None:
    transport = _RecordingTransport(TransportError("connection reset"))
    controller, _, surface = _controller(transport)
    controller.present_change_form("")

    await controller.submit(current_password="old", new_password="n3w")

    assert surface.overlay.error == MSG_CHANGE_NETWORK


@pytest.mark.asyncio
async def test_timeout_keeps_form_usable() -> None:
    transport = _RecordingTransport(TimeoutError("total timeout"))
    controller, _, surface = _controller(transport)
    controller.present_change_form("")

    state = await controller.submit(current_password="old", new_password="n3w")

    assert state is CredentialFlowState.FORM_PRESENTED
    assert surface.overlay.error == MSG_CHANGE_NETWORK

    transport.response = JsonResponse(status=200, body={})
    state = await controller.submit(current_password="old", new_password="n3w")

    assert state is CredentialFlowState.SUCCESS
    assert len(transport.calls) == 2
    assert surface.last_toast == MSG_CHANGED


@pytest.mark.asyncio
async def test_reset_unexpected_error_is_inline() -> None:
    transport = _RecordingTransport(UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
    controller, _, surface = _controller(transport, url="/reset?token=reset-1")
    controller.present_change_form()

    state = await controller.submit(new_password="abc12345", confirm_password="abc12345")

    assert state is CredentialFlowState.FORM_PRESENTED
    assert surface.overlay.error == MSG_RESET_NETWORK


# ------------------------------------------------------------------
# Token reset
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_reset_mismatch_sends_nothing() -> None:
    transport = _RecordingTransport()
    controller, _, surface = _controller(transport, url="/reset?token=reset-1")
    controller.present_change_form()

    state = await controller.submit(new_password="abc12345", confirm_password="abc12346")

    assert transport.calls == []
    assert state is CredentialFlowState.FORM_PRESENTED
    assert surface.overlay.error is not None
    assert "do not match" in surface.overlay.error
    assert surface.overlay.error == MSG_MISMATCH


@pytest.mark.asyncio
async def test_reset_success_sends_no_bearer() -> None:
    transport = _RecordingTransport()
    controller, _, surface = _controller(transport, url="/reset?token=reset-1&email=ada%40example.com")
    controller.present_change_form()

    state = await controller.submit(new_password="abc12345", confirm_password="abc12345")

    assert state is CredentialFlowState.SUCCESS
    assert transport.calls == [
        (
            "/api/auth/reset-password",
            {"token": "reset-1", "email": "ada@example.com", "newPassword": "abc12345"},
            None,
        )
    ]
    assert surface.last_toast == MSG_RESET_DONE


@pytest.mark.asyncio
async def test_reset_backend_error_default_message() -> None:
    transport = _RecordingTransport(JsonResponse(status=500, body={}))
    controller, _, surface = _controller(transport, url="/reset?token=reset-1")
    controller.present_change_form()

    await controller.submit(new_password="abc12345", confirm_password="abc12345")

    assert surface.overlay.error == "Failed to reset password"


# ------------------------------------------------------------------
# Overlay ownership
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_submit_without_open_form_raises() -> None:
    controller, _, _ = _controller(_RecordingTransport())
    with pytest.raises(OverlayError):
        await controller.submit(current_password="old", new_password="n3w")


@pytest.mark.asyncio
async def test_submit_after_overlay_reused_by_other_flow_raises() -> None:
    transport = _RecordingTransport()
    controller, overlay, _ = _controller(transport)
    controller.present_change_form("")
    overlay.open(title="Something else")

    with pytest.raises(OverlayError):
        await controller.submit(current_password="old", new_password="n3w")
    assert transport.calls == []


@pytest.mark.asyncio
async def test_overlay_actions_route_to_controller() -> None:
    transport = _RecordingTransport()
    controller, overlay, surface = _controller(transport)
    controller.present_change_form("")

    await overlay.trigger("submit", current_password="old", new_password="n3w")
    assert len(transport.calls) == 1

    controller.present_change_form("")
    overlay.trigger("close")
    assert not surface.overlay.visible
    assert controller.state is CredentialFlowState.IDLE
