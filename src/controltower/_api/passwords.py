"""Password endpoints.

Endpoints:
  - /api/vendors/change-password  (bearer token; currentPassword, newPassword)
  - /api/auth/reset-password      (no auth; token, email, newPassword)

Both reply with an optional ``message``. On a non-success status the
message is raised verbatim in :class:`BackendError`.
"""

from __future__ import annotations

import logging

from controltower._constants import CHANGE_PASSWORD_ENDPOINT, RESET_PASSWORD_ENDPOINT
from controltower._transport import JsonResponse, JsonTransport
from controltower.exceptions import BackendError

_logger = logging.getLogger(__name__)


def _raise_for_status(response: JsonResponse, endpoint: str, default_message: str) -> JsonResponse:
    if response.ok:
        return response
    _logger.debug("%s rejected with HTTP %d", endpoint, response.status)
    raise BackendError(
        response.message or default_message,
        status_code=response.status,
        endpoint=endpoint,
    )


async def change_password(
    transport: JsonTransport,
    *,
    bearer: str,
    current_password: str,
    new_password: str,
) -> JsonResponse:
    """Change the logged-in vendor's password."""
    response = await transport.post_json(
        CHANGE_PASSWORD_ENDPOINT,
        {"currentPassword": current_password, "newPassword": new_password},
        bearer=bearer,
    )
    return _raise_for_status(response, CHANGE_PASSWORD_ENDPOINT, "Failed to change password")


async def reset_password(
    transport: JsonTransport,
    *,
    token: str,
    email: str,
    new_password: str,
) -> JsonResponse:
    """Complete a reset-link flow with the emailed token."""
    response = await transport.post_json(
        RESET_PASSWORD_ENDPOINT,
        {"token": token, "email": email, "newPassword": new_password},
    )
    return _raise_for_status(response, RESET_PASSWORD_ENDPOINT, "Failed to reset password")
