"""HTTP transport for backend calls and view fragments."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import aiohttp

from controltower._constants import VIEW_FRAGMENT_PATH
from controltower._redact import redact_for_log
from controltower.exceptions import TransportError, ViewFragmentError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JsonResponse:
    """Status and decoded body of a backend reply.

    Bodies that are not a JSON object decode to ``{}``.
    """

    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def message(self) -> str | None:
        value = self.body.get("message")
        return value if isinstance(value, str) and value else None


class JsonTransport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (:class:`HttpTransport`) concrete.
    """

    async def post_json(
        self,
        endpoint: str,
        payload: Mapping[str, Any],
        *,
        bearer: str | None = None,
    ) -> JsonResponse:
        ...


class FragmentSource(Protocol):
    """Remote source of pre-rendered view fragments."""

    async def fetch(self, route: str) -> str:
        """Return fragment markup or raise :class:`ViewFragmentError`."""
        ...


def _decode_body(text: str) -> dict[str, Any]:
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


class HttpTransport:
    """JSON-over-HTTP transport bound to the backend base URL."""

    def __init__(self, base_url: str, http_session: aiohttp.ClientSession) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session

    async def post_json(
        self,
        endpoint: str,
        payload: Mapping[str, Any],
        *,
        bearer: str | None = None,
    ) -> JsonResponse:
        headers: dict[str, str] = {"content-type": "application/json"}
        if bearer:
            headers["authorization"] = f"Bearer {bearer}"

        url = f"{self._base_url}{endpoint}"
        _logger.debug("POST %s payload=%s", url, redact_for_log(dict(payload)))

        try:
            async with self._http.post(url, data=json.dumps(payload), headers=headers) as resp:
                text = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, TimeoutError, UnicodeDecodeError) as exc:
            raise TransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        body = _decode_body(text)
        _logger.debug("POST %s -> %d body=%s", endpoint, status, redact_for_log(body))
        return JsonResponse(status=status, body=body)


class HttpFragmentSource:
    """Fetch ``/components/views/<route>.html`` from a static host."""

    def __init__(self, base_url: str, http_session: aiohttp.ClientSession) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session

    async def fetch(self, route: str) -> str:
        endpoint = VIEW_FRAGMENT_PATH.format(route=route)
        url = f"{self._base_url}{endpoint}"
        try:
            async with self._http.get(url, headers={"cache-control": "no-cache"}) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise ViewFragmentError(
                        f"HTTP {resp.status} from {endpoint}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except ViewFragmentError:
            raise
        except (aiohttp.ClientError, TimeoutError, UnicodeDecodeError) as exc:
            raise ViewFragmentError(
                f"Fragment request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            raise ViewFragmentError(f"Empty fragment from {endpoint}", endpoint=endpoint)
        return text
