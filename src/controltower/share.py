"""Telemetry snapshot sharing with clipboard and prompt fallbacks.

Order of attempts::

    native share  --(ShareInvalidStateError, after a short delay)--> clipboard
                  --(other ShareError)-----------------------------> clipboard
    clipboard     --(missing or ClipboardError)--------------------> prompt

Only one native share may be outstanding; the guard is taken before the
first suspension point so overlapping calls never both reach the platform.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Protocol

from controltower._constants import SHARE_RETRY_DELAY_S
from controltower.exceptions import ClipboardError, ShareError, ShareInvalidStateError
from controltower.models.shipment import Shipment
from controltower.models.telemetry import TelemetryReading
from controltower.notify import Notifier

_logger = logging.getLogger(__name__)

MSG_BUSY = "Previous share still in progress. Please complete it before sharing again."
MSG_SHARED = "Telemetry shared"
MSG_COPIED = "Telemetry copied to clipboard"
MSG_COPY_FAILED = "Unable to copy telemetry"
PROMPT_TITLE = "Copy telemetry data"


class ShareCapability(Protocol):
    async def share(self, *, title: str, text: str, url: str) -> None:
        """Raise :class:`ShareError` (or its invalid-state subclass) on failure."""
        ...


class ClipboardCapability(Protocol):
    async def write_text(self, text: str) -> None:
        """Raise :class:`ClipboardError` on failure."""
        ...


class PromptCapability(Protocol):
    def prompt(self, message: str, default: str) -> str | None:
        ...


class ShareOutcome(enum.StrEnum):
    SHARED = "shared"
    COPIED = "copied"
    PROMPTED = "prompted"
    BUSY = "busy"
    FAILED = "failed"


@dataclass(frozen=True)
class TelemetrySnapshot:
    subject: str
    body_text: str


def build_telemetry_snapshot(shipment: Shipment, reading: TelemetryReading) -> TelemetrySnapshot:
    """Subject and plain-text body describing a shipment's latest reading."""
    lines = [
        f"Shipment: {shipment.id}",
        f"Truck: {shipment.truck_id}",
        f"Location: {reading.location.name}",
        f"Temperature: {reading.temperature:g}°C",
        f"Ethylene Gas: {reading.gas_level:g} ppm",
        f"Humidity: {reading.humidity:g}%",
        f"Status: {shipment.quality_status.value}",
    ]
    return TelemetrySnapshot(subject=f"Telemetry — {shipment.id}", body_text="\n".join(lines))


class ShareController:
    """Export a snapshot through whatever the platform offers.

    Parameters
    ----------
    notifier : Notifier
        Receives every user-visible notice.
    share : ShareCapability, optional
        Native share sheet.
    clipboard : ClipboardCapability, optional
        Clipboard writer.
    prompt : PromptCapability, optional
        Blocking prompt used as the last resort.
    retry_delay : float
        Seconds to let a pending platform share settle before the
        clipboard fallback.
    """

    def __init__(
        self,
        notifier: Notifier,
        *,
        share: ShareCapability | None = None,
        clipboard: ClipboardCapability | None = None,
        prompt: PromptCapability | None = None,
        retry_delay: float = SHARE_RETRY_DELAY_S,
    ) -> None:
        self._notifier = notifier
        self._share = share
        self._clipboard = clipboard
        self._prompt = prompt
        self._retry_delay = retry_delay
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def share_snapshot(self, subject: str, body_text: str, url: str) -> ShareOutcome:
        if self._share is None:
            return await self._copy(body_text)

        if self._in_progress:
            self._notifier.toast(MSG_BUSY)
            return ShareOutcome.BUSY

        self._in_progress = True
        try:
            await self._share.share(title=subject, text=body_text, url=url)
        except ShareInvalidStateError:
            _logger.debug("Share pending at platform level; retrying via clipboard", exc_info=True)
            retry_delay = self._retry_delay
        except ShareError:
            _logger.warning("Share failed; falling back to clipboard", exc_info=True)
            retry_delay = 0.0
        else:
            self._notifier.toast(MSG_SHARED)
            return ShareOutcome.SHARED
        finally:
            self._in_progress = False

        if retry_delay:
            await asyncio.sleep(retry_delay)
        return await self._copy(body_text)

    async def _copy(self, text: str) -> ShareOutcome:
        if self._clipboard is not None:
            try:
                await self._clipboard.write_text(text)
            except ClipboardError:
                _logger.warning("Clipboard write failed", exc_info=True)
            else:
                self._notifier.toast(MSG_COPIED)
                return ShareOutcome.COPIED

        if self._prompt is not None:
            self._prompt.prompt(PROMPT_TITLE, text)
            return ShareOutcome.PROMPTED

        self._notifier.toast(MSG_COPY_FAILED)
        return ShareOutcome.FAILED
