"""View-scoped event bindings.

Handlers are registered once per element id. Installing new main content
calls :meth:`EventBindings.rebind`, which drops every live binding and
re-binds only the ids present in the new markup, so handlers never pile
up across view switches and never outlive the element they belong to.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from controltower.exceptions import BindingError

_logger = logging.getLogger(__name__)

Handler = Callable[..., Any]

_ID_RE = re.compile(r"""(?<![\w-])id=["']([^"']+)["']""")


def element_ids(markup: str) -> set[str]:
    return set(_ID_RE.findall(markup))


class EventBindings:
    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self._live: dict[str, Handler] = {}

    def register(self, element_id: str, handler: Handler) -> None:
        self._handlers[element_id] = handler

    @property
    def bound(self) -> frozenset[str]:
        return frozenset(self._live)

    def rebind(self, *markups: str) -> frozenset[str]:
        present: set[str] = set()
        for markup in markups:
            present |= element_ids(markup)
        self._live = {eid: handler for eid, handler in self._handlers.items() if eid in present}
        _logger.debug("Bound %s", ", ".join(sorted(self._live)) or "nothing")
        return self.bound

    def clear(self) -> None:
        self._live = {}

    def dispatch(self, element_id: str, *args: Any, **kwargs: Any) -> Any:
        handler = self._live.get(element_id)
        if handler is None:
            raise BindingError(f"no handler bound to #{element_id} in the current view")
        return handler(*args, **kwargs)
