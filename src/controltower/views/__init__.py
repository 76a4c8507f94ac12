"""View building, installation and event wiring."""

from controltower.views.bindings import EventBindings, element_ids
from controltower.views.builders import LOCAL_BUILDERS, SECONDARY_RENDERERS, ViewContext, greeting_text
from controltower.views.resolver import ViewResolver

__all__ = [
    "LOCAL_BUILDERS",
    "SECONDARY_RENDERERS",
    "EventBindings",
    "ViewContext",
    "ViewResolver",
    "element_ids",
    "greeting_text",
]
