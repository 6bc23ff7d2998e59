from .app import build_registry, create_app
from .settings import Settings, get_settings
from .sse import format_event, stream_events

__all__ = [
    "Settings",
    "build_registry",
    "create_app",
    "format_event",
    "get_settings",
    "stream_events",
]
