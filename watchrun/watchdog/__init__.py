# watchrun/watchdog/__init__.py

"""
watchrun dispatch pipeline: filesystem events in, shell commands out
"""
from .events import EventKind, WatchEvent, primary_kind
from .registry import ActionSpec, FilterSpec, WatchSpec, WatchRegistry, WatchRegistryBuilder
from .router import route
from .patterns import keep, event_kind_matches
from .actions import ActionOutcome, match_action, execute, render_command
from .debounce import DebounceResult, EventDebouncer, merge_kinds
from .handlers import DebouncingEventHandler, SUBSCRIBED_EVENTS, convert_event
from .watcher import WatcherBuilder, WatcherHandle
from .orchestrator import Orchestrator
from .monitor import FileMonitor

__all__ = [
    'EventKind',
    'WatchEvent',
    'primary_kind',
    'ActionSpec',
    'FilterSpec',
    'WatchSpec',
    'WatchRegistry',
    'WatchRegistryBuilder',
    'route',
    'keep',
    'event_kind_matches',
    'ActionOutcome',
    'match_action',
    'execute',
    'render_command',
    'DebounceResult',
    'EventDebouncer',
    'merge_kinds',
    'DebouncingEventHandler',
    'convert_event',
    'SUBSCRIBED_EVENTS',
    'WatcherBuilder',
    'WatcherHandle',
    'Orchestrator',
    'FileMonitor',
]
