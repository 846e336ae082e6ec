# watchrun/watchdog/handlers.py

"""
Bridge from watchdog's observer thread into the debouncer
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Tuple, Type

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirMovedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_OPENED,
)

from ..exceptions import DebounceError
from .debounce import EventDebouncer
from .events import EventKind, WatchEvent

logger = logging.getLogger(__name__)

# Passed to the observer as its event_filter. Open, read-only close and
# directory-modified events are never delivered.
SUBSCRIBED_EVENTS: Tuple[Type[FileSystemEvent], ...] = (
    FileCreatedEvent,
    DirCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    DirDeletedEvent,
    FileMovedEvent,
    DirMovedEvent,
    FileClosedEvent,
)

# (watchdog event type, is_directory) -> kind
_KIND_MAP: Dict[Tuple[str, bool], EventKind] = {
    (EVENT_TYPE_CREATED, False): EventKind.CREATE_FILE,
    (EVENT_TYPE_CREATED, True): EventKind.CREATE_FOLDER,
    (EVENT_TYPE_MODIFIED, False): EventKind.MODIFY_CONTENT,
    (EVENT_TYPE_MODIFIED, True): EventKind.MODIFY_METADATA,
    (EVENT_TYPE_DELETED, False): EventKind.REMOVE_FILE,
    (EVENT_TYPE_DELETED, True): EventKind.REMOVE_FOLDER,
    (EVENT_TYPE_MOVED, False): EventKind.RENAME_BOTH,
    (EVENT_TYPE_MOVED, True): EventKind.RENAME_BOTH,
    (EVENT_TYPE_OPENED, False): EventKind.ACCESS_OPEN,
    (EVENT_TYPE_CLOSED, False): EventKind.ACCESS_CLOSE_WRITE,
    (EVENT_TYPE_CLOSED_NO_WRITE, False): EventKind.ACCESS_CLOSE_READ,
}


def convert_event(event: FileSystemEvent) -> WatchEvent:
    """Convert a watchdog event to our internal format"""
    kind = _KIND_MAP.get((event.event_type, bool(event.is_directory)), EventKind.UNCLASSIFIED)

    paths = [Path(os.fsdecode(event.src_path))]
    dest_path = getattr(event, 'dest_path', None)
    if dest_path:
        paths.append(Path(os.fsdecode(dest_path)))

    return WatchEvent.create(kind, paths)


class DebouncingEventHandler(FileSystemEventHandler):
    """
    Forwards subscribed watchdog events to an EventDebouncer

    Runs on the observer thread; conversion failures are reported to the
    debouncer as errors instead of being raised into watchdog.
    """

    def __init__(self, debouncer: EventDebouncer):
        self.debouncer = debouncer
        self.stats = {
            'events_received': 0,
            'events_forwarded': 0,
            'events_ignored': 0,
            'errors': 0,
        }

    def on_any_event(self, event: FileSystemEvent):
        """Handle any file system event"""
        self.stats['events_received'] += 1
        if not isinstance(event, SUBSCRIBED_EVENTS):
            self.stats['events_ignored'] += 1
            return

        try:
            watch_event = convert_event(event)
        except Exception as e:
            self.stats['errors'] += 1
            self.debouncer.add_error(DebounceError(f"Failed to convert event {event!r}: {e}"))
            return

        logger.debug(f"Raw event: {watch_event}")
        self.debouncer.add_event(watch_event)
        self.stats['events_forwarded'] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics"""
        return self.stats.copy()
