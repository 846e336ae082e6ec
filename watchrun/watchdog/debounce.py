# watchrun/watchdog/debounce.py

"""
Event debouncing for file system events
"""
import asyncio
import logging
import threading
import time
from typing import Dict, List, Optional, Tuple, Any
from dataclasses import dataclass, field

from ..exceptions import DebounceError
from .events import EventKind, WatchEvent

logger = logging.getLogger(__name__)


@dataclass
class DebounceResult:
    """One batch from the debounce layer: either events or errors"""
    events: List[WatchEvent] = field(default_factory=list)
    errors: List[DebounceError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# Marks the end of the batch stream
CHANNEL_CLOSED = object()

# Kinds that only say "this path was written to"
_WRITES = frozenset({
    EventKind.MODIFY_CONTENT,
    EventKind.MODIFY_METADATA,
    EventKind.ACCESS_CLOSE_WRITE,
})


def merge_kinds(earlier: EventKind, later: EventKind) -> EventKind:
    """
    Kind to report for a path that saw *earlier* and then *later* inside
    one debounce window

    Writes fold into a preceding create, and consecutive writes become a
    single content change. Anything else is superseded by the later kind.
    """
    if later in _WRITES:
        if earlier.is_create:
            return earlier
        if earlier in _WRITES:
            if earlier is later is EventKind.MODIFY_METADATA:
                return earlier
            return EventKind.MODIFY_CONTENT
    return later


@dataclass
class _PendingEvent:
    event: WatchEvent
    first_seen: float
    last_seen: float
    count: int = 1


class EventDebouncer:
    """
    Coalesces raw events and feeds batches into a bounded channel

    ``add_event`` and ``add_error`` may be called from any thread (the
    observer calls them from its own). ``run`` drives the flush loop on the
    event loop and suspends when the channel is full.
    """

    def __init__(self, debounce_time: float = 0.5,
                 tick: Optional[float] = None):
        """
        Initialize event debouncer

        Args:
            debounce_time: Quiet period in seconds before an event is emitted
            tick: Interval between flushes (defaults to a quarter of the window)
        """
        self.debounce_time = debounce_time
        self.tick = tick if tick is not None else max(debounce_time / 4, 0.05)

        self._pending: Dict[Tuple[Any, ...], _PendingEvent] = {}
        self._errors: List[DebounceError] = []
        self._lock = threading.Lock()
        self._stopping = asyncio.Event()

        self.stats = {
            'events_received': 0,
            'events_debounced': 0,
            'batches_emitted': 0,
            'errors_reported': 0,
        }

    @staticmethod
    def _event_key(event: WatchEvent) -> Tuple[Any, ...]:
        return tuple(event.paths)

    def add_event(self, event: WatchEvent):
        """
        Record a raw event

        Events on the same paths inside the window are merged into one,
        whose kind follows ``merge_kinds``.
        """
        now = time.monotonic()
        key = self._event_key(event)

        with self._lock:
            self.stats['events_received'] += 1
            pending = self._pending.get(key)
            if pending is not None:
                kind = merge_kinds(pending.event.kind, event.kind)
                if kind is not pending.event.kind:
                    pending.event = WatchEvent(kind=kind, paths=pending.event.paths)
                pending.last_seen = now
                pending.count += 1
                self.stats['events_debounced'] += 1
            else:
                self._pending[key] = _PendingEvent(event=event, first_seen=now, last_seen=now)

    def add_error(self, error: DebounceError):
        """Report a notification-layer failure; it is emitted as its own batch"""
        with self._lock:
            self.stats['errors_reported'] += 1
            self._errors.append(error)

    def take_ready(self, force: bool = False) -> Tuple[List[WatchEvent], List[DebounceError]]:
        """
        Remove and return events whose window has elapsed, plus pending errors

        Events come back in first-seen order.
        """
        now = time.monotonic()
        with self._lock:
            ready = [
                (key, pending) for key, pending in self._pending.items()
                if force or (now - pending.last_seen) >= self.debounce_time
            ]
            for key, _ in ready:
                del self._pending[key]
            errors, self._errors = self._errors, []

        ready.sort(key=lambda item: item[1].first_seen)
        return [pending.event for _, pending in ready], errors

    async def run(self, channel: asyncio.Queue):
        """Flush loop: push ready batches into *channel* until stopped"""
        logger.info(f"EventDebouncer started (debounce_time={self.debounce_time}s)")
        try:
            while not self._stopping.is_set():
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=self.tick)
                except asyncio.TimeoutError:
                    pass
                await self._flush(channel)
        finally:
            logger.info("EventDebouncer stopped")

    async def _flush(self, channel: asyncio.Queue):
        events, errors = self.take_ready()
        if errors:
            await channel.put(DebounceResult(errors=errors))
            self.stats['batches_emitted'] += 1
        if events:
            logger.debug(f"Emitting batch of {len(events)} events")
            await channel.put(DebounceResult(events=events))
            self.stats['batches_emitted'] += 1

    async def close(self, channel: asyncio.Queue):
        """Signal the end of the stream to the consumer"""
        await channel.put(CHANNEL_CLOSED)

    def stop(self):
        """Ask the flush loop to exit after its current iteration"""
        self._stopping.set()

    def get_stats(self) -> Dict[str, Any]:
        """Get debouncer statistics"""
        with self._lock:
            active = len(self._pending)
        return {
            **self.stats,
            'active_events': active,
            'debounce_time': self.debounce_time,
        }
