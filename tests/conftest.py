"""
tests/conftest.py

Shared fixtures and builders for the watchrun test suite. Commands run
through the real platform shell inside pytest's tmp_path; no test touches
paths outside it.
"""
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

from watchrun.watchdog.events import EventKind, WatchEvent
from watchrun.watchdog.registry import ActionSpec, FilterSpec, WatchSpec


def make_watch(root: Path, actions: Iterable[tuple] = (("any", "true"),),
               recursive: bool = False,
               event_kinds: Optional[Iterable[str]] = None,
               extensions: Optional[Iterable[str]] = None,
               ignore_patterns: Iterable[str] = ()) -> WatchSpec:
    """Build a WatchSpec without going through config loading."""
    return WatchSpec(
        root_path=Path(root),
        recursive=recursive,
        actions=tuple(ActionSpec(event_selector=e, command_template=c) for e, c in actions),
        filter=FilterSpec(
            event_kinds=frozenset(event_kinds) if event_kinds is not None else None,
            extensions=frozenset(extensions) if extensions is not None else None,
            ignore_patterns=tuple(ignore_patterns),
        ),
        source=str(root),
    )


def make_event(kind: EventKind, *paths) -> WatchEvent:
    return WatchEvent.create(kind, [Path(p) for p in paths])


class FakeObserver:
    """
    Stands in for a watchdog observer: records schedule() calls and can be
    told to refuse a path.
    """

    def __init__(self, refuse: Optional[List[str]] = None):
        self.scheduled = []
        self.refuse = set(refuse or [])
        self.started = False
        self.stopped = False
        self.event_filters = []

    def schedule(self, handler, path, recursive=False, event_filter=None):
        if path in self.refuse:
            raise OSError(28, "inotify watch limit reached")
        self.scheduled.append((handler, path, recursive))
        self.event_filters.append(event_filter)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        pass

    def is_alive(self):
        return self.started and not self.stopped


@pytest.fixture()
def watched_dir(tmp_path):
    """An existing directory to put watches on."""
    directory = tmp_path / "watched"
    directory.mkdir()
    return directory


@pytest.fixture()
def fake_observer():
    return FakeObserver()
