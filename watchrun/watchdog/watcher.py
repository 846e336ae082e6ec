# watchrun/watchdog/watcher.py

"""
Observer setup: one registration per configured watch
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from ..exceptions import WatchSetupError
from .handlers import SUBSCRIBED_EVENTS
from .registry import WatchSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    """What was actually handed to the observer for one watch"""
    watch: WatchSpec
    scheduled_path: Path
    recursive: bool


def _nearest_existing_parent(path: Path) -> Optional[Path]:
    for parent in path.parents:
        if parent.is_dir():
            return parent
    return None


class WatcherBuilder:
    """
    Accumulates observer registrations, then yields an immutable handle

    A missing root is registered by watching its closest existing parent
    non-recursively, so the root's creation is still reported.
    """

    def __init__(self, handler: FileSystemEventHandler,
                 observer_factory: Callable[[], BaseObserver] = Observer):
        self.handler = handler
        self.observer = observer_factory()
        self._registrations: List[Registration] = []
        self._built = False

    def add(self, watch: WatchSpec) -> Registration:
        """
        Register *watch* with the observer

        Raises:
            WatchSetupError: if the observer refuses the path
        """
        if self._built:
            raise RuntimeError("WatcherBuilder.add() called after build()")

        path = watch.root_path
        if not path.exists():
            logger.warning(f"Watch path does not exist: {path}. It will be watched if created later.")
            parent = _nearest_existing_parent(path)
            if parent is None:
                raise WatchSetupError(watch.source or str(path), "no existing parent directory")
            scheduled, recursive = parent, False
        elif not path.is_dir() and watch.recursive:
            logger.warning(f"Recursive watch requested on a file, treating as non-recursive: {path}")
            scheduled, recursive = path, False
        else:
            scheduled, recursive = path, watch.recursive and path.is_dir()

        try:
            self.observer.schedule(self.handler, str(scheduled), recursive=recursive,
                                  event_filter=list(SUBSCRIBED_EVENTS))
        except OSError as e:
            raise WatchSetupError(watch.source or str(path), str(e)) from e

        registration = Registration(watch=watch, scheduled_path=scheduled, recursive=recursive)
        self._registrations.append(registration)
        return registration

    def build(self) -> "WatcherHandle":
        self._built = True
        return WatcherHandle(self.observer, tuple(self._registrations))


class WatcherHandle:
    """Started/stopped as a unit; its registrations never change"""

    def __init__(self, observer: BaseObserver, registrations: Tuple[Registration, ...]):
        self._observer = observer
        self.registrations = registrations
        self.is_watching = False

    def start(self):
        if self.is_watching or not self.registrations:
            return
        self._observer.start()
        self.is_watching = True
        logger.debug(f"Observer started with {len(self.registrations)} registrations")

    def stop(self, timeout: float = 10.0):
        if not self.is_watching:
            return
        self._observer.stop()
        self._observer.join(timeout=timeout)
        self.is_watching = False
        logger.debug("Observer stopped")

    def is_alive(self) -> bool:
        return self.is_watching and self._observer.is_alive()
