# watchrun/watchdog/router.py

"""
Event routing: which watches does an event concern
"""
import logging
from pathlib import Path
from typing import Iterable, List

from .events import WatchEvent
from .registry import WatchSpec

logger = logging.getLogger(__name__)


def _contains(root: Path, path: Path) -> bool:
    # Component-wise: /tmp/a does not contain /tmp/ab
    return path == root or root in path.parents


def route(event: WatchEvent, watches: Iterable[WatchSpec]) -> List[WatchSpec]:
    """
    Return the watches *event* concerns, in configuration order

    A watch is relevant when at least one event path is its root or lies
    below it. Each root is resolved once per call; a root that cannot be
    resolved right now excludes its watch for this event.
    """
    relevant = []
    for watch in watches:
        root = watch.resolve_root()
        if root is None:
            continue

        roots = {root, watch.root_path}
        if any(_contains(r, path) for path in event.paths for r in roots):
            relevant.append(watch)

    return relevant

