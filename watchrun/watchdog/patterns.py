# watchrun/watchdog/patterns.py

"""
Per-watch event filtering
"""
import logging
from pathlib import Path
from typing import Callable, Dict

from .events import EventKind, WatchEvent
from .registry import FilterSpec

logger = logging.getLogger(__name__)


# Coarse names match whole categories; "modify"/"write" also take pure access events
_CATEGORY_NAMES: Dict[str, Callable[[EventKind], bool]] = {
    'access': lambda kind: kind.is_access,
    'create': lambda kind: kind.is_create,
    'modify': lambda kind: kind.is_modify or kind.is_access,
    'write': lambda kind: kind.is_modify or kind.is_access,
    'remove': lambda kind: kind.is_remove,
}

# Fine-grained names match exactly one variant
_VARIANT_NAMES: Dict[str, EventKind] = {
    'content_change': EventKind.MODIFY_CONTENT,
    'rename_to': EventKind.RENAME_TO,
    'rename_from': EventKind.RENAME_FROM,
    'rename': EventKind.RENAME_BOTH,
    'create_file': EventKind.CREATE_FILE,
    'create_folder': EventKind.CREATE_FOLDER,
    'remove_file': EventKind.REMOVE_FILE,
    'remove_folder': EventKind.REMOVE_FOLDER,
}


def event_kind_matches(kind: EventKind, name: str) -> bool:
    """
    Check whether a configured kind name covers *kind*

    Names are case-insensitive; unknown names never match.
    """
    name = name.lower()
    category_check = _CATEGORY_NAMES.get(name)
    if category_check is not None:
        return category_check(kind)
    return _VARIANT_NAMES.get(name) is kind


def path_matches_pattern(path: Path, pattern: str) -> bool:
    """Plain substring test against the path text"""
    return pattern in str(path)


def keep(filter_spec: FilterSpec, event: WatchEvent) -> bool:
    """
    Decide whether *event* passes a watch's filter

    All configured checks must pass: the kind check, the ignore check, and
    the extension check. Unset fields are skipped.
    """
    if filter_spec.event_kinds is not None:
        if not any(event_kind_matches(event.kind, name) for name in filter_spec.event_kinds):
            return False

    for path in event.paths:
        for pattern in filter_spec.ignore_patterns:
            if path_matches_pattern(path, pattern):
                logger.debug(f"Ignoring {path} (matched pattern: {pattern})")
                return False

    if filter_spec.extensions is not None:
        for path in event.paths:
            suffix = path.suffix
            if not suffix:
                logger.debug(f"Skipping {path}: no extension while an extension filter is set")
                return False
            if suffix not in filter_spec.extensions:
                logger.debug(f"Skipping {path}: extension {suffix} not in filter")
                return False

    return True
