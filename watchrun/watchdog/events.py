# watchrun/watchdog/events.py

"""
Filesystem event model shared by the dispatch pipeline
"""
from enum import Enum
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple


class EventCategory(Enum):
    ACCESS = "access"
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    OTHER = "other"


class EventKind(Enum):
    """
    Closed set of change kinds watchrun acts on

    Each member carries its category and, where one is defined, the
    canonical label used to match actions.
    """
    ACCESS_OPEN = ("access_open", EventCategory.ACCESS, None)
    ACCESS_CLOSE_WRITE = ("access_close_write", EventCategory.ACCESS, None)
    ACCESS_CLOSE_READ = ("access_close_read", EventCategory.ACCESS, None)
    CREATE_FILE = ("create_file", EventCategory.CREATE, "create_file")
    CREATE_FOLDER = ("create_folder", EventCategory.CREATE, "create_folder")
    CREATE_OTHER = ("create_other", EventCategory.CREATE, None)
    MODIFY_CONTENT = ("modify_content", EventCategory.MODIFY, "content_change")
    MODIFY_METADATA = ("modify_metadata", EventCategory.MODIFY, None)
    RENAME_FROM = ("rename_from", EventCategory.MODIFY, "rename_from")
    RENAME_TO = ("rename_to", EventCategory.MODIFY, "rename_to")
    RENAME_BOTH = ("rename_both", EventCategory.MODIFY, "rename")
    REMOVE_FILE = ("remove_file", EventCategory.REMOVE, "remove_file")
    REMOVE_FOLDER = ("remove_folder", EventCategory.REMOVE, "remove_folder")
    REMOVE_OTHER = ("remove_other", EventCategory.REMOVE, None)
    UNCLASSIFIED = ("unclassified", EventCategory.OTHER, None)

    def __init__(self, key: str, category: EventCategory, label: Optional[str]):
        self.key = key
        self.category = category
        self.label = label

    @property
    def is_access(self) -> bool:
        return self.category is EventCategory.ACCESS

    @property
    def is_create(self) -> bool:
        return self.category is EventCategory.CREATE

    @property
    def is_modify(self) -> bool:
        return self.category is EventCategory.MODIFY

    @property
    def is_remove(self) -> bool:
        return self.category is EventCategory.REMOVE


def primary_kind(kind: EventKind) -> Optional[str]:
    """Canonical single label for *kind*, or None when it has none"""
    return kind.label


@dataclass(frozen=True)
class WatchEvent:
    """A debounced change: one kind, one or more absolute paths"""
    kind: EventKind
    paths: Tuple[Path, ...]

    @classmethod
    def create(cls, kind: EventKind, paths: Iterable[Path]) -> "WatchEvent":
        """Build an event, dropping duplicate paths but keeping their order"""
        unique = tuple(dict.fromkeys(Path(p) for p in paths))
        return cls(kind=kind, paths=unique)

    def __str__(self):
        return f"{self.kind.key}: {', '.join(str(p) for p in self.paths)}"
