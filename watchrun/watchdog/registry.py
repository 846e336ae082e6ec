# watchrun/watchdog/registry.py

"""
Immutable registry of configured watches
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterator, List, Optional, Tuple

from ..exceptions import WatchSetupError
from ..utils.config import Config, WatchConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionSpec:
    """Trigger condition and command template; ``{}`` is the path placeholder"""
    event_selector: str
    command_template: str


@dataclass(frozen=True)
class FilterSpec:
    event_kinds: Optional[FrozenSet[str]] = None
    extensions: Optional[FrozenSet[str]] = None
    ignore_patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WatchSpec:
    """A watch with its root already expanded and made absolute"""
    root_path: Path
    recursive: bool = False
    actions: Tuple[ActionSpec, ...] = ()
    filter: FilterSpec = field(default_factory=FilterSpec)
    source: str = ""

    @classmethod
    def from_config(cls, watch_config: WatchConfig) -> "WatchSpec":
        """
        Raises:
            WatchSetupError: if the configured path cannot be expanded
        """
        root_path = watch_config.expanded_absolute_path()
        watch_filter = watch_config.filter
        return cls(
            root_path=root_path,
            recursive=watch_config.recursive,
            actions=tuple(
                ActionSpec(event_selector=a.event, command_template=a.command)
                for a in watch_config.actions
            ),
            filter=FilterSpec(
                event_kinds=(frozenset(watch_filter.event_kinds)
                             if watch_filter.event_kinds is not None else None),
                extensions=(frozenset(watch_filter.extensions)
                            if watch_filter.extensions is not None else None),
                ignore_patterns=tuple(watch_filter.ignore_patterns),
            ),
            source=watch_config.path,
        )

    def resolve_root(self) -> Optional[Path]:
        """
        Current canonical form of the root

        Falls back to the stored path while the root does not exist.
        Returns None when the root exists but cannot be resolved.
        """
        try:
            return self.root_path.resolve(strict=True)
        except FileNotFoundError:
            return self.root_path
        except (OSError, RuntimeError) as e:
            logger.debug(f"Cannot resolve watch root {self.root_path}: {e}")
            return None


class WatchRegistry:
    """Read-only, ordered collection of watches"""

    def __init__(self, watches: Tuple[WatchSpec, ...] = ()):
        self._watches = tuple(watches)

    @classmethod
    def from_config(cls, config: Config) -> "WatchRegistry":
        """
        Build the registry, skipping watches whose path cannot be expanded
        """
        builder = WatchRegistryBuilder()
        for watch_config in config.watches:
            try:
                builder.add(WatchSpec.from_config(watch_config))
            except WatchSetupError as e:
                logger.error(f"{e}; skipping this entry")
        return builder.build()

    @property
    def watches(self) -> Tuple[WatchSpec, ...]:
        return self._watches

    def __iter__(self) -> Iterator[WatchSpec]:
        return iter(self._watches)

    def __len__(self) -> int:
        return len(self._watches)

    def __bool__(self) -> bool:
        return bool(self._watches)


class WatchRegistryBuilder:
    """Accumulates watches in configuration order"""

    def __init__(self):
        self._watches: List[WatchSpec] = []

    def add(self, watch: WatchSpec) -> "WatchRegistryBuilder":
        self._watches.append(watch)
        return self

    def build(self) -> WatchRegistry:
        return WatchRegistry(tuple(self._watches))
