# watchrun/utils/config.py

"""
Configuration management for watchrun
"""
import json
import os
import re
import tomllib
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, asdict
import logging

from ..exceptions import ConfigError, WatchSetupError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.toml")

_ENV_VAR = re.compile(r"\$(?:\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}|(?P<bare>[A-Za-z_][A-Za-z0-9_]*))")


@dataclass
class ActionConfig:
    """A single ``{event, command}`` entry of a watch"""
    event: str
    command: str


@dataclass
class FilterConfig:
    """Per-watch event filter"""
    event_kinds: Optional[List[str]] = None
    extensions: Optional[List[str]] = None
    ignore_patterns: List[str] = field(default_factory=list)


@dataclass
class WatchConfig:
    """A configured path with its filter and ordered actions"""
    path: str
    recursive: bool = False
    actions: List[ActionConfig] = field(default_factory=list)
    filter: FilterConfig = field(default_factory=FilterConfig)

    def expanded_absolute_path(self) -> Path:
        """
        Expand ``~`` and environment variables, then make the path absolute.

        The path is canonicalized when it exists. A missing path is returned
        expanded but uncanonicalized so it can still be watched once created.

        Raises:
            WatchSetupError: if the path references an undefined variable
        """
        path = Path(expand_path(self.path))
        try:
            return path.resolve(strict=True)
        except FileNotFoundError:
            logger.warning(f"Watch path does not exist yet, using as-is: {path}")
            return Path(os.path.abspath(path))
        except (OSError, RuntimeError) as e:
            logger.warning(f"Failed to canonicalize {path}, using as-is: {e}")
            return Path(os.path.abspath(path))


@dataclass
class Config:
    """Main configuration class"""
    log_level: str = "info"
    log_format: str = "text"  # text, json, or color
    log_file: Optional[str] = None
    debounce_ms: int = 500
    shutdown_timeout: float = 5.0  # seconds
    watches: List[WatchConfig] = field(default_factory=list)

    @property
    def debounce_time(self) -> float:
        """Debounce window in seconds"""
        return self.debounce_ms / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert config to JSON string"""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[Path] = None) -> "Config":
        """
        Build a config from parsed file contents

        Args:
            data: Mapping produced by the TOML/YAML/JSON parser
            source: File the data came from, used in error messages

        Raises:
            ConfigError: if the data does not match the schema
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Top-level configuration must be a table", source)
        data = _normalize_keys(data)

        config = cls()
        config.log_level = _typed(data, "log_level", str, config.log_level, source)
        config.log_format = _typed(data, "log_format", str, config.log_format, source)
        config.log_file = _typed(data, "log_file", str, None, source)
        config.debounce_ms = _typed(data, "debounce_ms", int, config.debounce_ms, source)
        config.shutdown_timeout = float(
            _typed(data, "shutdown_timeout", (int, float), config.shutdown_timeout, source)
        )
        if config.debounce_ms < 0:
            raise ConfigError("'debounce_ms' must not be negative", source)

        raw_watches = data.get("watch", data.get("watches", []))
        if not isinstance(raw_watches, list):
            raise ConfigError("'watch' must be a list of tables", source)

        for index, raw_watch in enumerate(raw_watches):
            config.watches.append(_parse_watch(raw_watch, index, source))

        return config


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Accept kebab-case keys by mapping them to snake_case"""
    return {str(key).replace("-", "_"): value for key, value in data.items()}


def _typed(data: Dict[str, Any], key: str, expected, default, source: Optional[Path]):
    value = data.get(key, default)
    if value is None:
        return default
    # bool is an int subclass; never accept it where a number is expected
    if isinstance(value, bool) and expected is not bool:
        raise ConfigError(f"'{key}' has the wrong type (got bool)", source)
    if not isinstance(value, expected):
        raise ConfigError(f"'{key}' has the wrong type (got {type(value).__name__})", source)
    return value


def _string_list(data: Dict[str, Any], key: str, where: str,
                 source: Optional[Path]) -> Optional[List[str]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{where}: '{key}' must be a list of strings", source)
    return list(value)


def _parse_watch(raw: Any, index: int, source: Optional[Path]) -> WatchConfig:
    where = f"watch #{index + 1}"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: expected a table", source)
    raw = _normalize_keys(raw)

    path = raw.get("path")
    if not isinstance(path, str) or not path:
        raise ConfigError(f"{where}: 'path' is required and must be a string", source)

    recursive = raw.get("recursive", False)
    if not isinstance(recursive, bool):
        raise ConfigError(f"{where}: 'recursive' must be a boolean", source)

    raw_filter = raw.get("filter", {}) or {}
    if not isinstance(raw_filter, dict):
        raise ConfigError(f"{where}: 'filter' must be a table", source)
    raw_filter = _normalize_keys(raw_filter)
    watch_filter = FilterConfig(
        event_kinds=_string_list(raw_filter, "event_kinds", where, source),
        extensions=_string_list(raw_filter, "extensions", where, source),
        ignore_patterns=_string_list(raw_filter, "ignore_patterns", where, source) or [],
    )

    raw_actions = raw.get("actions", [])
    if not isinstance(raw_actions, list):
        raise ConfigError(f"{where}: 'actions' must be a list", source)
    actions = []
    for action in raw_actions:
        if not isinstance(action, dict):
            raise ConfigError(f"{where}: each action must be a table", source)
        event = action.get("event")
        command = action.get("command")
        if not isinstance(event, str) or not isinstance(command, str):
            raise ConfigError(f"{where}: actions need string 'event' and 'command'", source)
        actions.append(ActionConfig(event=event, command=command))

    return WatchConfig(path=path, recursive=recursive, actions=actions, filter=watch_filter)


def expand_path(raw: str) -> str:
    """
    Expand ``~`` and ``$VAR`` / ``${VAR}`` references in *raw*

    Raises:
        WatchSetupError: if a referenced variable is not defined
    """
    def substitute(match: re.Match) -> str:
        name = match.group("braced") or match.group("bare")
        value = os.environ.get(name)
        if value is None:
            raise WatchSetupError(raw, f"environment variable '{name}' is not set")
        return value

    expanded = _ENV_VAR.sub(substitute, raw)
    return os.path.expanduser(expanded)


def _read_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    try:
        if suffix in ['.yaml', '.yml']:
            with open(config_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        elif suffix == '.json':
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        else:  # default to TOML
            with open(config_path, 'rb') as f:
                return tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e.strerror or e}", config_path) from e
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to parse config: {e}", config_path) from e


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from *path*

    The format is picked from the file suffix: ``.yaml``/``.yml`` and
    ``.json`` are supported besides the default TOML.

    Raises:
        ConfigError: if the file is unreadable, unparseable or invalid
    """
    config_path = Path(path)
    data = _read_file(config_path)
    config = Config.from_dict(data, source=config_path)

    if not config.watches:
        logger.warning("Configuration file loaded, but no [[watch]] sections defined")

    return config
