# watchrun/utils/__init__.py

"""
watchrun utilities: configuration loading and logging setup
"""
from .config import (
    Config, WatchConfig, FilterConfig, ActionConfig,
    load_config, expand_path, DEFAULT_CONFIG_PATH
)
from .logger import setup_logging, resolve_log_level, log_exception, PerformanceLogger

__all__ = [
    'Config', 'WatchConfig', 'FilterConfig', 'ActionConfig',
    'load_config', 'expand_path', 'DEFAULT_CONFIG_PATH',
    'setup_logging', 'resolve_log_level', 'log_exception', 'PerformanceLogger',
]
