# watchrun/exceptions.py

"""
Exception classes used across watchrun.

Only ConfigError is allowed to end the process. Everything else is caught
by the unit that owns it (a watch at setup, a batch in the dispatch loop,
a single action invocation) and logged there.
"""
from pathlib import Path
from typing import Optional, Union


class WatchrunError(Exception):
    """Base class for all watchrun errors."""


class ConfigError(WatchrunError):
    """
    Raised when the configuration file cannot be read or parsed, or when
    its contents do not match the expected schema.
    """

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)


class WatchSetupError(WatchrunError):
    """
    Raised while registering a single watch: bad path expansion or a
    refusal from the notification backend. The watch is skipped.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to set up watch '{path}': {reason}")


class DebounceError(WatchrunError):
    """Reported by the notification layer; delivered as an error batch."""


class ActionError(WatchrunError):
    """Base class for failures of a single action invocation."""


class PathEncodingError(ActionError):
    """The affected path cannot be rendered as valid text."""

    def __init__(self, path: Union[str, Path]):
        self.path = path
        super().__init__(f"Path is not valid text: {path!r}")


class EmptyCommandError(ActionError):
    """The command is empty once the path has been substituted."""

    def __init__(self, command_template: str, path: Union[str, Path]):
        self.command_template = command_template
        self.path = path
        super().__init__(f"Action command is empty for path {path}")


class ActionExecutionError(ActionError):
    """
    The command could not be spawned or exited abnormally.

    ``stderr`` is kept for diagnostics only.
    """

    def __init__(self, command: str, reason: str,
                 returncode: Optional[int] = None, stderr: str = ""):
        self.command = command
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Failed to run command '{command}': {reason}")
