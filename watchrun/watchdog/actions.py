# watchrun/watchdog/actions.py

"""
Action selection and command execution
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ActionExecutionError, EmptyCommandError, PathEncodingError
from ..utils.logger import PerformanceLogger
from .events import WatchEvent, primary_kind
from .registry import ActionSpec, WatchSpec

logger = logging.getLogger(__name__)

PLACEHOLDER = "{}"


@dataclass
class ActionOutcome:
    """Result of a finished command; stdout and stderr are diagnostics only"""
    success: bool
    stdout: str
    stderr: str
    status: Optional[int]


def match_action(watch: WatchSpec, event: WatchEvent) -> Optional[ActionSpec]:
    """
    Select the first action of *watch* triggered by *event*

    An action matches when its selector is ``any`` or equals the event's
    primary kind label (case-insensitive). Scanning stops at the first
    match; a match whose command is blank yields no action.
    """
    label = primary_kind(event.kind)

    for action in watch.actions:
        selector = action.event_selector.lower()
        if selector != "any" and (label is None or selector != label):
            continue

        if not action.command_template.strip():
            logger.warning(
                f"Action for event '{action.event_selector}' on {watch.source or watch.root_path} "
                f"has an empty command, skipping"
            )
            return None
        return action

    return None


def render_command(command_template: str, path: Union[str, Path]) -> str:
    """
    Substitute every ``{}`` in *command_template* with *path*

    Raises:
        PathEncodingError: if the path is not valid text
        EmptyCommandError: if the resulting command is blank
    """
    path_text = os.fsdecode(path)
    try:
        path_text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PathEncodingError(path) from e

    command = command_template.replace(PLACEHOLDER, path_text)
    if not command.strip():
        raise EmptyCommandError(command_template, path)
    return command


async def execute(command_template: str, path: Union[str, Path]) -> ActionOutcome:
    """
    Run *command_template* for *path* through the platform shell

    Standard input is closed and both output streams are captured. The
    calling task waits for the process to exit; nothing is retried.

    Raises:
        PathEncodingError: if the path is not valid text
        EmptyCommandError: if the rendered command is blank
        ActionExecutionError: if the command cannot be spawned or exits non-zero
    """
    command = render_command(command_template, path)

    logger.info(f"Executing action for {os.fsdecode(path)}")
    logger.debug(f"Running command: {command}")

    with PerformanceLogger("execute_action", logger, {'command': command, 'path': str(path)}):
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ActionExecutionError(command, f"spawn failed: {e}") from e

        stdout, stderr = await process.communicate()

    stdout_text = stdout.decode(errors="replace")
    stderr_text = stderr.decode(errors="replace")

    if process.returncode != 0:
        if stderr_text.strip():
            logger.debug(f"Command stderr output: {stderr_text.strip()}")
        raise ActionExecutionError(
            command,
            f"exited with status {process.returncode}",
            returncode=process.returncode,
            stderr=stderr_text,
        )

    if stdout_text.strip():
        logger.debug(f"Command executed successfully: {stdout_text.strip()}")
    else:
        logger.debug("Command executed successfully (no output)")

    return ActionOutcome(
        success=True,
        stdout=stdout_text,
        stderr=stderr_text,
        status=process.returncode,
    )
