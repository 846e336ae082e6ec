# watchrun/watchdog/orchestrator.py

"""
Dispatch loop: debounced batches in, shell commands out
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Set

from ..exceptions import ActionError
from ..utils.logger import log_exception
from . import actions
from .actions import match_action
from .debounce import CHANNEL_CLOSED, DebounceResult
from .events import WatchEvent
from .patterns import keep
from .registry import ActionSpec, WatchRegistry, WatchSpec
from .router import route

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Consumes batches from the channel and fans each event through
    routing, filtering, action matching and execution

    Every event runs as its own task, and every (action, path) pair as a
    child of that event's task group. Children catch and log their own
    failures, so nothing propagates to siblings, other events or the loop.
    """

    def __init__(self, registry: WatchRegistry):
        self.registry = registry
        self._in_flight: Set[asyncio.Task] = set()
        self.stats = {
            'batches_received': 0,
            'batch_errors': 0,
            'events_received': 0,
            'events_dispatched': 0,
            'actions_succeeded': 0,
            'actions_failed': 0,
        }

    async def run(self, channel: asyncio.Queue) -> bool:
        """
        Consume batches until the source closes or the task is cancelled

        Returns:
            False when the batch source closed (an anomaly)
        """
        logger.info("Starting dispatch loop")
        while True:
            batch = await channel.get()
            if batch is CHANNEL_CLOSED:
                logger.warning("Batch source closed unexpectedly")
                return False
            self.handle_batch(batch)

    def handle_batch(self, batch: DebounceResult):
        """Log an error batch, or start one task per event of an event batch"""
        self.stats['batches_received'] += 1

        if not batch.ok:
            for error in batch.errors:
                self.stats['batch_errors'] += 1
                logger.error(f"Debouncer error: {error}")
            return

        for event in batch.events:
            self.stats['events_received'] += 1
            task = asyncio.create_task(self.process_event(event), name=f"event:{event}")
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def process_event(self, event: WatchEvent):
        """Route, filter and match *event*, then run the matched actions"""
        logger.debug(f"Processing event {event}")
        dispatched = False
        try:
            async with asyncio.TaskGroup() as group:
                for watch in route(event, self.registry):
                    if not keep(watch.filter, event):
                        logger.debug(f"Event filtered out for {watch.source or watch.root_path}")
                        continue

                    action = match_action(watch, event)
                    if action is None:
                        continue

                    if not dispatched:
                        dispatched = True
                        self.stats['events_dispatched'] += 1
                    for path in event.paths:
                        group.create_task(self._run_action(watch, action, path))
        except Exception as e:
            # Children never raise; this only covers routing bugs
            logger.exception(f"Error processing event {event}: {e}")

    async def _run_action(self, watch: WatchSpec, action: ActionSpec, path: Path):
        try:
            outcome = await actions.execute(action.command_template, path)
        except ActionError as e:
            self.stats['actions_failed'] += 1
            logger.error(
                f"Action execution failed for {path} (watch {watch.source or watch.root_path}): {e}",
                extra={'context': {
                    'command': getattr(e, 'command', action.command_template),
                    'path': str(path),
                }},
            )
            stderr = getattr(e, 'stderr', '')
            if stderr and stderr.strip():
                logger.debug(f"stderr: {stderr.strip()}")
        except Exception as e:
            self.stats['actions_failed'] += 1
            log_exception(logger, e, f"Unexpected error running action for {path}",
                          extra={'command': action.command_template, 'path': str(path)})
        else:
            self.stats['actions_succeeded'] += 1
            logger.debug(f"Action for {path} exited with status {outcome.status}")

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def drain(self, timeout: float) -> int:
        """
        Give in-flight events up to *timeout* seconds to finish

        Unfinished tasks are left alone rather than cancelled, so running
        commands are not interrupted. Returns how many were still running.
        """
        pending: Iterable[asyncio.Task] = list(self._in_flight)
        if not pending:
            return 0
        logger.info(f"Waiting up to {timeout}s for {len(pending)} in-flight events")
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        if still_running:
            logger.warning(f"{len(still_running)} events still running at shutdown")
        return len(still_running)

    def get_stats(self) -> Dict[str, Any]:
        return {**self.stats, 'in_flight': self.in_flight}
