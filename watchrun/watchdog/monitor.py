# watchrun/watchdog/monitor.py

"""
Main file system monitor for watchrun
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from ..exceptions import DebounceError, WatchSetupError
from ..utils.config import Config
from .debounce import EventDebouncer
from .handlers import DebouncingEventHandler
from .orchestrator import Orchestrator
from .registry import WatchRegistry
from .watcher import WatcherBuilder, WatcherHandle

logger = logging.getLogger(__name__)

# Capacity of the channel between the debouncer and the dispatch loop
CHANNEL_CAPACITY = 100


class FileMonitor:
    """
    Wires the observer, debouncer and orchestrator together and runs
    them until a stop is requested
    """

    def __init__(self, config: Config,
                 registry: Optional[WatchRegistry] = None,
                 observer_factory: Callable[[], BaseObserver] = Observer):
        """
        Initialize file monitor

        Args:
            config: Loaded configuration
            registry: Watches to dispatch against (built from config if omitted)
            observer_factory: Creates the watchdog observer
        """
        self.config = config
        self.registry = registry if registry is not None else WatchRegistry.from_config(config)
        self.debouncer = EventDebouncer(debounce_time=config.debounce_time)
        self.event_handler = DebouncingEventHandler(self.debouncer)
        self.orchestrator = Orchestrator(self.registry)
        self.channel: Optional[asyncio.Queue] = None
        self.watcher: Optional[WatcherHandle] = None
        self._observer_factory = observer_factory
        self._stop_requested: Optional[asyncio.Event] = None

        logger.info(f"FileMonitor initialized with {len(self.registry)} watches")

    def setup_watches(self) -> WatcherHandle:
        """Register every watch with a fresh observer; failures skip that watch"""
        builder = WatcherBuilder(self.event_handler, observer_factory=self._observer_factory)
        for watch in self.registry:
            try:
                registration = builder.add(watch)
            except WatchSetupError as e:
                logger.error(f"{e}; skipping this entry")
                continue
            logger.info(
                f"Started watching {watch.root_path} "
                f"(recursive: {registration.recursive}, via {registration.scheduled_path})"
            )
        return builder.build()

    def request_stop(self):
        """Stop accepting new batches; safe to call from a signal handler"""
        if self._stop_requested is not None:
            self._stop_requested.set()

    async def run(self) -> bool:
        """
        Run until ``request_stop`` is called or the batch source closes

        Returns:
            False if no watch could be registered
        """
        self._stop_requested = asyncio.Event()
        self.channel = asyncio.Queue(maxsize=CHANNEL_CAPACITY)
        self.watcher = self.setup_watches()

        if not self.watcher.registrations:
            logger.warning("No valid watch paths configured. Exiting.")
            return False

        self.watcher.start()
        debouncer_task = asyncio.create_task(self._run_debouncer(), name="debouncer")
        dispatch_task = asyncio.create_task(self.orchestrator.run(self.channel), name="dispatch")
        health_task = asyncio.create_task(self._watch_observer(), name="observer-health")
        stop_task = asyncio.create_task(self._stop_requested.wait(), name="stop")

        logger.info("File system monitor started. Press Ctrl+C to stop.")

        try:
            done, _ = await asyncio.wait(
                {dispatch_task, stop_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if stop_task in done:
                logger.info("Stop requested. Shutting down...")
            else:
                logger.warning("Event processor task completed unexpectedly.")
        finally:
            await self._shutdown(debouncer_task, dispatch_task, health_task, stop_task)

        return True

    async def _run_debouncer(self):
        try:
            await self.debouncer.run(self.channel)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Debouncer failed: {e}")
            await self.debouncer.close(self.channel)

    async def _watch_observer(self, interval: float = 1.0):
        """Report a dead observer thread once as a debounce error"""
        while self.watcher.is_alive():
            await asyncio.sleep(interval)
        if self.watcher.is_watching:
            self.debouncer.add_error(DebounceError("Notification observer thread stopped"))

    async def _shutdown(self, *tasks: asyncio.Task):
        self.debouncer.stop()
        if self.watcher:
            await asyncio.to_thread(self.watcher.stop)

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        await self.orchestrator.drain(self.config.shutdown_timeout)
        logger.info(f"Dispatch statistics: {self.orchestrator.get_stats()}")
        logger.info("Watcher stopped.")

    def get_status(self) -> Dict[str, Any]:
        """Get monitor status"""
        return {
            'watches': [str(w.root_path) for w in self.registry],
            'is_watching': bool(self.watcher and self.watcher.is_watching),
            'debounce_time': self.debouncer.debounce_time,
            'handler': self.event_handler.get_stats(),
            'debouncer': self.debouncer.get_stats(),
            'orchestrator': self.orchestrator.get_stats(),
        }
