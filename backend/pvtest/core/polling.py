"""
Background polling of bench instruments.

A `DevicePoller` owns an asyncio task that reads a snapshot of all device
readings at a fixed interval and puts it on a bounded queue. Recording is
decoupled from polling: `drain_into` takes whatever has accumulated and
hands it to the lifecycle manager. When the queue is full the oldest
snapshot is discarded.
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional
import asyncio
import logging

from pvtest.config import get_settings

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]
SnapshotReader = Callable[[], Awaitable[Optional[Snapshot]]]


class DevicePoller:
    """
    Periodic device reader feeding a snapshot queue.

    Args:
        reader: Coroutine function returning a dict of readings
                (voltage, current, temperature, ...) or None
        interval: Seconds between reads
        maxsize: Queue capacity
    """

    def __init__(self, reader: SnapshotReader, interval: float = 1.0, maxsize: int = 100):
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        if maxsize <= 0:
            raise ValueError("Queue size must be positive")
        self.reader = reader
        self.interval = interval
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, reader: SnapshotReader, settings=None) -> "DevicePoller":
        """Build a poller using the configured interval and queue size."""
        settings = settings or get_settings()
        return cls(
            reader,
            interval=settings.poll_interval_seconds,
            maxsize=settings.poll_queue_size
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start the polling task on the running event loop."""
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Device polling started (every {self.interval}s)")
        return self._task

    async def stop(self):
        """Cancel the polling task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Device polling stopped")

    async def poll_once(self) -> Optional[Snapshot]:
        """Read one snapshot and enqueue it."""
        snapshot = await self.reader()
        if snapshot is None:
            return None
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
            logger.warning(f"Snapshot queue full, dropped oldest ({self.dropped} total)")
        self.queue.put_nowait(snapshot)
        return snapshot

    async def _run(self):
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Device read failed: {e}")
            await asyncio.sleep(self.interval)

    def pending(self) -> List[Snapshot]:
        """Remove and return every queued snapshot."""
        snapshots = []
        while not self.queue.empty():
            snapshots.append(self.queue.get_nowait())
        return snapshots

    def drain_into(self, manager, experiment_id: int) -> int:
        """
        Record all queued snapshots as samples of a running experiment.

        Returns:
            Number of samples stored
        """
        snapshots = self.pending()
        if not snapshots:
            return 0
        rows = manager.record_data_points(experiment_id, snapshots)
        return len(rows)
