"""
Browser Pool
============

Bounded checkout/checkin of browser instances.

- Instances are created lazily, up to ``capacity``; the slot list only grows
  until ``close_all``.
- Claiming an idle instance is a synchronous check-and-mark step, so two
  tasks can never receive the same instance.
- Launches are single-flight: one launch runs at a time, and callers that
  arrive while it is running share its outcome instead of starting another.
- Reused instances are probed first; a stale one is relaunched in place.
- When every instance is busy, callers wait for a release signal (with a
  coarse poll as fallback). Waiters are not served in FIFO order.
"""

import asyncio
import itertools
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional, Set

from playwright.async_api import Playwright, async_playwright

from src.config.logging import get_logger
from src.config.settings import Settings, get_settings
from src.core.errors import HealthCheckFailure, LaunchFailure
from src.core.rendering.engine import RenderEngineInstance

logger = get_logger(__name__)


class BrowserPool:
    """Browser instance pool for efficient resource management."""

    def __init__(self, capacity: Optional[int] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.capacity = capacity if capacity is not None else self.settings.browser_pool_size
        if self.capacity < 1:
            raise ValueError("Browser pool capacity must be a positive integer")

        self._slots: List[RenderEngineInstance] = []
        self._busy: Set[RenderEngineInstance] = set()
        self._playwright: Optional[Playwright] = None
        self._launch_lock = asyncio.Lock()
        self._pending_launch: Optional["asyncio.Future[RenderEngineInstance]"] = None
        self._released = asyncio.Event()
        self._ids = itertools.count(1)
        self.launch_count = 0
        self.logger: Any = logger.bind(component="browser_pool", capacity=self.capacity)

    @property
    def size(self) -> int:
        """Number of instances created so far."""
        return len(self._slots)

    @property
    def busy_count(self) -> int:
        return len(self._busy)

    @property
    def idle_count(self) -> int:
        return len(self._slots) - len(self._busy)

    def is_busy(self, instance: RenderEngineInstance) -> bool:
        return instance in self._busy

    def stats(self) -> Dict[str, Any]:
        """Snapshot of pool usage."""
        return {
            "capacity": self.capacity,
            "size": self.size,
            "busy": self.busy_count,
            "idle": self.idle_count,
            "launches": self.launch_count,
            "launch_in_flight": self._pending_launch is not None,
        }

    async def acquire(self) -> RenderEngineInstance:
        """
        Check out a browser instance for exclusive use.

        Returns:
            A ready instance, marked busy until ``release`` is called

        Raises:
            LaunchFailure: If the launch this caller waited on failed
        """
        joined_launch = False

        while True:
            instance = self._claim_idle()
            if instance is not None:
                try:
                    await self._ensure_healthy(instance)
                except BaseException:
                    self.release(instance)
                    raise
                self.logger.debug(
                    "Browser instance acquired", instance=instance.instance_id, busy=self.busy_count
                )
                return instance

            # A caller that already shared a launch waits for a release rather
            # than starting another launch, unless nothing is checked out.
            can_grow = len(self._slots) < self.capacity and not (joined_launch and self._busy)
            if can_grow:
                joined_launch = True
                await self._join_launch()
                continue

            await self._wait_for_release()

    def release(self, instance: RenderEngineInstance) -> None:
        """Return an instance to the pool. Safe to call more than once."""
        if instance in self._busy:
            self._busy.discard(instance)
            self.logger.debug(
                "Browser instance released", instance=instance.instance_id, busy=self.busy_count
            )
        self._released.set()

    @asynccontextmanager
    async def checkout(self) -> AsyncGenerator[RenderEngineInstance, None]:
        """Acquire an instance for the duration of the block."""
        instance = await self.acquire()
        try:
            yield instance
        finally:
            self.release(instance)

    async def close_all(self) -> None:
        """Terminate every instance and reset the pool to empty."""
        slots, self._slots = self._slots, []
        self._busy.clear()

        for instance in slots:
            await instance.close()

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.logger.error("Error stopping Playwright driver", error=str(e))
            self._playwright = None

        self._released.set()
        self.logger.info("Browser pool closed", closed_instances=len(slots))

    def _claim_idle(self) -> Optional[RenderEngineInstance]:
        # No await in here: the check and the mark happen in one step.
        for instance in self._slots:
            if instance not in self._busy:
                self._busy.add(instance)
                return instance
        return None

    async def _join_launch(self) -> None:
        if self._pending_launch is None:
            self._pending_launch = asyncio.ensure_future(self._grow())
            self._pending_launch.add_done_callback(self._launch_finished)
        await asyncio.shield(self._pending_launch)

    def _launch_finished(self, future: "asyncio.Future[RenderEngineInstance]") -> None:
        if self._pending_launch is future:
            self._pending_launch = None
        if not future.cancelled() and future.exception() is not None:
            self.logger.warning("Pool launch attempt failed", error=str(future.exception()))

    async def _grow(self) -> RenderEngineInstance:
        instance = RenderEngineInstance(next(self._ids), self.settings)
        await self._launch(instance)
        self._slots.append(instance)
        self._released.set()
        self.logger.info("Created new browser instance", pool_size=self.size)
        return instance

    async def _launch(self, instance: RenderEngineInstance) -> None:
        async with self._launch_lock:
            playwright = await self._ensure_playwright()
            self.launch_count += 1
            await instance.launch(playwright)

    async def _ensure_playwright(self) -> Playwright:
        if self._playwright is None:
            try:
                self._playwright = await async_playwright().start()
            except Exception as e:
                raise LaunchFailure(f"Playwright driver failed to start: {e}") from e
        return self._playwright

    async def _ensure_healthy(self, instance: RenderEngineInstance) -> None:
        try:
            await instance.verify()
        except HealthCheckFailure as e:
            self.logger.warning(
                "Relaunching stale browser instance", instance=instance.instance_id, reason=str(e)
            )
            await instance.demote()
            await self._launch(instance)

    async def _wait_for_release(self) -> None:
        self._released.clear()
        try:
            await asyncio.wait_for(self._released.wait(), timeout=self.settings.pool_poll_interval)
        except asyncio.TimeoutError:
            pass
