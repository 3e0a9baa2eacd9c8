"""PollingScheduler: Normal/Fast refresh loop driven by locally submitted transactions."""

import asyncio
import contextlib
import logging
import time
from typing import Awaitable, Callable

from wallethistory.domain.enums import PollingMode
from wallethistory.domain.models.polling import PollingState
from wallethistory.domain.models.transaction import CacheEntry

logger = logging.getLogger(__name__)

NORMAL_INTERVAL_SECONDS = 30.0
FAST_INTERVAL_SECONDS = 15.0
MAX_PENDING_SECONDS = 300.0


class PollingScheduler:
    """One timer per wallet session.

    Each tick runs the balance and history refresh concurrently, then re-evaluates the
    cadence: Fast reverts to Normal once the submitted hash is no longer pending in the
    cache, or once the pending window has elapsed.
    """

    def __init__(
        self,
        refresh_balance: Callable[[], Awaitable[object]],
        refresh_history: Callable[[], Awaitable[object]],
        observe_cache: Callable[[], CacheEntry | None],
        normal_interval: float = NORMAL_INTERVAL_SECONDS,
        fast_interval: float = FAST_INTERVAL_SECONDS,
        max_pending_seconds: float = MAX_PENDING_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._refresh_balance = refresh_balance
        self._refresh_history = refresh_history
        self._observe_cache = observe_cache
        self._normal_interval = normal_interval
        self._fast_interval = fast_interval
        self._max_pending = max_pending_seconds
        self._clock = clock
        self.state = PollingState(interval_seconds=normal_interval)
        self._task: asyncio.Task | None = None
        self._wake: asyncio.Event | None = None

    @property
    def mode(self) -> PollingMode:
        return self.state.mode

    @property
    def interval(self) -> float:
        return self.state.interval_seconds

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # --- State machine ---

    def mark_submitted(self, tx_hash: str) -> None:
        """Normal -> Fast, effective for the sleep already in progress."""
        self.state = PollingState(
            interval_seconds=self._fast_interval,
            mode=PollingMode.FAST,
            has_pending_local=True,
            pending_since=self._clock(),
            pending_hash=tx_hash,
        )
        logger.info("Polling mode FAST (%.0fs) while %s is pending", self._fast_interval, tx_hash)
        if self._wake is not None:
            self._wake.set()

    def evaluate(self) -> PollingMode:
        """Apply Fast -> Normal transitions against the current cache contents."""
        if self.state.mode is not PollingMode.FAST:
            return self.state.mode

        pending_since = self.state.pending_since or 0.0
        if self._clock() - pending_since > self._max_pending:
            logger.info("Pending window elapsed for %s, back to NORMAL", self.state.pending_hash)
            self.reset()
            return self.state.mode

        entry = self._observe_cache()
        if entry is None or self.state.pending_hash not in entry.pending_hashes():
            logger.info("%s no longer pending, back to NORMAL", self.state.pending_hash)
            self.reset()
        return self.state.mode

    def reset(self) -> None:
        self.state = PollingState(interval_seconds=self._normal_interval)

    # --- Loop ---

    async def tick(self) -> None:
        results = await asyncio.gather(
            self._refresh_balance(),
            self._refresh_history(),
            return_exceptions=True,
        )
        for name, result in zip(("balance", "history"), results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning("%s refresh failed, retrying next tick: %s", name, result)
        self.evaluate()

    async def _sleep_until_next_tick(self, started: float) -> None:
        loop = asyncio.get_running_loop()
        assert self._wake is not None
        while True:
            remaining = started + self.state.interval_seconds - loop.time()
            if remaining <= 0:
                return
            self._wake.clear()
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                return

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Polling tick failed")
            await self._sleep_until_next_tick(started)

    def start(self) -> None:
        if self.running:
            return
        self._wake = asyncio.Event()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.reset()
