"""WalletSession: explicit context for one active (chain, address).

Owns the adapter, reconciler, cache view and scheduler for the wallet shown on
screen. Built at wallet activation and torn down on switch or delete, so nothing
from a previous wallet can bleed into the next one.
"""

import asyncio
import contextlib
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from wallethistory.domain.enums import Chain, Direction, HistoryState, TxStatus, normalize_address
from wallethistory.domain.models.polling import CacheEvent
from wallethistory.domain.models.transaction import (
    UNKNOWN_COUNTERPARTY,
    CacheEntry,
    HistoryView,
    SubmitResult,
    Transaction,
)
from wallethistory.exceptions import AdapterError, NetworkError, SessionInactive
from wallethistory.history.cache import TransactionCache
from wallethistory.history.scheduler import (
    FAST_INTERVAL_SECONDS,
    MAX_PENDING_SECONDS,
    NORMAL_INTERVAL_SECONDS,
    PollingScheduler,
)
from wallethistory.history.store import CacheStore
from wallethistory.infra.blockchain.base import ChainAdapter
from wallethistory.reconcile.reconciler import EventReconciler

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WalletSession:
    def __init__(
        self,
        chain: Chain,
        address: str,
        adapter: ChainAdapter,
        reconciler: EventReconciler,
        cache: TransactionCache,
        store: CacheStore | None = None,
        history_limit: int = 25,
        request_timeout: float = 15.0,
        normal_interval: float = NORMAL_INTERVAL_SECONDS,
        fast_interval: float = FAST_INTERVAL_SECONDS,
        max_pending_seconds: float = MAX_PENDING_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.chain = chain
        self.address = normalize_address(chain, address)
        self._adapter = adapter
        self._reconciler = reconciler
        self._cache = cache
        self._store = store
        self._history_limit = history_limit
        self._timeout = request_timeout
        self._clock = clock

        self.balance: int | None = None
        self._active = False
        self._generation = 0
        self._last_error: str | None = None
        self._refresh_task: asyncio.Task | None = None

        self.scheduler = PollingScheduler(
            refresh_balance=self.refresh_balance,
            refresh_history=self._scheduled_history_refresh,
            observe_cache=lambda: self._cache.peek(self.address),
            normal_interval=normal_interval,
            fast_interval=fast_interval,
            max_pending_seconds=max_pending_seconds,
            clock=clock,
        )

    @property
    def active(self) -> bool:
        return self._active

    # --- Lifecycle ---

    async def activate(self, start_polling: bool = True) -> None:
        """Warm the cache from the persisted entry, then start polling."""
        if self._store is not None and self._cache.peek(self.address) is None:
            try:
                entry = await self._store.load(self.chain, self.address)
            except SQLAlchemyError:
                logger.exception("Could not load persisted history for %s", self.address)
                entry = None
            if entry is not None:
                self._cache.restore(entry)
                logger.info(
                    "Restored %d cached %s transactions for %s (fresh=%s)",
                    len(entry.transactions), self.chain.value, self.address,
                    not self._cache.is_stale(entry),
                )
        self._active = True
        if start_polling:
            self.scheduler.start()

    async def close(self, forget: bool = False) -> None:
        """Stop polling and drop in-flight work. `forget` also deletes the cached history."""
        self._active = False
        self._generation += 1
        await self.scheduler.stop()
        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if forget:
            self._cache.clear(self.address)
            if self._store is not None:
                await self._store.delete(self.chain, self.address)

    def _ensure_address(self, address: str) -> str:
        if not self._active:
            raise SessionInactive(f"{self.chain.value} session for {self.address} is closed")
        normalized = normalize_address(self.chain, address)
        if normalized != self.address:
            raise SessionInactive(f"{address} is not the active {self.chain.value} address")
        return normalized

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    async def _bounded(self, call: Awaitable[T], what: str) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"{what} timed out after {self._timeout:.0f}s") from e

    # --- Refresh ---

    async def refresh_history(self, force: bool = False) -> CacheEntry | None:
        """Fetch, reconcile and cache. Serves the cached entry when fresh unless forced.

        Returns None when the session moved on while the fetch was in flight.
        """
        if not force:
            entry = self._cache.get(self.address)
            if entry is not None:
                return entry

        generation = self._generation
        try:
            raw_txs = await self._bounded(
                self._adapter.fetch_raw_transactions(self.address, self._history_limit),
                "history fetch",
            )
        except AdapterError as e:
            if self._is_current(generation):
                self._last_error = str(e)
            logger.warning("History fetch for %s failed: %s", self.address, e)
            raise
        except Exception as e:
            if self._is_current(generation):
                self._last_error = f"Unexpected response: {e}"
            logger.exception("History fetch for %s returned an unusable answer", self.address)
            raise NetworkError(f"History fetch failed: {e}") from e

        transactions = await self._reconciler.reconcile(raw_txs, self.address)

        if not self._is_current(generation):
            logger.info("Discarding late history result for inactive %s", self.address)
            return None

        entry = self._cache.put(self.address, transactions)
        self._last_error = None
        await self._persist(entry)
        return entry

    async def _scheduled_history_refresh(self) -> CacheEntry | None:
        # A local pending transaction makes every tick a real fetch
        return await self.refresh_history(force=self.scheduler.state.has_pending_local)

    async def refresh_balance(self) -> int | None:
        generation = self._generation
        balance = await self._bounded(self._adapter.fetch_balance(self.address), "balance fetch")
        if not self._is_current(generation):
            return None
        self.balance = balance
        return balance

    def _trigger_background_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.create_task(self._background_refresh())

    async def _background_refresh(self) -> None:
        try:
            await self.refresh_history(force=True)
        except AdapterError:
            # Already recorded in _last_error; the view reports it
            pass

    async def _persist(self, entry: CacheEntry) -> None:
        if self._store is None:
            return
        try:
            await self._store.save(self.chain, entry)
        except SQLAlchemyError:
            logger.exception("Could not persist history for %s", self.address)

    # --- UI surface ---

    def get_display_history(self, address: str) -> HistoryView:
        """Never waits on the network. Stale or missing entries kick off a background refresh."""
        address = self._ensure_address(address)
        entry = self._cache.peek(address)

        if entry is not None and not self._cache.is_stale(entry):
            return HistoryView(
                address=address,
                state=HistoryState.READY,
                transactions=list(entry.transactions),
                fetched_at=entry.fetched_at,
            )

        self._trigger_background_refresh()

        if entry is not None:
            return HistoryView(
                address=address,
                state=HistoryState.STALE,
                transactions=list(entry.transactions),
                fetched_at=entry.fetched_at,
                error=self._last_error,
            )
        if self._last_error is not None:
            return HistoryView(address=address, state=HistoryState.UNAVAILABLE, error=self._last_error)
        return HistoryView(address=address, state=HistoryState.LOADING)

    async def on_submitted(
        self,
        address: str,
        tx_hash: str,
        submitted_tx: Transaction | dict[str, Any] | None = None,
    ) -> CacheEntry:
        """Record a just-broadcast transaction ahead of the next fetch and switch to fast polling."""
        address = self._ensure_address(address)
        pending = self._pending_record(tx_hash, submitted_tx)
        entry = self._cache.insert_pending(address, pending)
        self.scheduler.mark_submitted(pending.hash)
        await self._persist(entry)
        return entry

    async def submit(
        self,
        params: dict[str, Any],
        recipient: str | None = None,
        amount: int = 0,
    ) -> SubmitResult:
        """Broadcast through the adapter, then record the pending transaction."""
        self._ensure_address(self.address)
        result = await self._adapter.submit_transaction(params)
        if not self._active:
            # Broadcast already went out; the next session picks it up from the explorer
            logger.warning("Session for %s closed during broadcast of %s", self.address, result.hash)
            return result
        await self.on_submitted(self.address, result.hash, {"to": recipient, "amount": amount})
        return result

    def subscribe(self) -> asyncio.Queue[CacheEvent]:
        return self._cache.subscribe()

    def unsubscribe(self, queue: asyncio.Queue[CacheEvent]) -> None:
        self._cache.unsubscribe(queue)

    def _pending_record(self, tx_hash: str, submitted_tx: Transaction | dict[str, Any] | None) -> Transaction:
        now = int(self._clock())
        if isinstance(submitted_tx, Transaction):
            return submitted_tx.model_copy(update={"hash": tx_hash, "submitted_at": now})

        details = submitted_tx or {}
        return Transaction(
            hash=tx_hash,
            direction=Direction.SENT,
            counterparty=details.get("to") or UNKNOWN_COUNTERPARTY,
            amount=int(details.get("amount") or 0),
            decimals=self._reconciler.decimals,
            denom=self._reconciler.base_denom,
            status=TxStatus.PENDING,
            timestamp=now,
            submitted_at=now,
            raw=details or None,
        )
