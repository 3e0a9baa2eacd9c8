"""TransactionCache: address-scoped history store with TTL and pending-merge protocol."""

import asyncio
import logging
import time
from typing import Callable

from wallethistory.domain.enums import CacheEventKind, TxStatus
from wallethistory.domain.models.polling import CacheEvent
from wallethistory.domain.models.transaction import CacheEntry, Transaction

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_PENDING_SECONDS = 300
SUBSCRIBER_QUEUE_SIZE = 100


class TransactionCache:
    """In-memory cache for one chain. Entries are frozen and only ever replaced whole.

    A hit needs both an exact address match and `now - fetched_at <= ttl`.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_pending_seconds: float = DEFAULT_MAX_PENDING_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_pending = max_pending_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._subscribers: list[asyncio.Queue[CacheEvent]] = []

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def now(self) -> float:
        return self._clock()

    # --- Reads ---

    def peek(self, address: str) -> CacheEntry | None:
        """Entry for `address` regardless of age."""
        entry = self._entries.get(address)
        if entry is None or entry.address != address:
            return None
        return entry

    def is_stale(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.fetched_at > self._ttl

    def get(self, address: str) -> CacheEntry | None:
        entry = self.peek(address)
        if entry is None or self.is_stale(entry):
            return None
        return entry

    # --- Writes ---

    def put(self, address: str, transactions: list[Transaction]) -> CacheEntry:
        """Replace the entry with a fresh fetch, carrying over unresolved local pending records."""
        now = self._clock()
        fresh_by_hash = {tx.hash: tx for tx in transactions}
        carried: list[Transaction] = []
        resolved: list[str] = []

        previous = self.peek(address)
        if previous is not None:
            for tx in previous.transactions:
                if not tx.local:
                    continue
                fresh = fresh_by_hash.get(tx.hash)
                if fresh is not None:
                    if fresh.status is not TxStatus.PENDING:
                        resolved.append(tx.hash)
                    continue
                if self._pending_expired(tx, now):
                    logger.info("Dropping pending %s for %s: no confirmation after %ds", tx.hash, address, self._max_pending)
                    resolved.append(tx.hash)
                    continue
                carried.append(tx)

        fresh_list: list[Transaction] = []
        seen: set[str] = set()
        for tx in transactions:
            if tx.hash not in seen:
                seen.add(tx.hash)
                fresh_list.append(tx)

        entry = CacheEntry(address=address, transactions=tuple(carried + fresh_list), fetched_at=now)
        self._entries[address] = entry
        self._publish(CacheEvent(kind=CacheEventKind.UPDATED, address=address, hashes=[tx.hash for tx in entry.transactions]))
        if resolved:
            self._publish(CacheEvent(kind=CacheEventKind.PENDING_RESOLVED, address=address, hashes=resolved))
        return entry

    def insert_pending(self, address: str, transaction: Transaction) -> CacheEntry:
        """Prepend a just-submitted transaction without touching `fetched_at`."""
        now = self._clock()
        pending = transaction.model_copy(update={
            "status": TxStatus.PENDING,
            "local": True,
            "submitted_at": transaction.submitted_at or int(now),
        })

        previous = self.peek(address)
        if previous is None:
            entry = CacheEntry(address=address, transactions=(pending,), fetched_at=now)
        else:
            rest = tuple(tx for tx in previous.transactions if tx.hash != pending.hash)
            entry = CacheEntry(address=address, transactions=(pending, *rest), fetched_at=previous.fetched_at)

        self._entries[address] = entry
        self._publish(CacheEvent(kind=CacheEventKind.PENDING_ADDED, address=address, hashes=[pending.hash]))
        return entry

    def restore(self, entry: CacheEntry) -> None:
        """Load a persisted entry as-is. An old `fetched_at` simply makes it a cold cache."""
        self._entries[entry.address] = entry

    def clear(self, address: str) -> None:
        if self._entries.pop(address, None) is not None:
            self._publish(CacheEvent(kind=CacheEventKind.CLEARED, address=address))

    def clear_all(self) -> None:
        for address in list(self._entries):
            self.clear(address)

    def _pending_expired(self, tx: Transaction, now: float) -> bool:
        return tx.submitted_at is not None and now - tx.submitted_at > self._max_pending

    # --- Notifications ---

    def subscribe(self) -> asyncio.Queue[CacheEvent]:
        queue: asyncio.Queue[CacheEvent] = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[CacheEvent]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self, event: CacheEvent) -> None:
        for queue in self._subscribers:
            if queue.full():
                # Slow reader: drop its oldest event
                queue.get_nowait()
            queue.put_nowait(event)
