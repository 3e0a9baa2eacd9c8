"""TransactionCache: TTL, address isolation and the pending-merge protocol."""

from wallethistory.domain.enums import CacheEventKind, Direction, TxStatus
from wallethistory.domain.models.transaction import Transaction
from wallethistory.history.cache import SUBSCRIBER_QUEUE_SIZE, TransactionCache

A = "bc1qalice"
B = "bc1qbob"


def _tx(h, status=TxStatus.CONFIRMED, amount=100):
    return Transaction(hash=h, direction=Direction.SENT, amount=amount, status=status)


def _drain(queue):
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


class TestTtl:
    def test_fresh_hit(self, clock):
        cache = TransactionCache(clock=clock)
        cache.put(A, [_tx("1")])
        clock.advance(100)
        assert cache.get(A) is not None

    def test_exactly_ttl_is_fresh(self, clock):
        cache = TransactionCache(ttl_seconds=300, clock=clock)
        cache.put(A, [_tx("1")])
        clock.advance(300)
        assert cache.get(A) is not None
        clock.advance(1)
        assert cache.get(A) is None

    def test_peek_ignores_ttl(self, clock):
        cache = TransactionCache(clock=clock)
        cache.put(A, [_tx("1")])
        clock.advance(10_000)
        assert cache.get(A) is None
        assert cache.peek(A).transactions[0].hash == "1"


class TestIsolation:
    def test_other_address_misses(self, clock):
        cache = TransactionCache(clock=clock)
        cache.put(A, [_tx("1")])
        assert cache.get(B) is None
        assert cache.peek(B) is None

    def test_clear_only_affects_address(self, clock):
        cache = TransactionCache(clock=clock)
        cache.put(A, [_tx("1")])
        cache.put(B, [_tx("2")])
        cache.clear(A)
        assert cache.peek(A) is None
        assert cache.peek(B) is not None

    def test_clear_all(self, clock):
        cache = TransactionCache(clock=clock)
        cache.put(A, [_tx("1")])
        cache.put(B, [_tx("2")])
        cache.clear_all()
        assert cache.peek(A) is None and cache.peek(B) is None


class TestPending:
    def test_insert_keeps_fetched_at(self, clock):
        cache = TransactionCache(clock=clock)
        first = cache.put(A, [_tx("1")])
        clock.advance(50)
        entry = cache.insert_pending(A, _tx("p", status=TxStatus.CONFIRMED))

        assert entry.fetched_at == first.fetched_at
        assert entry.transactions[0].hash == "p"
        assert entry.transactions[0].status == TxStatus.PENDING
        assert entry.transactions[0].local
        assert entry.transactions[0].submitted_at == int(clock.now)

    def test_insert_creates_entry(self, clock):
        cache = TransactionCache(clock=clock)
        entry = cache.insert_pending(A, _tx("p"))
        assert entry.fetched_at == clock.now
        assert entry.hashes() == {"p"}

    def test_insert_same_hash_replaces(self, clock):
        cache = TransactionCache(clock=clock)
        cache.insert_pending(A, _tx("p", amount=1))
        entry = cache.insert_pending(A, _tx("p"))
        assert [tx.hash for tx in entry.transactions] == ["p"]

    def test_fetch_supersedes_pending(self, clock):
        cache = TransactionCache(clock=clock)
        cache.insert_pending(A, _tx("p"))
        entry = cache.put(A, [_tx("p", status=TxStatus.CONFIRMED), _tx("1")])

        assert [tx.hash for tx in entry.transactions] == ["p", "1"]
        assert entry.transactions[0].status == TxStatus.CONFIRMED
        assert not entry.transactions[0].local

    def test_pending_survives_fetch_without_it(self, clock):
        cache = TransactionCache(clock=clock)
        cache.put(A, [_tx("1")])
        cache.insert_pending(A, _tx("p"))
        clock.advance(30)
        entry = cache.put(A, [_tx("1")])

        assert [tx.hash for tx in entry.transactions] == ["p", "1"]
        assert entry.pending_hashes() == {"p"}

    def test_pending_expires(self, clock):
        cache = TransactionCache(max_pending_seconds=300, clock=clock)
        cache.insert_pending(A, _tx("p"))
        clock.advance(301)
        entry = cache.put(A, [_tx("1")])
        assert entry.hashes() == {"1"}


class TestNotifications:
    def test_event_kinds(self, clock):
        cache = TransactionCache(clock=clock)
        queue = cache.subscribe()

        cache.insert_pending(A, _tx("p"))
        cache.put(A, [_tx("p")])
        cache.clear(A)

        events = _drain(queue)
        assert [e.kind for e in events] == [
            CacheEventKind.PENDING_ADDED,
            CacheEventKind.UPDATED,
            CacheEventKind.PENDING_RESOLVED,
            CacheEventKind.CLEARED,
        ]
        assert events[2].hashes == ["p"]

    def test_still_pending_not_resolved(self, clock):
        cache = TransactionCache(clock=clock)
        cache.insert_pending(A, _tx("p"))
        queue = cache.subscribe()
        cache.put(A, [_tx("p", status=TxStatus.PENDING)])

        assert [e.kind for e in _drain(queue)] == [CacheEventKind.UPDATED]

    def test_slow_reader_keeps_newest_events(self, clock):
        cache = TransactionCache(clock=clock)
        queue = cache.subscribe()
        for i in range(SUBSCRIBER_QUEUE_SIZE + 5):
            cache.insert_pending(A, _tx(f"p{i}"))

        events = _drain(queue)
        assert len(events) == SUBSCRIBER_QUEUE_SIZE
        assert events[0].hashes == ["p5"]
        assert events[-1].hashes == [f"p{SUBSCRIBER_QUEUE_SIZE + 4}"]

    def test_unsubscribe(self, clock):
        cache = TransactionCache(clock=clock)
        queue = cache.subscribe()
        cache.unsubscribe(queue)
        cache.put(A, [])
        assert queue.empty()
