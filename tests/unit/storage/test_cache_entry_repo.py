from wallethistory.db.repos.cache_entry_repo import CacheEntryRepo
from wallethistory.domain.enums import Chain, Direction, TxStatus
from wallethistory.domain.models.transaction import CacheEntry, Transaction
from wallethistory.history.store import CacheStore


def _entry(address="bc1qwallet", fetched_at=1700000000.0, hashes=("a", "b")):
    txs = tuple(
        Transaction(
            hash=h,
            direction=Direction.RECEIVED,
            counterparty="bc1qalice",
            amount=1000,
            decimals=8,
            denom="sat",
            status=TxStatus.CONFIRMED,
            timestamp=1699999000,
            height=800000,
            raw={"txid": h},
        )
        for h in hashes
    )
    return CacheEntry(address=address, transactions=txs, fetched_at=fetched_at)


class TestCacheEntryRepo:
    async def test_save_and_load(self, session):
        repo = CacheEntryRepo(session)
        await repo.save("btc", _entry())
        await session.commit()

        loaded = await repo.load("btc", "bc1qwallet")
        assert loaded == _entry()

    async def test_load_missing(self, session):
        assert await CacheEntryRepo(session).load("btc", "bc1qnobody") is None

    async def test_save_overwrites(self, session):
        repo = CacheEntryRepo(session)
        await repo.save("btc", _entry(hashes=("a",)))
        await repo.save("btc", _entry(fetched_at=1700000500.0, hashes=("c", "a")))
        await session.commit()

        loaded = await repo.load("btc", "bc1qwallet")
        assert loaded.fetched_at == 1700000500.0
        assert [tx.hash for tx in loaded.transactions] == ["c", "a"]

    async def test_keyed_by_chain_and_address(self, session):
        repo = CacheEntryRepo(session)
        await repo.save("btc", _entry())
        await repo.save("eth", _entry(hashes=("x",)))
        await session.commit()

        assert [tx.hash for tx in (await repo.load("eth", "bc1qwallet")).transactions] == ["x"]
        assert await repo.load("btc", "bc1qother") is None

    async def test_delete_one_and_all(self, session):
        repo = CacheEntryRepo(session)
        await repo.save("btc", _entry(address="a1"))
        await repo.save("btc", _entry(address="a2"))
        await repo.save("eth", _entry(address="a1"))
        await session.commit()

        assert await repo.delete("btc", "a1") == 1
        assert await repo.load("btc", "a2") is not None
        assert await repo.delete("btc") == 1
        assert await repo.load("eth", "a1") is not None


class TestCacheStore:
    async def test_round_trip_through_sessions(self, session_factory):
        store = CacheStore(session_factory)
        await store.save(Chain.BITCOIN, _entry())

        assert await store.load(Chain.BITCOIN, "bc1qwallet") == _entry()

        await store.delete(Chain.BITCOIN, "bc1qwallet")
        assert await store.load(Chain.BITCOIN, "bc1qwallet") is None
