"""CacheStore: write-through persistence of cache entries keyed by (chain symbol, address)."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallethistory.db.repos.cache_entry_repo import CacheEntryRepo
from wallethistory.domain.enums import Chain
from wallethistory.domain.models.transaction import CacheEntry

logger = logging.getLogger(__name__)


class CacheStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self, chain: Chain, address: str) -> CacheEntry | None:
        async with self._session_factory() as session:
            return await CacheEntryRepo(session).load(chain.value, address)

    async def save(self, chain: Chain, entry: CacheEntry) -> None:
        async with self._session_factory() as session:
            await CacheEntryRepo(session).save(chain.value, entry)
            await session.commit()

    async def delete(self, chain: Chain, address: str | None = None) -> None:
        async with self._session_factory() as session:
            count = await CacheEntryRepo(session).delete(chain.value, address)
            await session.commit()
        logger.info("Deleted %d persisted cache entries for %s", count, chain.value)
