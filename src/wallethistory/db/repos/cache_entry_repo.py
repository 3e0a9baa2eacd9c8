import json
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from wallethistory.db.models.cache_entry import CachedHistory
from wallethistory.domain.models.transaction import CacheEntry, Transaction


class CacheEntryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_row(self, chain: str, address: str) -> Optional[CachedHistory]:
        result = await self._session.execute(
            select(CachedHistory).where(CachedHistory.chain == chain, CachedHistory.address == address)
        )
        return result.scalar_one_or_none()

    async def load(self, chain: str, address: str) -> Optional[CacheEntry]:
        row = await self._get_row(chain, address)
        if row is None:
            return None
        transactions = tuple(Transaction.model_validate(item) for item in json.loads(row.payload))
        return CacheEntry(address=row.address, transactions=transactions, fetched_at=row.fetched_at)

    async def save(self, chain: str, entry: CacheEntry) -> None:
        payload = json.dumps([tx.model_dump(mode="json") for tx in entry.transactions])
        row = await self._get_row(chain, entry.address)
        if row is None:
            self._session.add(CachedHistory(
                chain=chain,
                address=entry.address,
                fetched_at=entry.fetched_at,
                payload=payload,
            ))
        else:
            row.fetched_at = entry.fetched_at
            row.payload = payload
        await self._session.flush()

    async def delete(self, chain: str, address: str | None = None) -> int:
        """Delete one address, or every row for the chain when `address` is None."""
        stmt = delete(CachedHistory).where(CachedHistory.chain == chain)
        if address is not None:
            stmt = stmt.where(CachedHistory.address == address)
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount or 0
