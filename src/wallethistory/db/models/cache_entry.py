"""Persisted history cache, one row per (chain, address)."""

from sqlalchemy import Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wallethistory.db.session import Base, TimestampMixin


class CachedHistory(TimestampMixin, Base):
    """Last good CacheEntry for an address. Survives restarts; age is checked on load."""

    __tablename__ = "tx_cache_entries"
    __table_args__ = (UniqueConstraint("chain", "address", name="uq_tx_cache_entries_chain_address"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chain: Mapped[str] = mapped_column(String(16), index=True)  # chain symbol, e.g. "btc"
    address: Mapped[str] = mapped_column(String(128))
    fetched_at: Mapped[float] = mapped_column(Float)  # Unix epoch seconds
    payload: Mapped[str] = mapped_column(Text)  # JSON list of Transaction
