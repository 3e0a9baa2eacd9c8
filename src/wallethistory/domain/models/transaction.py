"""Canonical, chain-agnostic transaction records and the cache entry that holds them."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from wallethistory.domain.enums import Direction, HistoryState, TxStatus

UNKNOWN_COUNTERPARTY = "Unknown"


class Transaction(BaseModel):
    """One displayable history row. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    hash: str
    direction: Direction
    counterparty: str = UNKNOWN_COUNTERPARTY
    amount: int = Field(ge=0)  # smallest unit
    decimals: int = 0
    denom: str = ""
    status: TxStatus
    timestamp: int | None = None  # Unix seconds
    height: int | None = None
    low_confidence: bool = False
    local: bool = False  # synthetic record inserted right after submission
    submitted_at: int | None = None
    raw: Any = None

    @property
    def is_pending(self) -> bool:
        return self.status is TxStatus.PENDING


class CacheEntry(BaseModel):
    """Address-scoped cached history, newest first."""

    model_config = ConfigDict(frozen=True)

    address: str
    transactions: tuple[Transaction, ...] = ()
    fetched_at: float

    def hashes(self) -> set[str]:
        return {tx.hash for tx in self.transactions}

    def pending_hashes(self) -> set[str]:
        return {tx.hash for tx in self.transactions if tx.is_pending}


class HistoryView(BaseModel):
    """What `get_display_history` hands to the UI."""

    address: str
    state: HistoryState
    transactions: list[Transaction] = []
    fetched_at: float | None = None
    error: str | None = None


class SubmitResult(BaseModel):
    hash: str
