from typing import Any, Optional

from pydantic import BaseModel, field_validator

from wallethistory.domain.enums import Chain, Direction, HistoryState, PollingMode, TxStatus


class SessionCreate(BaseModel):
    chain: Chain
    address: str

    @field_validator("address")
    @classmethod
    def strip_address(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("address must not be empty")
        return v


class SessionResponse(BaseModel):
    chain: Chain
    address: str
    mode: PollingMode
    interval_seconds: float
    pending_hash: Optional[str] = None
    balance: Optional[int] = None


class TransactionResponse(BaseModel):
    hash: str
    direction: Direction
    counterparty: str
    amount: int
    decimals: int
    denom: str
    status: TxStatus
    timestamp: Optional[int] = None
    height: Optional[int] = None
    low_confidence: bool = False
    local: bool = False

    model_config = {"from_attributes": True}


class HistoryResponse(BaseModel):
    address: str
    state: HistoryState
    transactions: list[TransactionResponse]
    fetched_at: Optional[float] = None
    error: Optional[str] = None

    model_config = {"from_attributes": True}


class PendingCreate(BaseModel):
    """A transaction the wallet just broadcast by other means."""

    hash: str
    address: Optional[str] = None
    to: Optional[str] = None
    amount: int = 0

    @field_validator("amount")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("amount must be >= 0")
        return v


class BroadcastCreate(BaseModel):
    """Already-signed payload in the adapter's format (e.g. {"raw": "0x..."})."""

    params: dict[str, Any]
    to: Optional[str] = None
    amount: int = 0


class BroadcastResponse(BaseModel):
    hash: str
