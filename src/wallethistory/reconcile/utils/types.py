"""Core data types for the reconciliation engine."""

from typing import Any

from pydantic import BaseModel

from wallethistory.domain.enums import TxStatus


class TransferLeg(BaseModel):
    """One side of a value movement: an address debited (input) or credited (output)."""

    address: str | None = None  # None = unresolvable (coinbase, OP_RETURN, ...)
    value: int  # smallest unit
    denom: str


class TransferEvent(BaseModel):
    """A candidate transfer when one transaction emits several (fees, routing, the real send)."""

    sender: str | None = None
    recipient: str | None = None
    value: int
    denom: str
    primary: bool = False  # emitted by the transaction's primary message
    index: int = 0


class ExtractedTx(BaseModel):
    """Chain-agnostic view of one raw record, before wallet attribution."""

    hash: str
    status: TxStatus
    height: int | None = None
    timestamp: int | None = None  # embedded time, if the source has one
    inputs: list[TransferLeg] = []
    outputs: list[TransferLeg] = []
    events: list[TransferEvent] = []
    raw: Any = None
