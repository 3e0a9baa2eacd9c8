from pydantic import BaseModel

from wallethistory.domain.enums import CacheEventKind, PollingMode


class PollingState(BaseModel):
    """Mutable cadence state for one wallet session."""

    interval_seconds: float
    mode: PollingMode = PollingMode.NORMAL
    has_pending_local: bool = False
    pending_since: float | None = None
    pending_hash: str | None = None


class CacheEvent(BaseModel):
    """Notification pushed to cache subscribers."""

    kind: CacheEventKind
    address: str
    hashes: list[str] = []
