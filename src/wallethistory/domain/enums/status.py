from enum import Enum


class TxStatus(str, Enum):
    """Confirmation status of a canonical transaction."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class Direction(str, Enum):
    """Which side of the transfer the wallet is on."""

    SENT = "SENT"
    RECEIVED = "RECEIVED"


class PollingMode(str, Enum):
    """Scheduler cadence."""

    NORMAL = "NORMAL"
    FAST = "FAST"


class HistoryState(str, Enum):
    """What the UI should show for a history request."""

    LOADING = "LOADING"
    READY = "READY"
    STALE = "STALE"
    UNAVAILABLE = "UNAVAILABLE"


class CacheEventKind(str, Enum):
    UPDATED = "UPDATED"
    PENDING_ADDED = "PENDING_ADDED"
    PENDING_RESOLVED = "PENDING_RESOLVED"
    CLEARED = "CLEARED"
