from wallethistory.domain.enums.chain import Chain, ChainFamily, normalize_address
from wallethistory.domain.enums.status import (
    CacheEventKind,
    Direction,
    HistoryState,
    PollingMode,
    TxStatus,
)

__all__ = [
    "CacheEventKind",
    "Chain",
    "ChainFamily",
    "Direction",
    "HistoryState",
    "PollingMode",
    "TxStatus",
    "normalize_address",
]
