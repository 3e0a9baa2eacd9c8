"""Abstract base for chain adapters."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from wallethistory.domain.enums import Chain
from wallethistory.domain.models.transaction import SubmitResult
from wallethistory.exceptions import NetworkError, RateLimited

logger = logging.getLogger(__name__)

# Rebroadcasting the same signed payload is idempotent, reads are never retried in-tick
broadcast_retry = retry(
    retry=retry_if_exception_type((NetworkError, RateLimited)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)


class ChainAdapter(ABC):
    """Strategy interface for one ledger backend.

    Raw records are returned untouched; their shape is whatever the matching
    extractor in `wallethistory.reconcile.extractors` expects.
    """

    chain: Chain

    @abstractmethod
    async def fetch_raw_transactions(self, address: str, limit: int) -> list[dict[str, Any]]:
        """Return at most `limit` recent raw records for `address`."""

    @abstractmethod
    async def fetch_block_time(self, height: int) -> int:
        """Unix timestamp of block `height`. Raises NotFound if not indexed yet."""

    @abstractmethod
    async def fetch_balance(self, address: str) -> int:
        """Spendable balance in the chain's smallest unit."""

    @abstractmethod
    async def submit_transaction(self, params: dict[str, Any]) -> SubmitResult:
        """Broadcast an already-signed payload and return its hash."""
