"""Esplora / mempool.space REST adapter for UTXO chains."""

import logging
from typing import Any

from wallethistory.domain.enums import Chain
from wallethistory.domain.models.transaction import SubmitResult
from wallethistory.exceptions import InsufficientFunds, InvalidParams, NetworkError, NotFound
from wallethistory.infra.blockchain.base import ChainAdapter, broadcast_retry
from wallethistory.infra.http.rate_limited_client import RateLimitedClient, read_json

logger = logging.getLogger(__name__)

_SPENT_MARKERS = ("insufficient", "missingorspent", "missing-inputs")


class MempoolAdapter(ChainAdapter):
    chain = Chain.BITCOIN

    def __init__(self, base_url: str, http_client: RateLimitedClient) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_client

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def fetch_raw_transactions(self, address: str, limit: int) -> list[dict[str, Any]]:
        """Unconfirmed transactions first, then confirmed ones newest-first."""
        resp = await self._http.get(self._url(f"/address/{address}/txs"))
        if resp.status_code != 200:
            raise NetworkError(f"Esplora /address/txs returned {resp.status_code}: {resp.text}")
        data = read_json(resp)
        if not isinstance(data, list):
            return []
        return data[:limit]

    async def fetch_block_time(self, height: int) -> int:
        resp = await self._http.get(self._url(f"/block-height/{height}"))
        if resp.status_code == 404:
            raise NotFound(f"Block {height} not found")
        if resp.status_code != 200:
            raise NetworkError(f"Esplora /block-height returned {resp.status_code}")
        block_hash = resp.text.strip()

        resp = await self._http.get(self._url(f"/block/{block_hash}"))
        if resp.status_code == 404:
            raise NotFound(f"Block {block_hash} not found")
        if resp.status_code != 200:
            raise NetworkError(f"Esplora /block returned {resp.status_code}")
        return int(read_json(resp)["timestamp"])

    async def fetch_balance(self, address: str) -> int:
        resp = await self._http.get(self._url(f"/address/{address}"))
        if resp.status_code != 200:
            raise NetworkError(f"Esplora /address returned {resp.status_code}")
        data = read_json(resp)
        total = 0
        for key in ("chain_stats", "mempool_stats"):
            stats = data.get(key) or {}
            total += int(stats.get("funded_txo_sum", 0)) - int(stats.get("spent_txo_sum", 0))
        return total

    @broadcast_retry
    async def submit_transaction(self, params: dict[str, Any]) -> SubmitResult:
        raw_hex = params.get("raw")
        if not raw_hex:
            raise InvalidParams("Missing signed payload 'raw'")
        resp = await self._http.post(self._url("/tx"), content=raw_hex)
        body = resp.text.strip()
        if resp.status_code != 200:
            if any(marker in body.lower() for marker in _SPENT_MARKERS):
                raise InsufficientFunds(body)
            raise InvalidParams(body or f"Broadcast rejected ({resp.status_code})")
        logger.info("Broadcast UTXO transaction %s", body)
        return SubmitResult(hash=body)
