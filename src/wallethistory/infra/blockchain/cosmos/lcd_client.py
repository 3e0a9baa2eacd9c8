"""Cosmos SDK LCD (REST gateway) adapter."""

import logging
from typing import Any

from wallethistory.domain.enums import Chain
from wallethistory.domain.models.transaction import SubmitResult
from wallethistory.exceptions import InsufficientFunds, InvalidParams, NetworkError, NotFound
from wallethistory.infra.blockchain.base import ChainAdapter, broadcast_retry
from wallethistory.infra.http.rate_limited_client import RateLimitedClient, read_json
from wallethistory.reconcile.utils.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

# sdkerrors.ErrInsufficientFunds
_CODE_INSUFFICIENT_FUNDS = 5


class CosmosAdapter(ChainAdapter):
    chain = Chain.COSMOS

    def __init__(self, lcd_url: str, base_denom: str, http_client: RateLimitedClient) -> None:
        self._lcd_url = lcd_url.rstrip("/")
        self._base_denom = base_denom
        self._http = http_client

    def _url(self, path: str) -> str:
        return f"{self._lcd_url}{path}"

    async def _search(self, query: str, limit: int) -> list[dict]:
        """Search txs by event query. SDK >= 0.50 takes `query`, older gateways `events`."""
        params: dict[str, Any] = {
            "query": query,
            "pagination.limit": limit,
            "order_by": "ORDER_BY_DESC",
        }
        resp = await self._http.get(self._url("/cosmos/tx/v1beta1/txs"), params=params)
        if resp.status_code == 400:
            params.pop("query")
            params["events"] = query
            resp = await self._http.get(self._url("/cosmos/tx/v1beta1/txs"), params=params)
        if resp.status_code != 200:
            raise NetworkError(f"LCD tx search returned {resp.status_code}")
        return read_json(resp).get("tx_responses") or []

    async def fetch_raw_transactions(self, address: str, limit: int) -> list[dict[str, Any]]:
        """Sent and received transactions merged by hash, highest block first."""
        seen: set[str] = set()
        combined: list[dict] = []
        for query in (f"message.sender='{address}'", f"transfer.recipient='{address}'"):
            for tx in await self._search(query, limit):
                tx_hash = tx.get("txhash")
                if tx_hash in seen:
                    continue
                seen.add(tx_hash)
                combined.append(tx)

        combined.sort(key=lambda tx: int(tx.get("height") or 0), reverse=True)
        return combined[:limit]

    async def fetch_block_time(self, height: int) -> int:
        resp = await self._http.get(self._url(f"/cosmos/base/tendermint/v1beta1/blocks/{height}"))
        # Heights above the indexed tip come back as 400 / 404
        if resp.status_code in (400, 404):
            raise NotFound(f"Block {height} not available")
        if resp.status_code != 200:
            raise NetworkError(f"LCD block lookup returned {resp.status_code}")
        header = ((read_json(resp).get("block") or {}).get("header")) or {}
        timestamp = parse_timestamp(header.get("time"))
        if timestamp is None:
            raise NotFound(f"Block {height} has no header time")
        return timestamp

    async def fetch_balance(self, address: str) -> int:
        resp = await self._http.get(
            self._url(f"/cosmos/bank/v1beta1/balances/{address}/by_denom"),
            params={"denom": self._base_denom},
        )
        if resp.status_code != 200:
            raise NetworkError(f"LCD balance returned {resp.status_code}")
        balance = read_json(resp).get("balance") or {}
        return int(balance.get("amount", 0))

    @broadcast_retry
    async def submit_transaction(self, params: dict[str, Any]) -> SubmitResult:
        tx_bytes = params.get("raw")
        if not tx_bytes:
            raise InvalidParams("Missing signed payload 'raw'")
        resp = await self._http.post(
            self._url("/cosmos/tx/v1beta1/txs"),
            json={"tx_bytes": tx_bytes, "mode": "BROADCAST_MODE_SYNC"},
        )
        data = read_json(resp)
        if resp.status_code != 200:
            raise InvalidParams(data.get("message", f"Broadcast rejected ({resp.status_code})"))
        tx_response = data.get("tx_response") or {}
        code = int(tx_response.get("code", 0))
        if code == _CODE_INSUFFICIENT_FUNDS:
            raise InsufficientFunds(tx_response.get("raw_log", "insufficient funds"))
        if code != 0:
            raise InvalidParams(tx_response.get("raw_log", f"Broadcast failed with code {code}"))
        logger.info("Broadcast Cosmos transaction %s", tx_response.get("txhash"))
        return SubmitResult(hash=tx_response["txhash"])
