"""Etherscan v2 unified API adapter for all EVM chains."""

import logging
from typing import Any

from wallethistory.domain.enums import Chain
from wallethistory.domain.models.transaction import SubmitResult
from wallethistory.exceptions import InsufficientFunds, InvalidParams, NetworkError, NotFound, RateLimited
from wallethistory.infra.blockchain.base import ChainAdapter, broadcast_retry
from wallethistory.infra.http.rate_limited_client import RateLimitedClient, read_json

logger = logging.getLogger(__name__)

# Etherscan v2 uses a single base URL + chainid param
BASE_URL = "https://api.etherscan.io/v2/api"

CHAIN_IDS: dict[str, int] = {
    "ethereum": 1,
    "sepolia": 11155111,
    "arbitrum": 42161,
    "optimism": 10,
    "polygon": 137,
    "base": 8453,
    "bsc": 56,
    "avalanche": 43114,
}


class EtherscanAdapter(ChainAdapter):
    chain = Chain.ETHEREUM

    def __init__(self, api_key: str, network: str, http_client: RateLimitedClient) -> None:
        if network not in CHAIN_IDS:
            raise ValueError(f"Unsupported EVM network: {network}")
        self._api_key = api_key
        self._network = network
        self._chain_id = CHAIN_IDS[network]
        self._http = http_client

    async def _request(self, params: dict[str, Any]) -> dict:
        params = {**params, "apikey": self._api_key, "chainid": self._chain_id}
        resp = await self._http.get(BASE_URL, params=params)
        return read_json(resp)

    async def _call(self, params: dict[str, Any]) -> Any:
        """Call a standard (status/message/result) endpoint."""
        data = await self._request(params)
        status = data.get("status")
        message = data.get("message", "")
        result = data.get("result")

        # "No transactions found" is valid empty result
        if message == "No transactions found" or (status == "0" and result == []):
            return []

        if isinstance(result, str) and "rate limit" in result.lower():
            raise RateLimited(f"Etherscan: {result}")

        if message == "NOTOK" or status is None or status == "0":
            error_msg = result if isinstance(result, str) else message
            raise NetworkError(f"Etherscan API error: {error_msg}")

        return result

    async def _proxy(self, action: str, **params: Any) -> Any:
        """Call a `proxy` module endpoint (JSON-RPC shaped answer, no status field)."""
        data = await self._request({"module": "proxy", "action": action, **params})
        if "error" in data:
            error = data["error"]
            msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise _classify_rpc_error(msg)
        result = data.get("result")
        if isinstance(result, str) and "rate limit" in result.lower():
            raise RateLimited(f"Etherscan: {result}")
        return result

    async def fetch_raw_transactions(self, address: str, limit: int) -> list[dict[str, Any]]:
        result = await self._call({
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": 1,
            "offset": limit,
            "sort": "desc",
        })
        if not isinstance(result, list):
            return []
        return result[:limit]

    async def fetch_block_time(self, height: int) -> int:
        block = await self._proxy("eth_getBlockByNumber", tag=hex(height), boolean="false")
        if not block:
            raise NotFound(f"Block {height} not indexed on {self._network}")
        return int(block["timestamp"], 16)

    async def fetch_balance(self, address: str) -> int:
        result = await self._call({"module": "account", "action": "balance", "address": address, "tag": "latest"})
        return int(result or 0)

    @broadcast_retry
    async def submit_transaction(self, params: dict[str, Any]) -> SubmitResult:
        raw_hex = params.get("raw")
        if not raw_hex:
            raise InvalidParams("Missing signed payload 'raw'")
        tx_hash = await self._proxy("eth_sendRawTransaction", hex=raw_hex)
        if not isinstance(tx_hash, str) or not tx_hash.startswith("0x"):
            raise InvalidParams(f"Unexpected broadcast answer: {tx_hash!r}")
        logger.info("Broadcast %s on %s", tx_hash, self._network)
        return SubmitResult(hash=tx_hash.lower())


def _classify_rpc_error(message: str) -> Exception:
    lowered = message.lower()
    if "insufficient funds" in lowered:
        return InsufficientFunds(message)
    if "rate limit" in lowered:
        return RateLimited(message)
    return InvalidParams(message)
