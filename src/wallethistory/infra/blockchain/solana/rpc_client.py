"""Solana JSON-RPC adapter: history via getSignaturesForAddress + getTransaction."""

import logging
from typing import Any

from wallethistory.domain.enums import Chain
from wallethistory.domain.models.transaction import SubmitResult
from wallethistory.exceptions import InsufficientFunds, InvalidParams, NetworkError, NotFound, RateLimited
from wallethistory.infra.blockchain.base import ChainAdapter, broadcast_retry
from wallethistory.infra.http.rate_limited_client import RateLimitedClient, read_json

logger = logging.getLogger(__name__)

# getBlockTime: slot skipped / block not available / not confirmed yet
_BLOCK_MISSING_CODES = {-32004, -32007, -32009}
_RATE_LIMIT_CODE = 429


class SolanaRPCError(Exception):
    def __init__(self, method: str, code: int | None, message: str) -> None:
        super().__init__(f"Solana RPC error ({method}): {message}")
        self.code = code
        self.message = message


class SolanaAdapter(ChainAdapter):
    """Minimal Solana JSON-RPC client exposing the adapter contract."""

    chain = Chain.SOLANA

    def __init__(self, rpc_url: str, http_client: RateLimitedClient) -> None:
        self._rpc_url = rpc_url
        self._http = http_client

    async def _call(self, method: str, params: list) -> dict | list | int | str | None:
        """Execute a JSON-RPC call and return the result field."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        resp = await self._http.post(self._rpc_url, json=payload)
        data = read_json(resp)

        if "error" in data:
            error = data["error"]
            code = error.get("code")
            msg = error.get("message", str(error))
            if code == _RATE_LIMIT_CODE:
                raise RateLimited(f"Solana RPC throttled ({method})")
            raise SolanaRPCError(method, code, msg)

        return data.get("result")

    async def get_signatures(self, address: str, limit: int) -> list[dict]:
        """Fetch signature infos for an address, newest first."""
        try:
            result = await self._call("getSignaturesForAddress", [address, {"limit": limit}])
        except SolanaRPCError as e:
            raise NetworkError(str(e)) from e
        if result is None:
            return []
        return result  # type: ignore[return-value]

    async def get_transaction(self, signature: str) -> dict | None:
        """Fetch a parsed transaction by signature. None if the node has not seen it yet."""
        opts = {
            "encoding": "jsonParsed",
            "maxSupportedTransactionVersion": 0,
        }
        try:
            result = await self._call("getTransaction", [signature, opts])
        except SolanaRPCError as e:
            raise NetworkError(str(e)) from e
        return result  # type: ignore[return-value]

    async def fetch_raw_transactions(self, address: str, limit: int) -> list[dict[str, Any]]:
        sigs = await self.get_signatures(address, limit)
        records: list[dict[str, Any]] = []
        for sig_info in sigs[:limit]:
            tx_data = await self.get_transaction(sig_info["signature"])
            records.append({**sig_info, "transaction_data": tx_data})
        return records

    async def fetch_block_time(self, height: int) -> int:
        try:
            result = await self._call("getBlockTime", [height])
        except SolanaRPCError as e:
            if e.code in _BLOCK_MISSING_CODES:
                raise NotFound(f"Slot {height}: {e.message}") from e
            raise NetworkError(str(e)) from e
        if result is None:
            raise NotFound(f"Slot {height} has no block time")
        return int(result)  # type: ignore[arg-type]

    async def fetch_balance(self, address: str) -> int:
        try:
            result = await self._call("getBalance", [address])
        except SolanaRPCError as e:
            raise NetworkError(str(e)) from e
        if isinstance(result, dict):
            return int(result.get("value", 0))
        return int(result or 0)  # type: ignore[arg-type]

    @broadcast_retry
    async def submit_transaction(self, params: dict[str, Any]) -> SubmitResult:
        signed = params.get("raw")
        if not signed:
            raise InvalidParams("Missing signed payload 'raw'")
        try:
            signature = await self._call("sendTransaction", [signed, {"encoding": "base64"}])
        except SolanaRPCError as e:
            lowered = e.message.lower()
            if "insufficient" in lowered or "prior credit" in lowered:
                raise InsufficientFunds(e.message) from e
            raise InvalidParams(e.message) from e
        logger.info("Broadcast Solana transaction %s", signature)
        return SubmitResult(hash=str(signature))
