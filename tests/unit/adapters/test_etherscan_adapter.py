"""Tests for EtherscanAdapter with mocked HTTP."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from tenacity import wait_none

from wallethistory.exceptions import InsufficientFunds, InvalidParams, NetworkError, NotFound, RateLimited
from wallethistory.infra.blockchain.evm.etherscan_client import EtherscanAdapter


@pytest.fixture()
def mock_http():
    return AsyncMock()


@pytest.fixture()
def adapter(mock_http):
    return EtherscanAdapter(api_key="KEY", network="ethereum", http_client=mock_http)


def _mock_response(data: dict):
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = data
    return resp


class TestFetchRawTransactions:
    async def test_returns_txlist(self, adapter, mock_http):
        txs = [{"hash": "0x1", "blockNumber": "10"}, {"hash": "0x2", "blockNumber": "9"}]
        mock_http.get.return_value = _mock_response({"status": "1", "message": "OK", "result": txs})

        result = await adapter.fetch_raw_transactions("0xabc", limit=25)
        assert [r["hash"] for r in result] == ["0x1", "0x2"]

        params = mock_http.get.call_args[1]["params"]
        assert params["action"] == "txlist"
        assert params["sort"] == "desc"
        assert params["offset"] == 25
        assert params["chainid"] == 1
        assert params["apikey"] == "KEY"

    async def test_caps_at_limit(self, adapter, mock_http):
        txs = [{"hash": f"0x{i}"} for i in range(5)]
        mock_http.get.return_value = _mock_response({"status": "1", "message": "OK", "result": txs})

        result = await adapter.fetch_raw_transactions("0xabc", limit=3)
        assert len(result) == 3

    async def test_no_transactions_found(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({"status": "0", "message": "No transactions found", "result": []})

        assert await adapter.fetch_raw_transactions("0xabc", limit=25) == []

    async def test_rate_limit_message(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({
            "status": "0", "message": "NOTOK", "result": "Max rate limit reached",
        })

        with pytest.raises(RateLimited):
            await adapter.fetch_raw_transactions("0xabc", limit=25)

    async def test_notok_is_network_error(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({"status": "0", "message": "NOTOK", "result": "Invalid API Key"})

        with pytest.raises(NetworkError, match="Invalid API Key"):
            await adapter.fetch_raw_transactions("0xabc", limit=25)


    async def test_html_error_page(self, adapter, mock_http):
        resp = MagicMock()
        resp.status_code = 403
        resp.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        mock_http.get.return_value = resp

        with pytest.raises(NetworkError, match="Non-JSON"):
            await adapter.fetch_raw_transactions("0xabc", limit=25)


class TestFetchBlockTime:
    async def test_parses_hex_timestamp(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": {"timestamp": "0x6553f100"}})

        ts = await adapter.fetch_block_time(18_000_000)
        assert ts == 0x6553F100
        params = mock_http.get.call_args[1]["params"]
        assert params["action"] == "eth_getBlockByNumber"
        assert params["tag"] == hex(18_000_000)

    async def test_unknown_block_is_not_found(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": None})

        with pytest.raises(NotFound):
            await adapter.fetch_block_time(99_999_999)


class TestBalance:
    async def test_balance(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({"status": "1", "message": "OK", "result": "1500000000000000000"})

        assert await adapter.fetch_balance("0xabc") == 1_500_000_000_000_000_000


class TestSubmit:
    async def test_returns_lowercased_hash(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": "0xABCDEF"})

        result = await adapter.submit_transaction({"raw": "0xf86c..."})
        assert result.hash == "0xabcdef"

    async def test_missing_payload(self, adapter, mock_http):
        with pytest.raises(InvalidParams):
            await adapter.submit_transaction({})
        mock_http.get.assert_not_called()

    async def test_insufficient_funds(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1,
            "error": {"code": -32000, "message": "insufficient funds for gas * price + value"},
        })

        with pytest.raises(InsufficientFunds):
            await adapter.submit_transaction({"raw": "0xf86c..."})

    async def test_rejected_payload(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "nonce too low"},
        })

        with pytest.raises(InvalidParams, match="nonce too low"):
            await adapter.submit_transaction({"raw": "0xf86c..."})

    async def test_rebroadcasts_after_network_error(self, adapter, mock_http):
        mock_http.get.side_effect = [
            NetworkError("reset"),
            _mock_response({"jsonrpc": "2.0", "id": 1, "result": "0xaa"}),
        ]
        submit = EtherscanAdapter.submit_transaction.retry_with(wait=wait_none())

        result = await submit(adapter, {"raw": "0xf86c..."})
        assert result.hash == "0xaa"
        assert mock_http.get.call_count == 2

    async def test_gives_up_after_three_attempts(self, adapter, mock_http):
        mock_http.get.side_effect = NetworkError("down")
        submit = EtherscanAdapter.submit_transaction.retry_with(wait=wait_none())

        with pytest.raises(NetworkError):
            await submit(adapter, {"raw": "0xf86c..."})
        assert mock_http.get.call_count == 3


class TestConstruction:
    def test_unknown_network(self, mock_http):
        with pytest.raises(ValueError):
            EtherscanAdapter(api_key="", network="dogechain", http_client=mock_http)
