"""Tests for MempoolAdapter (Esplora REST) with mocked HTTP."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from wallethistory.exceptions import InsufficientFunds, InvalidParams, NetworkError, NotFound
from wallethistory.infra.blockchain.utxo.mempool_client import MempoolAdapter


@pytest.fixture()
def mock_http():
    return AsyncMock()


@pytest.fixture()
def adapter(mock_http):
    return MempoolAdapter(base_url="https://mempool.space/api/", http_client=mock_http)


def _mock_response(data=None, status_code: int = 200, text: str = ""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    resp.text = text
    return resp


class TestFetchRawTransactions:
    async def test_returns_records(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response([{"txid": "a"}, {"txid": "b"}, {"txid": "c"}])

        result = await adapter.fetch_raw_transactions("bc1qwallet", limit=2)
        assert [r["txid"] for r in result] == ["a", "b"]
        assert mock_http.get.call_args[0][0] == "https://mempool.space/api/address/bc1qwallet/txs"

    async def test_bad_status(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response(status_code=400, text="Invalid Bitcoin address")

        with pytest.raises(NetworkError):
            await adapter.fetch_raw_transactions("nope", limit=25)


class TestFetchBlockTime:
    async def test_height_then_block(self, adapter, mock_http):
        mock_http.get.side_effect = [
            _mock_response(text="00000000000000000002abc\n"),
            _mock_response({"id": "00000000000000000002abc", "timestamp": 1700000500}),
        ]

        assert await adapter.fetch_block_time(820_000) == 1700000500
        assert mock_http.get.call_args_list[1][0][0].endswith("/block/00000000000000000002abc")

    async def test_unknown_height(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response(status_code=404, text="Block not found")

        with pytest.raises(NotFound):
            await adapter.fetch_block_time(9_999_999)


class TestBalance:
    async def test_confirmed_plus_mempool(self, adapter, mock_http):
        mock_http.get.return_value = _mock_response({
            "chain_stats": {"funded_txo_sum": 150_000, "spent_txo_sum": 50_000},
            "mempool_stats": {"funded_txo_sum": 0, "spent_txo_sum": 20_000},
        })

        assert await adapter.fetch_balance("bc1qwallet") == 80_000


class TestSubmit:
    async def test_returns_txid(self, adapter, mock_http):
        mock_http.post.return_value = _mock_response(text="f00dbabe")

        result = await adapter.submit_transaction({"raw": "0200000001..."})
        assert result.hash == "f00dbabe"
        assert mock_http.post.call_args[1]["content"] == "0200000001..."

    async def test_spent_inputs(self, adapter, mock_http):
        mock_http.post.return_value = _mock_response(
            status_code=400, text='sendrawtransaction RPC error: {"code":-25,"message":"bad-txns-inputs-missingorspent"}',
        )

        with pytest.raises(InsufficientFunds):
            await adapter.submit_transaction({"raw": "0200000001..."})

    async def test_rejected(self, adapter, mock_http):
        mock_http.post.return_value = _mock_response(status_code=400, text="TX decode failed")

        with pytest.raises(InvalidParams, match="TX decode failed"):
            await adapter.submit_transaction({"raw": "zz"})
