"""Chain -> adapter wiring from Settings."""

from wallethistory.config import Settings
from wallethistory.domain.enums import Chain
from wallethistory.infra.blockchain.base import ChainAdapter
from wallethistory.infra.http.rate_limited_client import RateLimitedClient


def chain_units(chain: Chain, settings: Settings) -> tuple[str, int]:
    """(base denomination, display decimals). Cosmos zones configure their own staking denom."""
    if chain is Chain.COSMOS:
        return settings.cosmos_base_denom, settings.cosmos_decimals
    return chain.base_denom, chain.decimals


def build_adapter(chain: Chain, settings: Settings, http_client: RateLimitedClient) -> ChainAdapter:
    if chain is Chain.BITCOIN:
        from wallethistory.infra.blockchain.utxo.mempool_client import MempoolAdapter

        return MempoolAdapter(base_url=settings.mempool_api_url, http_client=http_client)

    if chain is Chain.ETHEREUM:
        from wallethistory.infra.blockchain.evm.etherscan_client import EtherscanAdapter

        return EtherscanAdapter(
            api_key=settings.etherscan_api_key,
            network=settings.evm_chain,
            http_client=http_client,
        )

    if chain is Chain.COSMOS:
        from wallethistory.infra.blockchain.cosmos.lcd_client import CosmosAdapter

        return CosmosAdapter(
            lcd_url=settings.cosmos_lcd_url,
            base_denom=settings.cosmos_base_denom,
            http_client=http_client,
        )

    if chain is Chain.SOLANA:
        from wallethistory.infra.blockchain.solana.rpc_client import SolanaAdapter

        return SolanaAdapter(rpc_url=settings.solana_rpc_url, http_client=http_client)

    raise ValueError(f"Unsupported chain: {chain}")
