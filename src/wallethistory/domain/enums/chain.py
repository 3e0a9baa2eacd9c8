from enum import Enum


class ChainFamily(str, Enum):
    """Ledger model a chain's raw records follow. Selects the extractor."""

    UTXO = "utxo"
    EVM = "evm"
    COSMOS = "cosmos"
    SOLANA = "solana"


class Chain(str, Enum):
    """Supported networks. Values are the chain symbols used as persistence keys."""

    BITCOIN = "btc"
    ETHEREUM = "eth"
    COSMOS = "atom"
    SOLANA = "sol"

    @property
    def family(self) -> ChainFamily:
        return _FAMILIES[self]

    @property
    def base_denom(self) -> str:
        return _BASE_DENOMS[self]

    @property
    def decimals(self) -> int:
        return _DECIMALS[self]


_FAMILIES: dict[Chain, ChainFamily] = {
    Chain.BITCOIN: ChainFamily.UTXO,
    Chain.ETHEREUM: ChainFamily.EVM,
    Chain.COSMOS: ChainFamily.COSMOS,
    Chain.SOLANA: ChainFamily.SOLANA,
}

# Smallest unit per chain (satoshi, wei, uatom, lamport)
_BASE_DENOMS: dict[Chain, str] = {
    Chain.BITCOIN: "sat",
    Chain.ETHEREUM: "wei",
    Chain.COSMOS: "uatom",
    Chain.SOLANA: "lamport",
}

_DECIMALS: dict[Chain, int] = {
    Chain.BITCOIN: 8,
    Chain.ETHEREUM: 18,
    Chain.COSMOS: 6,
    Chain.SOLANA: 9,
}


def normalize_address(chain: Chain, address: str) -> str:
    """EVM addresses are hex and case-insensitive; every other family is case-sensitive."""
    if chain.family is ChainFamily.EVM:
        return address.strip().lower()
    return address.strip()
