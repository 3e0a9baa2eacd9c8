"""Chain family -> extractor lookup."""

from typing import Callable

from wallethistory.domain.enums import ChainFamily
from wallethistory.reconcile.extractors.cosmos import extract_cosmos_tx
from wallethistory.reconcile.extractors.evm import extract_evm_tx
from wallethistory.reconcile.extractors.solana import extract_solana_tx
from wallethistory.reconcile.extractors.utxo import extract_utxo_tx
from wallethistory.reconcile.utils.types import ExtractedTx

Extractor = Callable[[dict, str], ExtractedTx]

EXTRACTORS: dict[ChainFamily, Extractor] = {
    ChainFamily.UTXO: extract_utxo_tx,
    ChainFamily.EVM: extract_evm_tx,
    ChainFamily.COSMOS: extract_cosmos_tx,
    ChainFamily.SOLANA: extract_solana_tx,
}


def get_extractor(family: ChainFamily) -> Extractor:
    try:
        return EXTRACTORS[family]
    except KeyError:
        raise ValueError(f"No extractor for chain family: {family}") from None
