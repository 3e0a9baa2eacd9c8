"""Extract legs from Esplora / mempool.space transaction JSON."""

from wallethistory.domain.enums import TxStatus
from wallethistory.reconcile.utils.types import ExtractedTx, TransferLeg


def extract_utxo_tx(raw: dict, base_denom: str) -> ExtractedTx:
    """Inputs come from each vin's prevout, outputs from vout. Values are satoshis."""
    status_info = raw.get("status") or {}
    confirmed = bool(status_info.get("confirmed"))

    inputs: list[TransferLeg] = []
    for vin in raw.get("vin", []):
        if vin.get("is_coinbase"):
            continue
        prevout = vin.get("prevout") or {}
        inputs.append(TransferLeg(
            address=prevout.get("scriptpubkey_address"),
            value=int(prevout.get("value", 0)),
            denom=base_denom,
        ))

    outputs = [
        TransferLeg(
            address=vout.get("scriptpubkey_address"),
            value=int(vout.get("value", 0)),
            denom=base_denom,
        )
        for vout in raw.get("vout", [])
    ]

    return ExtractedTx(
        hash=raw["txid"],
        status=TxStatus.CONFIRMED if confirmed else TxStatus.PENDING,
        height=status_info.get("block_height") if confirmed else None,
        timestamp=status_info.get("block_time") if confirmed else None,
        inputs=inputs,
        outputs=outputs,
        raw=raw,
    )
