"""Extract native SOL legs from a signature info merged with its parsed transaction."""

from wallethistory.domain.enums import TxStatus
from wallethistory.reconcile.utils.types import ExtractedTx, TransferLeg

_FINAL_COMMITMENTS = {"confirmed", "finalized"}


def _pubkeys(tx_data: dict) -> list[str]:
    transaction = tx_data.get("transaction", {}) or {}
    message = transaction.get("message", {}) or {}
    pubkeys = []
    for key in message.get("accountKeys", []):
        if isinstance(key, dict):
            pubkeys.append(key.get("pubkey", ""))
        else:
            pubkeys.append(str(key))
    return pubkeys


def _solana_status(record: dict, tx_data: dict | None) -> TxStatus:
    meta = (tx_data or {}).get("meta") or {}
    if record.get("err") is not None or meta.get("err") is not None:
        return TxStatus.FAILED
    commitment = record.get("confirmationStatus")
    if commitment is None:
        return TxStatus.CONFIRMED if tx_data else TxStatus.PENDING
    return TxStatus.CONFIRMED if commitment in _FINAL_COMMITMENTS else TxStatus.PENDING


def extract_solana_tx(record: dict, base_denom: str) -> ExtractedTx:
    """Lamport balance diffs per account: debits are inputs, credits are outputs.

    The fee payer's debit includes the fee, so a Sent amount is the net outflow.
    """
    tx_data = record.get("transaction_data")
    inputs: list[TransferLeg] = []
    outputs: list[TransferLeg] = []

    if tx_data:
        meta = tx_data.get("meta", {}) or {}
        pre_balances = meta.get("preBalances", [])
        post_balances = meta.get("postBalances", [])
        pubkeys = _pubkeys(tx_data)
        for i in range(min(len(pre_balances), len(post_balances), len(pubkeys))):
            diff = post_balances[i] - pre_balances[i]
            if diff < 0:
                inputs.append(TransferLeg(address=pubkeys[i], value=-diff, denom=base_denom))
            elif diff > 0:
                outputs.append(TransferLeg(address=pubkeys[i], value=diff, denom=base_denom))

    block_time = record.get("blockTime") or (tx_data or {}).get("blockTime")
    slot = record.get("slot") or (tx_data or {}).get("slot")

    return ExtractedTx(
        hash=record["signature"],
        status=_solana_status(record, tx_data),
        height=int(slot) if slot else None,
        timestamp=int(block_time) if block_time else None,
        inputs=inputs,
        outputs=outputs,
        raw=record,
    )
