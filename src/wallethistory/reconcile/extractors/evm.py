"""Extract the native value transfer from an Etherscan `txlist` item."""

from wallethistory.domain.enums import TxStatus
from wallethistory.reconcile.utils.timestamps import parse_timestamp
from wallethistory.reconcile.utils.types import ExtractedTx, TransferLeg


def _evm_status(raw: dict) -> TxStatus:
    if raw.get("isError") == "1" or raw.get("txreceipt_status") == "0":
        return TxStatus.FAILED
    if not raw.get("blockNumber"):
        return TxStatus.PENDING
    return TxStatus.CONFIRMED


def extract_evm_tx(raw: dict, base_denom: str) -> ExtractedTx:
    from_addr = (raw.get("from") or "").lower() or None
    # Contract creation has an empty `to`; the new contract is the recipient
    to_addr = (raw.get("to") or raw.get("contractAddress") or "").lower() or None
    value = int(raw.get("value") or 0)
    block_number = raw.get("blockNumber")

    return ExtractedTx(
        hash=raw["hash"].lower(),
        status=_evm_status(raw),
        height=int(block_number) if block_number else None,
        timestamp=parse_timestamp(raw.get("timeStamp")),
        inputs=[TransferLeg(address=from_addr, value=value, denom=base_denom)],
        outputs=[TransferLeg(address=to_addr, value=value, denom=base_denom)],
        raw=raw,
    )
