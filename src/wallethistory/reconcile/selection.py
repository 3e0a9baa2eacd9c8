"""Pick the user-intended transfer out of several candidate events."""

from wallethistory.reconcile.utils.types import TransferEvent


def _involves(event: TransferEvent, wallet: str) -> bool:
    return event.sender == wallet or event.recipient == wallet


def select_transfer_event(
    events: list[TransferEvent], wallet: str, base_denom: str
) -> TransferEvent | None:
    """First match wins:

    1. primary-message event involving the wallet
    2. last event involving the wallet in the base denomination (pre-0.50 SDKs emit
       the fee transfer ahead of the message transfers)
    3. highest-value base-denomination event
    """
    for event in events:
        if event.primary and _involves(event, wallet):
            return event

    for event in reversed(events):
        if _involves(event, wallet) and event.denom == base_denom:
            return event

    base_events = [e for e in events if e.denom == base_denom]
    if base_events:
        return max(base_events, key=lambda e: e.value)
    return None
