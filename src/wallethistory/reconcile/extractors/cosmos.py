"""Extract candidate transfer events from a Cosmos SDK `tx_response`."""

import re

from wallethistory.domain.enums import TxStatus
from wallethistory.reconcile.utils.timestamps import parse_timestamp
from wallethistory.reconcile.utils.types import ExtractedTx, TransferEvent

MSG_SEND_TYPE = "/cosmos.bank.v1beta1.MsgSend"

_COIN_RE = re.compile(r"^(\d+)([a-zA-Z][a-zA-Z0-9/._-]*)$")
_TRANSFER_KEYS = ("sender", "recipient", "amount")


def parse_coin_list(value: str) -> list[tuple[int, str]]:
    """'1000uatom,2000ibc/ABC' -> [(1000, 'uatom'), (2000, 'ibc/ABC')]."""
    coins = []
    for part in value.split(","):
        m = _COIN_RE.match(part.strip())
        if m:
            coins.append((int(m.group(1)), m.group(2)))
    return coins


def _pick_coin(coins: list[tuple[int, str]], base_denom: str) -> tuple[int, str] | None:
    """Prefer the base denomination, else the first coin."""
    for amount, denom in coins:
        if denom == base_denom:
            return amount, denom
    return coins[0] if coins else None


def _events_from_logs(raw: dict, base_denom: str) -> list[TransferEvent]:
    events: list[TransferEvent] = []
    for ev in raw.get("events") or []:
        if ev.get("type") != "transfer":
            continue
        attributes = ev.get("attributes") or []
        primary = any(a.get("key") == "msg_index" and a.get("value") == "0" for a in attributes)

        # Legacy SDKs pack several sender/recipient/amount triples into one event
        group: dict[str, str] = {}
        groups: list[dict[str, str]] = []
        for attr in attributes:
            key = attr.get("key")
            if key not in _TRANSFER_KEYS:
                continue
            if key in group:
                groups.append(group)
                group = {}
            group[key] = attr.get("value") or ""
        if group:
            groups.append(group)

        for g in groups:
            coin = _pick_coin(parse_coin_list(g.get("amount", "")), base_denom)
            if coin is None:
                continue
            events.append(TransferEvent(
                sender=g.get("sender") or None,
                recipient=g.get("recipient") or None,
                value=coin[0],
                denom=coin[1],
                primary=primary,
                index=len(events),
            ))
    return events


def _events_from_messages(raw: dict, base_denom: str) -> list[TransferEvent]:
    """Fallback when the node did not return events: read the first MsgSend body."""
    messages = (((raw.get("tx") or {}).get("body") or {}).get("messages")) or []
    for msg in messages:
        if msg.get("@type") != MSG_SEND_TYPE:
            continue
        coins = [(int(c["amount"]), c["denom"]) for c in msg.get("amount") or [] if c.get("amount")]
        coin = _pick_coin(coins, base_denom)
        if coin is None:
            continue
        return [TransferEvent(
            sender=msg.get("from_address") or None,
            recipient=msg.get("to_address") or None,
            value=coin[0],
            denom=coin[1],
            primary=True,
        )]
    return []


def extract_cosmos_tx(raw: dict, base_denom: str) -> ExtractedTx:
    height = int(raw.get("height") or 0) or None
    code = int(raw.get("code") or 0)
    if code != 0:
        status = TxStatus.FAILED
    elif height is not None:
        status = TxStatus.CONFIRMED
    else:
        status = TxStatus.PENDING

    events = _events_from_logs(raw, base_denom) or _events_from_messages(raw, base_denom)

    return ExtractedTx(
        hash=raw.get("txhash") or raw["hash"],
        status=status,
        height=height,
        timestamp=parse_timestamp(raw.get("timestamp")),
        events=events,
        raw=raw,
    )
