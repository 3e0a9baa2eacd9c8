"""EventReconciler: raw chain records -> canonical Transaction list."""

import logging
from typing import Any, Awaitable, Callable, Mapping

from wallethistory.domain.enums import Chain, Direction
from wallethistory.domain.models.transaction import UNKNOWN_COUNTERPARTY, Transaction
from wallethistory.exceptions import ReconciliationSkipped
from wallethistory.history.block_time import DEFAULT_CONCURRENCY, BlockTimeResolver
from wallethistory.reconcile.registry import get_extractor
from wallethistory.reconcile.selection import select_transfer_event
from wallethistory.reconcile.utils.context import ReconcileContext
from wallethistory.reconcile.utils.types import ExtractedTx, TransferLeg

logger = logging.getLogger(__name__)


def sort_newest_first(transactions: list[Transaction]) -> list[Transaction]:
    """Unmined first, then by height and timestamp descending. Drops duplicate hashes."""
    ordered = sorted(
        transactions,
        key=lambda tx: (tx.height is None, tx.height or 0, tx.timestamp or 0),
        reverse=True,
    )
    seen: set[str] = set()
    unique = []
    for tx in ordered:
        if tx.hash in seen:
            continue
        seen.add(tx.hash)
        unique.append(tx)
    return unique


class EventReconciler:
    """Derives direction, amount and counterparty for one wallet address.

    Attribution is a pure function of the raw record, the wallet address, the base
    unit and the resolved block time, so reconciling a record twice gives equal output.
    """

    def __init__(
        self,
        chain: Chain,
        fetch_block_time: Callable[[int], Awaitable[int]] | None = None,
        base_denom: str | None = None,
        decimals: int | None = None,
        block_time_concurrency: int = DEFAULT_CONCURRENCY,
        request_timeout: float = 15.0,
    ) -> None:
        self._chain = chain
        self._extract = get_extractor(chain.family)
        self._fetch_block_time = fetch_block_time
        self._base_denom = base_denom or chain.base_denom
        self._decimals = chain.decimals if decimals is None else decimals
        self._concurrency = block_time_concurrency
        self._timeout = request_timeout

    @property
    def base_denom(self) -> str:
        return self._base_denom

    @property
    def decimals(self) -> int:
        return self._decimals

    def extract(self, raw: dict) -> ExtractedTx:
        return self._extract(raw, self._base_denom)

    def attribute(
        self,
        extracted: ExtractedTx,
        wallet_address: str,
        block_times: Mapping[int, int] | None = None,
    ) -> Transaction:
        """Build the canonical record. Raises ReconciliationSkipped if the wallet is on neither side."""
        inputs, outputs, denom = extracted.inputs, extracted.outputs, self._base_denom

        if extracted.events:
            event = select_transfer_event(extracted.events, wallet_address, self._base_denom)
            if event is None:
                raise ReconciliationSkipped(f"{extracted.hash}: no usable transfer event")
            inputs = [TransferLeg(address=event.sender, value=event.value, denom=event.denom)]
            outputs = [TransferLeg(address=event.recipient, value=event.value, denom=event.denom)]
            denom = event.denom

        ctx = ReconcileContext(wallet_address, inputs, outputs, denom)
        contributed = ctx.contributed()
        returned = ctx.returned()
        low_confidence = False

        if contributed > 0:
            direction = Direction.SENT
            amount = contributed - returned
            if amount < 0:
                logger.warning(
                    "%s: wallet %s got back more than it put in (%d > %d), clamping to 0",
                    extracted.hash, wallet_address, returned, contributed,
                )
                amount = 0
                low_confidence = True
        elif returned > 0:
            direction = Direction.RECEIVED
            amount = returned
        elif ctx.wallet_is_source():
            direction = Direction.SENT
            amount = 0
        elif ctx.wallet_is_destination():
            direction = Direction.RECEIVED
            amount = 0
        else:
            raise ReconciliationSkipped(f"{extracted.hash}: not attributable to {wallet_address}")

        timestamp = extracted.timestamp
        if timestamp is None and extracted.height is not None and block_times:
            timestamp = block_times.get(extracted.height)

        return Transaction(
            hash=extracted.hash,
            direction=direction,
            counterparty=self._counterparty(ctx, direction, wallet_address),
            amount=amount,
            decimals=self._decimals if denom == self._base_denom else 0,
            denom=denom,
            status=extracted.status,
            timestamp=timestamp,
            height=extracted.height,
            low_confidence=low_confidence,
            raw=extracted.raw,
        )

    @staticmethod
    def _counterparty(ctx: ReconcileContext, direction: Direction, wallet_address: str) -> str:
        if direction is Direction.SENT:
            others = ctx.external_outputs()
            if others:
                return others[0].address or UNKNOWN_COUNTERPARTY
            if ctx.all_outputs_to_wallet():
                return wallet_address
            return UNKNOWN_COUNTERPARTY
        others = ctx.external_inputs()
        if others:
            return others[0].address or UNKNOWN_COUNTERPARTY
        return UNKNOWN_COUNTERPARTY

    def reconcile_one(
        self,
        raw: dict,
        wallet_address: str,
        block_times: Mapping[int, int] | None = None,
    ) -> Transaction:
        return self.attribute(self.extract(raw), wallet_address, block_times)

    async def reconcile(self, raw_txs: list[dict[str, Any]], wallet_address: str) -> list[Transaction]:
        """Reconcile a whole fetch. One bad record never aborts the pass."""
        extracted: list[ExtractedTx] = []
        for raw in raw_txs:
            try:
                extracted.append(self.extract(raw))
            except Exception:
                logger.exception("Dropping malformed %s record", self._chain.value)

        heights = [e.height for e in extracted if e.timestamp is None and e.height is not None]
        block_times: dict[int, int] = {}
        if heights and self._fetch_block_time is not None:
            resolver = BlockTimeResolver(
                self._fetch_block_time, concurrency=self._concurrency, timeout=self._timeout
            )
            block_times = await resolver.resolve(heights)

        transactions: list[Transaction] = []
        for item in extracted:
            try:
                transactions.append(self.attribute(item, wallet_address, block_times))
            except ReconciliationSkipped as e:
                logger.debug("Skipped: %s", e)
            except Exception:
                logger.exception("Failed to reconcile %s %s", self._chain.value, item.hash)

        logger.info(
            "Reconciled %d/%d %s records for %s",
            len(transactions), len(raw_txs), self._chain.value, wallet_address,
        )
        return sort_newest_first(transactions)
