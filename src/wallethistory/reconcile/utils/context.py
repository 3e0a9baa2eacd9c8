"""ReconcileContext: partitions one transaction's legs relative to the wallet."""

from wallethistory.reconcile.utils.types import TransferLeg


class ReconcileContext:
    """Wallet-relative view over the legs of a single transaction."""

    def __init__(
        self,
        wallet_address: str,
        inputs: list[TransferLeg],
        outputs: list[TransferLeg],
        denom: str,
    ) -> None:
        self._wallet = wallet_address
        self._denom = denom
        self._inputs = [leg for leg in inputs if leg.denom == denom]
        self._outputs = [leg for leg in outputs if leg.denom == denom]

    def is_wallet(self, address: str | None) -> bool:
        return address is not None and address == self._wallet

    @property
    def denom(self) -> str:
        return self._denom

    def wallet_is_source(self) -> bool:
        return any(self.is_wallet(leg.address) for leg in self._inputs)

    def wallet_is_destination(self) -> bool:
        return any(self.is_wallet(leg.address) for leg in self._outputs)

    def contributed(self) -> int:
        """Value debited from the wallet."""
        return sum(leg.value for leg in self._inputs if self.is_wallet(leg.address))

    def returned(self) -> int:
        """Value credited back to the wallet (change, self-output, receipt)."""
        return sum(leg.value for leg in self._outputs if self.is_wallet(leg.address))

    def external_outputs(self) -> list[TransferLeg]:
        """Outputs to other addresses, largest first."""
        legs = [leg for leg in self._outputs if leg.address and not self.is_wallet(leg.address)]
        return sorted(legs, key=lambda leg: leg.value, reverse=True)

    def external_inputs(self) -> list[TransferLeg]:
        """Inputs from other addresses, largest first."""
        legs = [leg for leg in self._inputs if leg.address and not self.is_wallet(leg.address)]
        return sorted(legs, key=lambda leg: leg.value, reverse=True)

    def all_outputs_to_wallet(self) -> bool:
        return bool(self._outputs) and all(self.is_wallet(leg.address) for leg in self._outputs)
