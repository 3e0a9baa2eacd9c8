from wallethistory.reconcile.selection import select_transfer_event
from wallethistory.reconcile.utils.types import TransferEvent

WALLET = "cosmos1wallet"


def _event(sender="cosmos1other", recipient="cosmos1dest", value=100, denom="uatom", primary=False):
    return TransferEvent(sender=sender, recipient=recipient, value=value, denom=denom, primary=primary)


class TestSelectTransferEvent:
    def test_primary_involving_wallet_wins(self):
        fee = _event(sender=WALLET, recipient="cosmos1feecollector", value=5000)
        send = _event(sender=WALLET, recipient="cosmos1bob", value=1_000_000, primary=True)

        assert select_transfer_event([fee, send], WALLET, "uatom") is send

    def test_primary_in_other_denom_still_wins(self):
        fee = _event(sender=WALLET, recipient="cosmos1feecollector", value=5000)
        token = _event(sender=WALLET, recipient="cosmos1bob", value=42, denom="ibc/ABC", primary=True)

        assert select_transfer_event([fee, token], WALLET, "uatom") is token

    def test_primary_not_involving_wallet_is_skipped(self):
        routed = _event(sender="cosmos1router", recipient="cosmos1pool", value=9_000_000, primary=True)
        mine = _event(sender="cosmos1router", recipient=WALLET, value=300)

        assert select_transfer_event([routed, mine], WALLET, "uatom") is mine

    def test_wallet_event_requires_base_denom(self):
        token = _event(sender="cosmos1x", recipient=WALLET, value=10, denom="ufoo")
        base = _event(sender="cosmos1y", recipient=WALLET, value=7)

        assert select_transfer_event([token, base], WALLET, "uatom") is base

    def test_last_wallet_event_wins(self):
        fee = _event(sender=WALLET, recipient="cosmos1feecollector", value=2500)
        send = _event(sender=WALLET, recipient="cosmos1bob", value=1_000_000)

        assert select_transfer_event([fee, send], WALLET, "uatom") is send

    def test_highest_value_base_event(self):
        small = _event(value=10)
        big = _event(value=500)
        other = _event(value=10_000, denom="ufoo")

        assert select_transfer_event([small, big, other], WALLET, "uatom") is big

    def test_nothing_usable(self):
        assert select_transfer_event([_event(denom="ufoo")], WALLET, "uatom") is None
        assert select_transfer_event([], WALLET, "uatom") is None
