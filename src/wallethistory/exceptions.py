"""Exception hierarchy shared by adapters, reconciler and sessions."""


class WalletHistoryError(Exception):
    """Base for all wallethistory errors."""


class AdapterError(WalletHistoryError):
    """A chain adapter call failed."""


class NetworkError(AdapterError):
    """Transport failure or timeout. Transient: retried on the next tick only."""


class RateLimited(AdapterError):
    """Backend throttled the request. Same policy as NetworkError."""


class NotFound(AdapterError):
    """Requested object (usually a block height) is not indexed yet."""


class InvalidParams(AdapterError):
    """Backend rejected a submitted payload."""


class InsufficientFunds(AdapterError):
    """Backend rejected a submitted payload for lack of balance."""


class ReconciliationSkipped(WalletHistoryError):
    """A raw record could not be attributed to the wallet and is dropped."""


class SessionInactive(WalletHistoryError):
    """The wallet session was torn down or is bound to another address."""
