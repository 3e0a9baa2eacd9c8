from wallethistory.db.models.cache_entry import CachedHistory

__all__ = ["CachedHistory"]
