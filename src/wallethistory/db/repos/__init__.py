from wallethistory.db.repos.cache_entry_repo import CacheEntryRepo

__all__ = ["CacheEntryRepo"]
