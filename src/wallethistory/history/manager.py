"""SessionManager: at most one active WalletSession per chain."""

import logging
import time
from typing import Callable

from wallethistory.config import Settings
from wallethistory.domain.enums import Chain, normalize_address
from wallethistory.exceptions import SessionInactive
from wallethistory.history.cache import TransactionCache
from wallethistory.history.session import WalletSession
from wallethistory.history.store import CacheStore
from wallethistory.infra.blockchain.base import ChainAdapter
from wallethistory.infra.blockchain.factory import build_adapter, chain_units
from wallethistory.infra.http.rate_limited_client import RateLimitedClient
from wallethistory.reconcile.reconciler import EventReconciler

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[Chain, Settings, RateLimitedClient], ChainAdapter]


class SessionManager:
    """Owns the per-chain caches and the active session for each chain.

    Activating another address on a chain closes the previous session first, so its
    in-flight refreshes can never write into the new wallet's view.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: RateLimitedClient,
        store: CacheStore | None = None,
        adapter_factory: AdapterFactory = build_adapter,
        start_polling: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._store = store
        self._adapter_factory = adapter_factory
        self._start_polling = start_polling
        self._clock = clock
        self._sessions: dict[Chain, WalletSession] = {}
        self._caches: dict[Chain, TransactionCache] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def cache_for(self, chain: Chain) -> TransactionCache:
        cache = self._caches.get(chain)
        if cache is None:
            cache = TransactionCache(
                ttl_seconds=self._settings.cache_ttl_seconds,
                max_pending_seconds=self._settings.max_pending_seconds,
                clock=self._clock,
            )
            self._caches[chain] = cache
        return cache

    async def activate(self, chain: Chain, address: str) -> WalletSession:
        address = normalize_address(chain, address)
        current = self._sessions.get(chain)
        if current is not None and current.active and current.address == address:
            return current
        if current is not None:
            logger.info("Switching %s session %s -> %s", chain.value, current.address, address)
            await current.close(forget=True)

        adapter = self._adapter_factory(chain, self._settings, self._http)
        base_denom, decimals = chain_units(chain, self._settings)
        reconciler = EventReconciler(
            chain,
            fetch_block_time=adapter.fetch_block_time,
            base_denom=base_denom,
            decimals=decimals,
            block_time_concurrency=self._settings.block_time_concurrency,
            request_timeout=self._settings.request_timeout_seconds,
        )
        session = WalletSession(
            chain,
            address,
            adapter=adapter,
            reconciler=reconciler,
            cache=self.cache_for(chain),
            store=self._store,
            history_limit=self._settings.history_limit,
            request_timeout=self._settings.request_timeout_seconds,
            normal_interval=self._settings.normal_interval_seconds,
            fast_interval=self._settings.fast_interval_seconds,
            max_pending_seconds=self._settings.max_pending_seconds,
            clock=self._clock,
        )
        self._sessions[chain] = session
        await session.activate(start_polling=self._start_polling)
        logger.info("Activated %s session for %s", chain.value, address)
        return session

    def get(self, chain: Chain) -> WalletSession:
        session = self._sessions.get(chain)
        if session is None or not session.active:
            raise SessionInactive(f"No active {chain.value} session")
        return session

    async def deactivate(self, chain: Chain, forget: bool = False) -> None:
        """Tear down the chain's session. `forget` is wallet deletion: cached history goes too."""
        session = self._sessions.pop(chain, None)
        if session is None:
            raise SessionInactive(f"No active {chain.value} session")
        await session.close(forget=forget)
        logger.info("Deactivated %s session for %s (forget=%s)", chain.value, session.address, forget)

    async def switch_network(self, chain: Chain, settings: Settings | None = None) -> None:
        """Drop everything cached for the chain, optionally with new endpoint settings."""
        session = self._sessions.pop(chain, None)
        if session is not None:
            await session.close()
        self.cache_for(chain).clear_all()
        if self._store is not None:
            await self._store.delete(chain)
        if settings is not None:
            self._settings = settings
            self._caches.pop(chain, None)

    async def close_all(self) -> None:
        for chain in list(self._sessions):
            session = self._sessions.pop(chain)
            await session.close()
