from dependency_injector import containers, providers

from wallethistory.config import Settings
from wallethistory.db.session import build_engine, build_session_factory
from wallethistory.history.manager import SessionManager
from wallethistory.history.store import CacheStore
from wallethistory.infra.http.rate_limited_client import RateLimitedClient


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["wallethistory.api.deps"])

    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.requests_per_second,
        timeout=settings.provided.request_timeout_seconds,
    )

    cache_store = providers.Singleton(
        CacheStore,
        session_factory=session_factory,
    )

    session_manager = providers.Singleton(
        SessionManager,
        settings=settings,
        http_client=http_client,
        store=cache_store,
    )
