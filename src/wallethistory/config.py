from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./wallethistory.db"
    etherscan_api_key: str = ""
    evm_chain: str = "ethereum"
    mempool_api_url: str = "https://mempool.space/api"
    cosmos_lcd_url: str = "https://rest.cosmos.directory/cosmoshub"
    cosmos_base_denom: str = "uatom"
    cosmos_decimals: int = 6
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    cache_ttl_seconds: int = 300  # 5 min, matches wallet behaviour
    normal_interval_seconds: float = 30.0
    fast_interval_seconds: float = 15.0
    max_pending_seconds: int = 300
    block_time_concurrency: int = 5
    request_timeout_seconds: float = 15.0
    requests_per_second: float = 5.0
    history_limit: int = 25
    debug: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "WALLETHISTORY_"


settings = Settings()
