"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict

WEI_PER_UNIT = 10**18


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Vault limits (native asset smallest unit)
    capacity_cap: int = 1_000 * WEI_PER_UNIT
    per_withdrawal_cap: int = 10 * WEI_PER_UNIT
    min_deposit: int = WEI_PER_UNIT // 1000  # 0.001 units
    daily_withdrawal_cap: int = 50 * WEI_PER_UNIT
    interest_rate_bps: int = 500  # 5% simple annual

    # Credit scores
    min_credit_score: int = 300
    max_credit_score: int = 850
    default_credit_score: int = 500

    # Oracle
    oracle_stale_threshold_seconds: int = 2 * 3600
    default_min_price: int = 100 * 10**8  # $100 at 8 feed decimals
    default_max_price: int = 50_000 * 10**8  # $50,000 at 8 feed decimals

    # External Services
    price_feed_base: str = "http://localhost:8001"
    transfer_sink_url: str = "http://localhost:8001/transfers"

    # Service
    service_name: str = "vault-gateway"
    log_level: str = "INFO"
    bootstrap_admin: str = "admin"

    # HTTP Client
    http_timeout_seconds: float = 5.0
    transfer_max_retries: int = 3
    transfer_backoff_base: float = 0.5  # Exponential backoff base in seconds


settings = Settings()
