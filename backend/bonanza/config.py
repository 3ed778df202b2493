"""Application configuration for the cascade slot server."""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings, overridable via BONANZA_* environment variables."""

    model_config = ConfigDict(env_prefix="BONANZA_")

    # Server
    debug: bool = False
    redis_url: str = "redis://localhost:6379/0"

    # Protocol
    protocol_version: str = "1.0"

    # Bet bounds (integer currency units)
    min_bet: int = 1
    max_bet: int = 1000

    # Buy feature
    enable_buy_feature: bool = True
    buy_feature_cost_multiplier: int = 100

    # State persistence (Redis TTLs)
    free_spins_state_ttl_seconds: int = 86400  # 24 hours for session continuation

    # Lock TTL for per-player spin lock (ROUND_IN_PROGRESS recovery)
    lock_ttl_seconds: int = 30  # Auto-expire lock after 30s if process crashes


settings = Settings()
