"""Application configuration derived from environment."""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings. Board geometry is fixed in the engine, not here."""

    model_config = ConfigDict(env_prefix="PLINKO_")

    # Server
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"

    # Protocol
    protocol_version: str = "1.0"

    # Commit step
    server_seed_bytes: int = 32  # 64 hex chars
    nonce_max: int = 1_000_000  # generated nonces are decimal strings in [0, nonce_max)

    # Stake bounds (cents)
    min_bet_cents: int = 1
    max_bet_cents: int = 1_000_000

    # Round persistence (Redis TTLs)
    round_ttl_seconds: int = 604800  # 7 days, long enough for players to verify

    # Lock TTL for per-round start/reveal lock
    lock_ttl_seconds: int = 30  # Auto-expire lock after 30s if process crashes


settings = Settings()
