from pydantic_settings import BaseSettings
import redis
import redis.asyncio as aioredis


class Settings(BaseSettings):
    """
    Filter and Redis configuration.
    Values can be overridden via BLOOM_* environment variables or a .env file.
    """

    redis_url: str = "redis://localhost:6379/0"

    # Deadline for one pipelined round trip (and for connecting).
    socket_timeout_seconds: float = 3.0

    # Every process sharing a filter key must agree on these two.
    expected_elements: int = 3000
    false_positive_rate: float = 0.03

    default_ttl_seconds: int = 24 * 60 * 60

    log_level: str = "INFO"

    class Config:
        env_prefix = "BLOOM_"
        env_file = ".env"


settings = Settings()


def connect(cfg: Settings = settings) -> redis.Redis:
    return redis.Redis.from_url(
        cfg.redis_url,
        socket_timeout=cfg.socket_timeout_seconds,
        socket_connect_timeout=cfg.socket_timeout_seconds,
    )


def connect_async(cfg: Settings = settings) -> aioredis.Redis:
    return aioredis.from_url(
        cfg.redis_url,
        socket_timeout=cfg.socket_timeout_seconds,
        socket_connect_timeout=cfg.socket_timeout_seconds,
    )
