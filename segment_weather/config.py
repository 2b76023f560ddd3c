"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")

CACHE_TTL_48_HOURS = 48 * 60 * 60


class Settings(BaseSettings):
    """Environment-driven configuration for the segment weather service."""
    model_config = SettingsConfigDict(env_prefix="SEGMENT_WEATHER_", extra="ignore")

    weather_proxy_url: str = "http://localhost:3000"
    weather_source_tag: str = "OpenWeatherMap via backend proxy"
    cache_prefix: str = "weather_data_"
    cache_ttl_seconds: int = CACHE_TTL_48_HOURS
    cache_redis_url: str | None = None
    request_timeout_seconds: float = 10.0
    max_batch_size: int = 50
    log_level: str = "INFO"

    @field_validator("weather_proxy_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
