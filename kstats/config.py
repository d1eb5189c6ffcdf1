"""Environment configuration management."""
from typing import Optional, Tuple
from pydantic_settings import BaseSettings

SUPPORTED_DATABASE_TYPES = ("sqlite",)


class Settings(BaseSettings):
    """Application settings loaded from KSTATS_* environment variables."""

    database_type: str = "sqlite"
    database_url: str = "sqlite:///kstats.db"
    redis_address: str = "localhost:6379"
    redis_password: Optional[str] = None
    cache_ttl_seconds: int = 300
    log_level: str = "INFO"
    template_dir: str = "templates"
    assets_dir: str = "assets"
    debug: bool = False

    class Config:
        env_prefix = "KSTATS_"
        env_file = ".env"
        case_sensitive = False

    def validate_database_type(self) -> bool:
        """Check that the configured store driver is one we can talk to."""
        return self.database_type.lower() in SUPPORTED_DATABASE_TYPES

    def redis_host_port(self) -> Tuple[str, int]:
        """Split ``host:port``; the port defaults to 6379."""
        host, sep, port = self.redis_address.rpartition(":")
        if not sep:
            return self.redis_address, 6379
        return host or "localhost", int(port)


# Global settings instance
settings = Settings()
