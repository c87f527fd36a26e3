"""
Application configuration using pydantic-settings.

All settings are loaded from environment variables or .env file.

Nested config uses the ``__`` delimiter::

    MONITORING__INTERVAL_SECONDS=30
    SNMP__SAFETY_MARGIN_MS=2000
    SSH__TIMEOUT=30
"""
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SnmpConfig(BaseModel):
    """Defaults used when a device has no SNMP profile attached."""

    default_port: int = 161
    default_timeout_ms: int = 5000
    default_retries: int = 1
    default_community: str = "public"
    # added on top of the profile timeout before a call is force-closed
    safety_margin_ms: int = 2000


class PingConfig(BaseModel):
    """ICMP prober parameters."""

    count: int = 5
    per_probe_timeout: int = 2
    command_timeout: float = 15.0


class SshConfig(BaseModel):
    """SSH CLI fallback parameters."""

    timeout: float = 30.0
    default_port: int = 22


class MonitoringConfig(BaseModel):
    """Collector loop parameters."""

    enabled: bool = True
    interval_seconds: int = 30
    concurrency: int = 10
    default_latency_threshold: float = 80.0
    default_packet_loss_threshold: float = 2.0


class TopologyConfig(BaseModel):
    """Concentrator lookups (PPPoE / corporate circuits)."""

    walk_timeout: float = 30.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Database
    db_host: str = Field(default="localhost", description="DB host")
    db_port: int = Field(default=3306, description="DB port")
    db_name: str = Field(default="linkwatch", description="DB name")
    db_user: str = Field(default="admin", description="DB user")
    db_password: str = Field(default="admin", description="DB password")
    database_url_override: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full async SQLAlchemy URL; takes precedence over db_* fields.",
    )

    snmp: SnmpConfig = SnmpConfig()
    ping: PingConfig = PingConfig()
    ssh: SshConfig = SshConfig()
    monitoring: MonitoringConfig = MonitoringConfig()
    topology: TopologyConfig = TopologyConfig()

    # Application
    app_name: str = Field(default="linkwatch", description="Application name")
    app_debug: bool = Field(default=False, description="Debug mode")
    api_prefix: str = Field(default="/api/v1", description="API prefix")

    @property
    def async_database_url(self) -> str:
        """Build async database connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance (Singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
