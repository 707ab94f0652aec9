"""
Roulette Feed Service Configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Configuration settings for the Roulette Feed service"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Service config
    service_name: str = Field(default="roulette-feed", description="Service name bound to every log line")
    service_host: str = Field(default="0.0.0.0", description="Bind host")
    service_port: int = Field(default=8020, description="Service port")

    # External feed
    feed_url: str = Field(
        default="https://blaze.bet.br/api/singleplayer-originals/originals/roulette_games/recent/1",
        description="Endpoint returning the most recent roulette result"
    )
    poll_interval_seconds: float = Field(default=2.0, gt=0, description="Polling interval for the feed")
    feed_timeout_seconds: float = Field(default=10.0, gt=0, description="HTTP timeout for one feed fetch")
    poller_enabled: bool = Field(default=True, description="Start the poller on startup")

    # Retention
    max_spins: int = Field(default=2000, ge=1, description="Ledger capacity")
    max_patterns: int = Field(default=5000, ge=1, description="Pattern store capacity")

    # Persistence
    database_path: str = Field(default="./database.json", description="Snapshot document path")
    serialize_writes: bool = Field(
        default=True,
        description="Route every read-modify-write through one lock (False keeps last-writer-wins)"
    )

    # WebSocket
    heartbeat_interval_seconds: float = Field(default=30.0, gt=0, description="PING interval for subscribers")
    ws_send_timeout_seconds: float = Field(default=5.0, gt=0, description="Max time one subscriber send may take")


settings = Settings()
