"""Application settings with Pydantic validation and environment loading."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Annotated, Dict, Literal, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DSE_LATEST_PRICES_URL = "https://www.dse.com.bd/latest_share_price_scroll_l.php"

FeedFormat = Literal["auto", "html", "json"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "moverbot"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    dry_run: bool = Field(
        default=False,
        description="Record outgoing messages in memory instead of delivering them",
    )

    # Market feed
    feed_url: str = Field(
        default=DSE_LATEST_PRICES_URL, description="Market snapshot feed URL"
    )
    feed_format: FeedFormat = Field(
        default="auto", description="Feed payload format: auto, html or json"
    )
    feed_timeout: float = Field(
        default=20.0, gt=0, le=120, description="Feed request timeout in seconds"
    )
    feed_fetch_attempts: int = Field(
        default=2, ge=1, le=5, description="Fetch attempts per cycle before giving up"
    )
    instrument_url_template: Optional[str] = Field(
        default=None,
        description="Single-instrument feed URL with a {symbol} placeholder",
    )

    # Ranking
    favorite_stocks: Annotated[Tuple[str, ...], NoDecode] = Field(
        default_factory=tuple,
        description="Favorite symbols (comma-separated, case-insensitive)",
    )
    alert_threshold: Decimal = Field(
        default=Decimal("5.0"), ge=0, description="Absolute % change that raises an alert"
    )
    top_limit: int = Field(default=10, ge=1, le=50, description="Gainers/losers list size")

    # Scheduler
    scheduler_enabled: bool = Field(default=True, description="Enable the periodic cycle")
    cycle_interval_seconds: int = Field(
        default=300, ge=5, description="Seconds between market cycles"
    )
    run_on_start: bool = Field(
        default=False, description="Run one cycle immediately after startup"
    )

    # Destinations
    updates_destination: Optional[str] = Field(
        default=None, description="Destination id for gainers/losers/favorites"
    )
    alerts_destination: Optional[str] = Field(
        default=None, description="Destination id for threshold alerts"
    )
    suggestions_destination: Optional[str] = Field(
        default=None, description="Destination id for advisory text"
    )
    destinations: Dict[str, str] = Field(
        default_factory=dict,
        description="Destination id to Apprise URL mapping (JSON)",
    )
    message_max_length: int = Field(
        default=2000, ge=100, description="Gateway message-size limit in characters"
    )
    currency: str = Field(default="BDT", description="Currency label for prices")

    # Advisory
    advice_picks: int = Field(
        default=3, ge=1, le=10, description="Buys/sells to suggest per cycle"
    )

    # Commands
    command_prefix: str = Field(default="!", min_length=1, max_length=3)
    suggestion_channel_id: Optional[str] = Field(
        default=None,
        description="Channel whose plain messages are answered with advice",
    )

    # Webhook server
    host: str = Field(default="0.0.0.0", description="Bind address for the command webhook")
    port: int = Field(default=3000, ge=1, le=65535, description="Command webhook port")

    # Logging
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: str = Field(default="text", description="Log format: json or text")

    @field_validator("favorite_stocks", mode="before")
    @classmethod
    def parse_favorites(cls, v):
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split(",")
        symbols: list[str] = []
        for raw in v:
            symbol = str(raw).strip().upper()
            if symbol and symbol not in symbols:
                symbols.append(symbol)
        return tuple(symbols)

    @field_validator(
        "updates_destination",
        "alerts_destination",
        "suggestions_destination",
        "suggestion_channel_id",
        "instrument_url_template",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"json", "text"}:
            raise ValueError("log_format must be 'json' or 'text'")
        return lower

    @property
    def destination_roles(self) -> Dict[str, str]:
        """Configured destination ids keyed by role (updates, alerts, suggestions)."""
        roles = {
            "updates": self.updates_destination,
            "alerts": self.alerts_destination,
            "suggestions": self.suggestions_destination,
        }
        return {role: dest for role, dest in roles.items() if dest}


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()
