"""Application configuration management."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from walletwatch.cursor import CursorPolicy
from walletwatch.models import normalize_address

CHAT_ID_PATTERN = re.compile(r"-?\d+")
CHANNEL_PATTERN = re.compile(r"@[A-Za-z][A-Za-z0-9_]{3,}")


class WalletEntry(BaseModel):
    """One watched wallet as written in ``WATCHED_WALLETS`` or ``wallets.json``."""

    name: str = Field(..., min_length=1)
    address: str

    @field_validator("address")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_address(value)


class TokenEntry(BaseModel):
    """A token contract whose balance is appended to alerts."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(..., min_length=1)
    contract_address: str = Field(..., alias="contractAddress")
    decimals: int = Field(default=18, ge=0, le=255)

    @field_validator("contract_address")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_address(value)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment or `.env`."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    telegram_bot_token: str = Field(..., alias="TELEGRAM_BOT_TOKEN", min_length=1)
    telegram_chat_id: Union[int, str] = Field(..., alias="TELEGRAM_CHAT_ID")
    etherscan_api_key: str = Field(..., alias="ETHERSCAN_API_KEY", min_length=1)

    etherscan_api_url: AnyHttpUrl = Field(
        default="https://api.etherscan.io/v2/api",
        alias="ETHERSCAN_API_URL",
    )
    chain_id: int = Field(default=1, alias="CHAIN_ID", ge=1)
    explorer_tx_url: str = Field(
        default="https://etherscan.io/tx/",
        alias="EXPLORER_TX_URL",
    )
    native_symbol: str = Field(default="ETH", alias="NATIVE_SYMBOL")

    check_interval_seconds: int = Field(
        default=60,
        alias="CHECK_INTERVAL_SECONDS",
        ge=5,
        le=86400,
    )
    lookback_window_seconds: int = Field(
        default=3600,
        alias="LOOKBACK_WINDOW_SECONDS",
        ge=0,
    )
    fetch_timeout_seconds: float = Field(
        default=15.0,
        alias="FETCH_TIMEOUT_SECONDS",
        gt=0,
        le=120,
    )

    cursor_policy: CursorPolicy = Field(
        default=CursorPolicy.BLOCK_GATED, alias="CURSOR_POLICY"
    )
    advance_after_dispatch: bool = Field(default=True, alias="ADVANCE_AFTER_DISPATCH")
    surface_passthrough: bool = Field(default=True, alias="SURFACE_PASSTHROUGH")
    skip_history: bool = Field(default=False, alias="SKIP_HISTORY")

    watched_wallets: List[WalletEntry] = Field(
        default_factory=list, alias="WATCHED_WALLETS"
    )
    wallets_file: Optional[Path] = Field(
        default=Path("wallets.json"), alias="WALLETS_FILE"
    )
    tracked_tokens: List[TokenEntry] = Field(
        default_factory=list, alias="TRACKED_TOKENS"
    )
    balance_summary_enabled: bool = Field(
        default=False, alias="BALANCE_SUMMARY_ENABLED"
    )

    telegram_update_mode: Literal["polling", "webhook"] = Field(
        default="polling", alias="TELEGRAM_UPDATE_MODE"
    )
    webhook_url: Optional[AnyHttpUrl] = Field(default=None, alias="WEBHOOK_URL")
    webhook_listen: str = Field(default="0.0.0.0", alias="WEBHOOK_LISTEN")
    webhook_port: int = Field(default=8443, alias="WEBHOOK_PORT", ge=1, le=65535)

    health_host: str = Field(default="0.0.0.0", alias="HEALTH_HOST")
    health_port: int = Field(default=3000, alias="HEALTH_PORT", ge=1, le=65535)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, alias="LOG_FILE")

    @field_validator("watched_wallets", "tracked_tokens", mode="before")
    @classmethod
    def _empty_list(cls, value: Any) -> Any:
        if value in (None, ""):
            return []
        return value

    @field_validator("telegram_chat_id", mode="before")
    @classmethod
    def _chat_destination(cls, value: Any) -> Any:
        """Accept a numeric chat id or an ``@channelname``."""
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        text = str(value).strip()
        if CHAT_ID_PATTERN.fullmatch(text):
            return int(text)
        if CHANNEL_PATTERN.fullmatch(text):
            return text
        raise ValueError("TELEGRAM_CHAT_ID must be a numeric id or @channelname")

    @field_validator("log_file", mode="before")
    @classmethod
    def _empty_path(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("explorer_tx_url")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        value = value.strip()
        return value if value.endswith("/") else f"{value}/"

    @model_validator(mode="after")
    def _check_webhook(self) -> "Settings":
        if self.telegram_update_mode == "webhook" and self.webhook_url is None:
            raise ValueError("WEBHOOK_URL is required when TELEGRAM_UPDATE_MODE=webhook")
        return self

    @property
    def lookback_seconds(self) -> Optional[int]:
        return self.lookback_window_seconds or None


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Return cached Settings instance, raising a helpful message on failure."""
    try:
        return Settings()
    except (
        ValidationError
    ) as exc:  # pragma: no cover - configuration failure visible on boot
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


__all__ = ["Settings", "TokenEntry", "WalletEntry", "load_settings"]
