# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from functools import lru_cache
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from giftsniper.domain import DEFAULT_ATTEMPT_LIMIT, DestinationRequest


class ResilienceConfig(BaseModel):
    default_timeout: float = Field(15.0, ge=0.1, alias="RESILIENCE_TIMEOUT")
    max_retries: int = Field(3, ge=0, alias="RESILIENCE_RETRIES")
    backoff_base: float = Field(0.5, ge=0.1, alias="RESILIENCE_BACKOFF_BASE")
    backoff_cap: float = Field(8.0, ge=0.1, alias="RESILIENCE_BACKOFF_CAP")
    circuit_fail_threshold: int = Field(5, ge=1, alias="RESILIENCE_CIRCUIT_THRESHOLD")
    circuit_reset_timeout: float = Field(60.0, ge=1.0, alias="RESILIENCE_CIRCUIT_RESET")

    model_config = ConfigDict(validate_by_name=True)


def _resilience_config_factory() -> ResilienceConfig:
    return ResilienceConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    api_id: int = Field(alias="API_ID")
    api_hash: str = Field(alias="API_HASH")
    phone_numbers: Annotated[list[str], NoDecode] = Field(alias="PHONE_NUMBERS")
    admin_usernames: Annotated[list[str], NoDecode] = Field(
        default_factory=list, alias="ADMIN_USERNAMES"
    )
    bot_token: str = Field(alias="BOT_TOKEN")
    database_url: str = Field("sqlite:///giftsniper.db", alias="DATABASE_URL")
    session_encryption_key: str | None = Field(None, alias="SESSION_ENCRYPTION_KEY")

    initial_gifts_hash: int = Field(0, alias="INITIAL_GIFTS_HASH")
    max_eligible_supply: int = Field(alias="MAX_SUPPLY", ge=1)
    include_non_bounded_items: bool = Field(False, alias="INCLUDE_NON_BOUNDED_ITEMS")
    purchase_enabled: bool = Field(False, alias="PURCHASE_ENABLED")
    per_item_attempt_limit: int | None = Field(
        DEFAULT_ATTEMPT_LIMIT, ge=1, alias="PER_ITEM_ATTEMPT_LIMIT"
    )
    poll_interval: float = Field(2.0, ge=0.1, alias="POLL_INTERVAL")
    dest_channel_username: str | None = Field(None, alias="DEST_CHANNEL_USERNAME")
    gift_to_destination: bool = Field(False, alias="GIFT_TO_DESTINATION")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")
    metrics_port: int | None = Field(None, ge=1, le=65535, alias="METRICS_PORT")

    resilience: ResilienceConfig = Field(default_factory=_resilience_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        validate_by_name=True,
        extra="ignore",
    )

    @field_validator("phone_numbers", "admin_usernames", mode="before")
    @classmethod
    def _parse_list(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("admin_usernames", mode="after")
    @classmethod
    def _strip_at(cls, value: list[str]) -> list[str]:
        return [name.lstrip("@") for name in value]

    @field_validator("phone_numbers", mode="after")
    @classmethod
    def _require_phone(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one phone number is required")
        return value

    @field_validator(
        "include_non_bounded_items", "purchase_enabled", "gift_to_destination", mode="before"
    )
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)

    @field_validator("per_item_attempt_limit", mode="before")
    @classmethod
    def _parse_limit(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def destination(self) -> DestinationRequest:
        return DestinationRequest.parse(self.dest_channel_username)


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = ["AppConfig", "ResilienceConfig", "load_config"]
