"""
Marketplace Configuration Management

Centralized configuration using Pydantic Settings for type-safe environment
variable loading with validation.

Rates are fixed-point integers: the service fee is expressed in basis points
(10000 = 100%), royalties in whole percent (100 = 100%).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASIS_POINTS = 10_000
PERCENT = 100


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════
    # APPLICATION
    # ═══════════════════════════════════════════════════════════════
    app_name: str = Field(default="nftmarket", description="Application name")
    app_env: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_json: bool = Field(default=False, description="Render logs as JSON")

    # ═══════════════════════════════════════════════════════════════
    # MARKETPLACE
    # ═══════════════════════════════════════════════════════════════
    marketplace_admin: str = Field(
        default="marketplace-admin",
        description="Account allowed to change the service fee; receives fees",
    )
    marketplace_address: str = Field(
        default="marketplace-escrow",
        description="Account that holds listed assets in escrow",
    )
    default_service_fee_bps: int = Field(
        default=250,
        ge=0,
        le=BASIS_POINTS,
        description="Initial service fee in basis points (250 = 2.5%)",
    )
    allow_free_listings: bool = Field(
        default=True, description="Accept listings with a price of zero"
    )

    @field_validator("marketplace_admin", "marketplace_address")
    @classmethod
    def validate_account(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Account identifiers must not be empty")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton settings instance
settings = get_settings()
