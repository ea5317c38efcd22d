"""
Base Models and Common Types

Foundation classes for all marketplace models.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(UTC)


class MarketModel(BaseModel):
    """Base model for all marketplace entities with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        validate_assignment=True,
        use_enum_values=True,
    )
