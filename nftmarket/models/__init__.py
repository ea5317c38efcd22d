"""
Marketplace Models

Pydantic models for all domain entities.
"""

from nftmarket.models.base import MarketModel, utc_now
from nftmarket.models.marketplace import (
    Listing,
    ListingStatus,
    MarketplaceStats,
    RoyaltyConfig,
    Sale,
)

__all__ = [
    "MarketModel",
    "utc_now",
    "Listing",
    "ListingStatus",
    "MarketplaceStats",
    "RoyaltyConfig",
    "Sale",
]
