"""
Marketplace Models

Data structures for fixed-price asset listings, royalty configuration
and completed sales.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field

from nftmarket.config import BASIS_POINTS, PERCENT
from nftmarket.models.base import MarketModel, utc_now


class ListingStatus(str, Enum):
    """Status of a marketplace listing."""
    ACTIVE = "active"
    SOLD = "sold"
    CANCELLED = "cancelled"


class Listing(MarketModel):
    """
    An asset offered for sale at a fixed price.

    The asset sits in marketplace escrow while ``for_sale`` is true.
    """

    listing_id: int = Field(gt=0, description="Sequential listing identifier")
    asset_contract: str = Field(min_length=1, description="Collection reference")
    asset_id: int = Field(ge=0, description="Asset identifier within the collection")
    price: int = Field(ge=0, description="Price in the smallest payment unit")
    seller: str = Field(min_length=1, description="Account that created the listing")
    for_sale: bool = Field(default=True)

    status: ListingStatus = Field(default=ListingStatus.ACTIVE)
    buyer: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    closed_at: datetime | None = None

    @property
    def asset_key(self) -> tuple[str, int]:
        return (self.asset_contract, self.asset_id)


class RoyaltyConfig(MarketModel):
    """Royalty owed to a collection's creator on every sale."""

    asset_contract: str = Field(min_length=1)
    rate: int = Field(ge=0, le=PERCENT, description="Whole percent of sale price")
    recipient: str = Field(min_length=1, description="Account paid on each sale")
    configured_by: str = Field(min_length=1)
    updated_at: datetime = Field(default_factory=utc_now)


class Sale(MarketModel):
    """
    Receipt of a completed purchase.
    """

    listing_id: int = Field(gt=0)
    asset_contract: str
    asset_id: int
    seller: str
    buyer: str

    price: int = Field(ge=0)
    service_fee_bps: int = Field(ge=0, le=BASIS_POINTS)
    royalty_rate: int = Field(ge=0, le=PERCENT)

    # Distribution
    fee_amount: int = Field(ge=0, description="Paid to the fee recipient")
    royalty_amount: int = Field(ge=0, description="Paid to the royalty recipient")
    seller_proceeds: int = Field(ge=0, description="Paid to the seller")
    fee_recipient: str
    royalty_recipient: str | None = None

    sold_at: datetime = Field(default_factory=utc_now)


class MarketplaceStats(MarketModel):
    """
    Overall marketplace statistics.
    """

    total_listings: int = 0
    active_listings: int = 0
    cancelled_listings: int = 0
    total_sales: int = 0
    total_volume: int = 0
    total_fees: int = 0
    total_royalties: int = 0
    service_fee_bps: int = 0

    calculated_at: datetime = Field(default_factory=utc_now)
