"""
Fee & Royalty Calculator

Splits a sale price between the marketplace, the collection's royalty
recipient and the seller.

All amounts are integers in the smallest payment unit. The fee and the
royalty are each floored independently; the seller receives the remainder,
so the three parts always add up to the price exactly.
"""

from dataclasses import dataclass

from nftmarket.config import BASIS_POINTS, PERCENT
from nftmarket.errors import InvalidRateError


@dataclass(frozen=True)
class FeeSplit:
    """How one sale price is distributed."""
    price: int
    fee_amount: int
    royalty_amount: int
    seller_proceeds: int

    @property
    def total(self) -> int:
        return self.fee_amount + self.royalty_amount + self.seller_proceeds


def validate_service_fee(service_fee_bps: int) -> int:
    if isinstance(service_fee_bps, bool) or not isinstance(service_fee_bps, int):
        raise InvalidRateError(f"Service fee must be an integer, got {service_fee_bps!r}")
    if not 0 <= service_fee_bps <= BASIS_POINTS:
        raise InvalidRateError(
            f"Service fee must be between 0 and {BASIS_POINTS} basis points, "
            f"got {service_fee_bps}"
        )
    return service_fee_bps


def validate_royalty(royalty_percent: int) -> int:
    if isinstance(royalty_percent, bool) or not isinstance(royalty_percent, int):
        raise InvalidRateError(f"Royalty must be an integer, got {royalty_percent!r}")
    if not 0 <= royalty_percent <= PERCENT:
        raise InvalidRateError(
            f"Royalty must be between 0 and {PERCENT} percent, got {royalty_percent}"
        )
    return royalty_percent


def validate_rates(service_fee_bps: int, royalty_percent: int) -> None:
    """
    Check both rates individually and together.

    Raises:
        InvalidRateError: if either rate is out of range or the two combined
            would take more than the whole price.
    """
    validate_service_fee(service_fee_bps)
    validate_royalty(royalty_percent)

    combined_bps = service_fee_bps + royalty_percent * (BASIS_POINTS // PERCENT)
    if combined_bps > BASIS_POINTS:
        raise InvalidRateError(
            f"Service fee ({service_fee_bps} bps) plus royalty ({royalty_percent}%) "
            f"exceeds 100% of the sale price"
        )


def calculate_split(
    price: int,
    service_fee_bps: int,
    royalty_percent: int = 0,
) -> FeeSplit:
    """
    Split a sale price.

    Args:
        price: Sale price, non-negative integer
        service_fee_bps: Marketplace cut in basis points (10000 = 100%)
        royalty_percent: Creator royalty in whole percent (100 = 100%)

    Returns:
        FeeSplit whose parts sum to ``price``
    """
    if isinstance(price, bool) or not isinstance(price, int) or price < 0:
        raise ValueError(f"Price must be a non-negative integer, got {price!r}")
    validate_rates(service_fee_bps, royalty_percent)

    royalty_amount = price * royalty_percent // PERCENT
    fee_amount = price * service_fee_bps // BASIS_POINTS
    seller_proceeds = price - royalty_amount - fee_amount

    return FeeSplit(
        price=price,
        fee_amount=fee_amount,
        royalty_amount=royalty_amount,
        seller_proceeds=seller_proceeds,
    )


__all__ = [
    "FeeSplit",
    "calculate_split",
    "validate_rates",
    "validate_royalty",
    "validate_service_fee",
]
