"""
Marketplace Services

The ledger and the fee calculator it uses.
"""

from nftmarket.services.fees import FeeSplit, calculate_split, validate_rates
from nftmarket.services.marketplace import MarketplaceLedger

__all__ = ["FeeSplit", "MarketplaceLedger", "calculate_split", "validate_rates"]
