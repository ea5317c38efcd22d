"""
NFT Marketplace Ledger

Fixed-price listings for non-fungible assets with escrowed custody,
service fees and creator royalties.
"""

__version__ = "1.0.0"

from nftmarket.config import settings

__all__ = ["settings", "__version__"]
