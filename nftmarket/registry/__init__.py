"""
Asset Registry

Custody interface consumed by the marketplace and an in-memory
implementation of it.
"""

from nftmarket.registry.base import AssetRegistry
from nftmarket.registry.memory import Collection, InMemoryAssetRegistry

__all__ = ["AssetRegistry", "Collection", "InMemoryAssetRegistry"]
