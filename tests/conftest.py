"""
NFT Marketplace - Test Fixtures

Shared pytest fixtures for all test modules.
"""

from __future__ import annotations

import os

import pytest

os.environ["APP_ENV"] = "testing"

from nftmarket.payments.memory import InMemoryPaymentGateway
from nftmarket.registry.memory import InMemoryAssetRegistry
from nftmarket.services.marketplace import MarketplaceLedger

ADMIN = "admin"
MARKET = "market-escrow"
CREATOR = "alice"
BUYER = "bob"


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def registry() -> InMemoryAssetRegistry:
    """Create an empty in-memory asset registry."""
    return InMemoryAssetRegistry()


@pytest.fixture
def payments() -> InMemoryPaymentGateway:
    """Create an in-memory payment gateway with no balances."""
    return InMemoryPaymentGateway()


@pytest.fixture
def nft(registry: InMemoryAssetRegistry) -> str:
    """Deploy a collection owned by the creator."""
    return registry.create_collection("MyToken", "TKN", "ABC.com/", owner=CREATOR)


# =============================================================================
# Ledger
# =============================================================================


@pytest.fixture
def ledger(
    registry: InMemoryAssetRegistry, payments: InMemoryPaymentGateway
) -> MarketplaceLedger:
    """Create a ledger with a 2.5% service fee."""
    return MarketplaceLedger(
        registry,
        payments,
        admin=ADMIN,
        address=MARKET,
        service_fee_bps=250,
    )


@pytest.fixture
def minted(registry: InMemoryAssetRegistry, nft: str, ledger: MarketplaceLedger) -> int:
    """Mint one asset to the creator and approve the ledger to move it."""
    token_id = registry.admin_mint(nft, caller=CREATOR)
    registry.approve(nft, token_id, caller=CREATOR, spender=ledger.address)
    return token_id


@pytest.fixture
def listed(ledger: MarketplaceLedger, nft: str, minted: int) -> int:
    """List the minted asset at 1000 units and return the listing ID."""
    return ledger.add_item_to_market(nft, minted, 1_000, caller=CREATOR)
