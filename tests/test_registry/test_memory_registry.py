"""
Tests for the In-Memory Asset Registry

Tests cover:
- Collection deployment and minting
- Ownership and balance queries
- Token and operator approvals
- Custody transfers
"""

import pytest

from nftmarket.errors import NotAuthorizedError, RegistryError
from nftmarket.registry.base import AssetRegistry
from nftmarket.registry.memory import InMemoryAssetRegistry


class TestCollections:
    """Tests for deploying and minting."""

    def test_registry_satisfies_protocol(self, registry):
        assert isinstance(registry, AssetRegistry)

    def test_create_collection(self, registry):
        address = registry.create_collection("MyToken", "TKN", "ABC.com/", owner="alice")

        collection = registry.get_collection(address)
        assert address.startswith("0x")
        assert collection.name == "MyToken"
        assert collection.symbol == "TKN"
        assert registry.collection_owner(address) == "alice"

    def test_explicit_address(self, registry):
        address = registry.create_collection("A", "A", "", owner="alice", address="0xabc")

        assert address == "0xabc"
        with pytest.raises(RegistryError, match="already exists"):
            registry.create_collection("B", "B", "", owner="bob", address="0xabc")

    def test_admin_mint_sequential_ids(self, registry, nft):
        """Token IDs start at 1 and go to the collection owner."""
        first = registry.admin_mint(nft, caller="alice")
        second = registry.admin_mint(nft, caller="alice")

        assert (first, second) == (1, 2)
        assert registry.balance_of(nft, "alice") == 2

    def test_only_owner_mints(self, registry, nft):
        with pytest.raises(NotAuthorizedError):
            registry.admin_mint(nft, caller="bob")

    def test_token_uri(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")

        assert registry.token_uri(nft, token_id) == "ABC.com/1"

    def test_unknown_collection(self, registry):
        with pytest.raises(RegistryError, match="Unknown collection"):
            registry.owner_of("0xnope", 1)

    def test_unknown_asset(self, registry, nft):
        with pytest.raises(RegistryError, match="does not exist"):
            registry.custody_of(nft, 5)


class TestApprovals:
    """Tests for approve and set_approval_for_all."""

    def test_approve_single_asset(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")

        registry.approve(nft, token_id, caller="alice", spender="market")

        assert registry.get_approved(nft, token_id) == "market"
        assert registry.is_transfer_approved(nft, token_id, "market") is True
        assert registry.is_transfer_approved(nft, token_id, "bob") is False

    def test_holder_is_always_approved(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")

        assert registry.is_transfer_approved(nft, token_id, "alice") is True

    def test_non_holder_cannot_approve(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")

        with pytest.raises(NotAuthorizedError):
            registry.approve(nft, token_id, caller="bob", spender="bob")

    def test_operator_approval(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")

        registry.set_approval_for_all(nft, caller="alice", operator="market")
        assert registry.is_transfer_approved(nft, token_id, "market") is True

        registry.set_approval_for_all(nft, caller="alice", operator="market", approved=False)
        assert registry.is_transfer_approved(nft, token_id, "market") is False

    def test_operator_can_approve_on_behalf(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")
        registry.set_approval_for_all(nft, caller="alice", operator="agent")

        registry.approve(nft, token_id, caller="agent", spender="market")

        assert registry.get_approved(nft, token_id) == "market"


class TestTransfers:
    """Tests for transfer_custody."""

    def test_transfer_moves_custody(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")

        registry.transfer_custody(nft, token_id, "alice", "bob")

        assert registry.owner_of(nft, token_id) == "bob"
        assert registry.balance_of(nft, "alice") == 0
        assert registry.balance_of(nft, "bob") == 1

    def test_transfer_requires_holder(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")

        with pytest.raises(RegistryError, match="does not hold"):
            registry.transfer_custody(nft, token_id, "bob", "carol")

        assert registry.owner_of(nft, token_id) == "alice"

    def test_transfer_clears_token_approval(self, registry, nft):
        token_id = registry.admin_mint(nft, caller="alice")
        registry.approve(nft, token_id, caller="alice", spender="market")

        registry.transfer_custody(nft, token_id, "alice", "bob")

        assert registry.get_approved(nft, token_id) is None

    def test_registries_are_independent(self, nft):
        """Separate registry instances share no state."""
        other = InMemoryAssetRegistry()

        with pytest.raises(RegistryError):
            other.collection_owner(nft)
