"""
In-Memory Asset Registry

A self-contained registry of NFT collections: deploy a collection, mint
into it, approve spenders and move custody. It mirrors the usual
non-fungible token contract surface (owner_of, balance_of, approve,
set_approval_for_all) closely enough to stand in for a real chain in tests
and local runs.

Usage:
    registry = InMemoryAssetRegistry()
    nft = registry.create_collection("MyToken", "TKN", "abc.com/", owner="alice")
    token_id = registry.admin_mint(nft, caller="alice")
    registry.approve(nft, token_id, caller="alice", spender=ledger.address)
"""

import threading
from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from nftmarket.errors import NotAuthorizedError, RegistryError

logger = structlog.get_logger(__name__)


@dataclass
class Collection:
    """One deployed asset collection."""
    address: str
    name: str
    symbol: str
    base_uri: str
    owner: str
    next_token_id: int = 1
    owners: dict[int, str] = field(default_factory=dict)
    token_approvals: dict[int, str] = field(default_factory=dict)
    operator_approvals: dict[str, set[str]] = field(default_factory=dict)


class InMemoryAssetRegistry:
    """
    Process-local asset registry.

    Implements the AssetRegistry protocol plus the minting and approval
    calls a collection owner or holder would make directly.
    """

    def __init__(self) -> None:
        self._collections: dict[str, Collection] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # Collections
    # =========================================================================

    def create_collection(
        self,
        name: str,
        symbol: str,
        base_uri: str,
        owner: str,
        address: str | None = None,
    ) -> str:
        """Deploy a collection and return its address."""
        address = address or f"0x{uuid4().hex[:40]}"
        with self._lock:
            if address in self._collections:
                raise RegistryError(f"Collection already exists: {address}")
            self._collections[address] = Collection(
                address=address,
                name=name,
                symbol=symbol,
                base_uri=base_uri,
                owner=owner,
            )
        logger.info("collection_created", asset_contract=address, name=name, owner=owner)
        return address

    def get_collection(self, asset_contract: str) -> Collection:
        collection = self._collections.get(asset_contract)
        if collection is None:
            raise RegistryError(f"Unknown collection: {asset_contract}")
        return collection

    def collection_owner(self, asset_contract: str) -> str:
        return self.get_collection(asset_contract).owner

    def admin_mint(self, asset_contract: str, caller: str) -> int:
        """Mint the next token to the collection owner."""
        with self._lock:
            collection = self.get_collection(asset_contract)
            if caller != collection.owner:
                raise NotAuthorizedError("Only the collection owner can mint")
            token_id = collection.next_token_id
            collection.next_token_id += 1
            collection.owners[token_id] = caller
        logger.debug("asset_minted", asset_contract=asset_contract, asset_id=token_id)
        return token_id

    # =========================================================================
    # Queries
    # =========================================================================

    def owner_of(self, asset_contract: str, asset_id: int) -> str:
        collection = self.get_collection(asset_contract)
        owner = collection.owners.get(asset_id)
        if owner is None:
            raise RegistryError(f"Asset {asset_id} does not exist in {asset_contract}")
        return owner

    def custody_of(self, asset_contract: str, asset_id: int) -> str:
        return self.owner_of(asset_contract, asset_id)

    def balance_of(self, asset_contract: str, account: str) -> int:
        collection = self.get_collection(asset_contract)
        return sum(1 for owner in collection.owners.values() if owner == account)

    def token_uri(self, asset_contract: str, asset_id: int) -> str:
        self.owner_of(asset_contract, asset_id)
        return f"{self.get_collection(asset_contract).base_uri}{asset_id}"

    def get_approved(self, asset_contract: str, asset_id: int) -> str | None:
        self.owner_of(asset_contract, asset_id)
        return self.get_collection(asset_contract).token_approvals.get(asset_id)

    def is_approved_for_all(self, asset_contract: str, owner: str, operator: str) -> bool:
        collection = self.get_collection(asset_contract)
        return operator in collection.operator_approvals.get(owner, set())

    def is_transfer_approved(
        self, asset_contract: str, asset_id: int, spender: str
    ) -> bool:
        owner = self.owner_of(asset_contract, asset_id)
        return (
            spender == owner
            or self.get_approved(asset_contract, asset_id) == spender
            or self.is_approved_for_all(asset_contract, owner, spender)
        )

    # =========================================================================
    # Approvals and transfers
    # =========================================================================

    def approve(
        self, asset_contract: str, asset_id: int, caller: str, spender: str
    ) -> None:
        """Let ``spender`` move one asset held by ``caller``."""
        with self._lock:
            owner = self.owner_of(asset_contract, asset_id)
            if caller != owner and not self.is_approved_for_all(asset_contract, owner, caller):
                raise NotAuthorizedError("Only the holder can approve a transfer")
            self.get_collection(asset_contract).token_approvals[asset_id] = spender

    def set_approval_for_all(
        self, asset_contract: str, caller: str, operator: str, approved: bool = True
    ) -> None:
        """Let ``operator`` move every asset ``caller`` holds in the collection."""
        with self._lock:
            operators = self.get_collection(asset_contract).operator_approvals.setdefault(
                caller, set()
            )
            if approved:
                operators.add(operator)
            else:
                operators.discard(operator)

    def transfer_custody(
        self,
        asset_contract: str,
        asset_id: int,
        from_account: str,
        to_account: str,
    ) -> None:
        with self._lock:
            owner = self.owner_of(asset_contract, asset_id)
            if owner != from_account:
                raise RegistryError(
                    f"{from_account} does not hold asset {asset_id} in {asset_contract}"
                )
            collection = self.get_collection(asset_contract)
            collection.owners[asset_id] = to_account
            collection.token_approvals.pop(asset_id, None)
        logger.debug(
            "custody_transferred",
            asset_contract=asset_contract,
            asset_id=asset_id,
            from_account=from_account,
            to_account=to_account,
        )


__all__ = ["Collection", "InMemoryAssetRegistry"]
