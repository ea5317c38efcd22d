"""
Asset Registry Protocol

The marketplace never tracks custody itself. It asks an asset registry who
holds an asset, whether the marketplace may move it, and to move it.
Any object with these methods can back a ledger, which keeps the ledger
testable against an in-memory registry or a mock.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AssetRegistry(Protocol):
    """Custody operations the marketplace needs from an asset registry."""

    def custody_of(self, asset_contract: str, asset_id: int) -> str:
        """Account currently holding the asset. Raises RegistryError if unknown."""
        ...

    def is_transfer_approved(
        self, asset_contract: str, asset_id: int, spender: str
    ) -> bool:
        """Whether ``spender`` may move the asset on the holder's behalf."""
        ...

    def transfer_custody(
        self,
        asset_contract: str,
        asset_id: int,
        from_account: str,
        to_account: str,
    ) -> None:
        """Move the asset. Raises RegistryError if ``from_account`` is not the holder."""
        ...

    def collection_owner(self, asset_contract: str) -> str:
        """Account allowed to configure the collection (its creator)."""
        ...
