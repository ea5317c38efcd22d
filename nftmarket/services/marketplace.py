"""
Marketplace Ledger

Handles fixed-price listings, purchases and cancellations, and the service
fee and royalty settings that decide how each sale is split.

Listed assets are held in escrow by the marketplace account until they are
sold (custody moves to the buyer) or the listing is cancelled (custody
returns to the seller). Every transition on a listing runs under that
listing's lock; a purchase either completes every payout and the custody
move, or leaves balances, custody and the listing as they were.
"""

import threading
from collections.abc import Callable, Hashable
from typing import Any, TypeVar

import structlog

from nftmarket.config import Settings, get_settings
from nftmarket.errors import (
    AlreadyListedError,
    InvalidPriceError,
    ListingNotFoundError,
    MarketplaceError,
    NotApprovedError,
    NotAuthorizedError,
    NotForSaleError,
    NotOwnerError,
    NotSellerError,
    PaymentError,
    RegistryError,
    WrongPriceError,
)
from nftmarket.models.base import utc_now
from nftmarket.models.marketplace import (
    Listing,
    ListingStatus,
    MarketplaceStats,
    RoyaltyConfig,
    Sale,
)
from nftmarket.payments.base import PaymentGateway
from nftmarket.registry.base import AssetRegistry
from nftmarket.services.fees import (
    FeeSplit,
    calculate_split,
    validate_rates,
    validate_service_fee,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Low-level failures a collaborator may raise instead of a MarketplaceError
COLLABORATOR_ERRORS = (ValueError, ConnectionError, TimeoutError, OSError)


class MarketplaceLedger:
    """
    Central ledger for marketplace operations.

    Example:
        ```python
        ledger = MarketplaceLedger(registry, payments, admin="ops")
        registry.approve(nft, 1, caller="alice", spender=ledger.address)
        listing_id = ledger.add_item_to_market(nft, 1, 1_000, caller="alice")
        sale = ledger.buy_item(listing_id, buyer="bob", payment_amount=1_000)
        ```
    """

    def __init__(
        self,
        registry: AssetRegistry,
        payments: PaymentGateway,
        admin: str | None = None,
        address: str | None = None,
        service_fee_bps: int | None = None,
        allow_free_listings: bool | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the ledger.

        Args:
            registry: Asset registry that tracks custody
            payments: Gateway used to hold and disburse buyer payments
            admin: Account allowed to set the service fee; receives fees
            address: Account that holds listed assets in escrow
            service_fee_bps: Initial service fee in basis points
            allow_free_listings: Accept zero-price listings
            settings: Configuration supplying any default not passed explicitly
        """
        config = settings or get_settings()

        self.registry = registry
        self.payments = payments
        self.admin = admin or config.marketplace_admin
        self.address = address or config.marketplace_address
        self.allow_free_listings = (
            config.allow_free_listings if allow_free_listings is None else allow_free_listings
        )
        self._service_fee_bps = validate_service_fee(
            config.default_service_fee_bps if service_fee_bps is None else service_fee_bps
        )

        self._listings: dict[int, Listing] = {}
        self._active_by_asset: dict[tuple[str, int], int] = {}
        self._royalties: dict[str, RoyaltyConfig] = {}
        self._sales: list[Sale] = []
        self._next_listing_id = 1

        # Per-listing and per-asset locks, created on demand under the global lock
        self._locks: dict[Hashable, threading.Lock] = {}
        self._global_lock = threading.Lock()
        self._config_lock = threading.Lock()

    # =========================================================================
    # Listings
    # =========================================================================

    def add_item_to_market(
        self,
        asset_contract: str,
        asset_id: int,
        price: int,
        caller: str,
    ) -> int:
        """
        List an asset for sale and move it into escrow.

        Returns:
            The new listing ID

        Raises:
            InvalidPriceError: price is negative, or zero while free listings are off
            AlreadyListedError: the asset already has an active listing
            NotOwnerError: caller does not hold the asset
            NotApprovedError: the marketplace may not transfer the asset
            RegistryError: the custody move failed
        """
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise InvalidPriceError(f"Price must be a non-negative integer, got {price!r}")
        if price == 0 and not self.allow_free_listings:
            raise InvalidPriceError("Free listings are disabled")

        asset_key = (asset_contract, asset_id)
        with self._get_lock(("asset", *asset_key)):
            if asset_key in self._active_by_asset:
                raise AlreadyListedError(
                    f"Asset {asset_id} in {asset_contract} is already listed "
                    f"as {self._active_by_asset[asset_key]}"
                )

            holder = self._call_registry(
                "custody_of", self.registry.custody_of, asset_contract, asset_id
            )
            if holder != caller:
                raise NotOwnerError(f"{caller} does not own asset {asset_id} in {asset_contract}")

            approved = self._call_registry(
                "is_transfer_approved",
                self.registry.is_transfer_approved,
                asset_contract,
                asset_id,
                self.address,
            )
            if not approved:
                raise NotApprovedError(
                    f"Marketplace is not approved to transfer asset {asset_id} in {asset_contract}"
                )

            # Validated before custody moves; the real ID is assigned once it has
            listing = Listing(
                listing_id=self._next_listing_id,
                asset_contract=asset_contract,
                asset_id=asset_id,
                price=price,
                seller=caller,
            )

            self._call_registry(
                "transfer_custody",
                self.registry.transfer_custody,
                asset_contract,
                asset_id,
                caller,
                self.address,
            )

            with self._global_lock:
                listing_id = self._next_listing_id
                self._next_listing_id += 1
                listing.listing_id = listing_id
                self._listings[listing_id] = listing
                self._active_by_asset[asset_key] = listing_id

        logger.info(
            "listing_created",
            listing_id=listing_id,
            asset_contract=asset_contract,
            asset_id=asset_id,
            price=price,
            seller=caller,
        )
        return listing_id

    def get_item(self, listing_id: int) -> Listing:
        """Snapshot of a listing. Raises ListingNotFoundError if never assigned."""
        return self._require_listing(listing_id).model_copy()

    def get_listings(
        self,
        seller: str | None = None,
        for_sale: bool | None = None,
        asset_contract: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Listing]:
        """Get listings with optional filters, ordered by listing ID."""
        with self._global_lock:
            listings = [self._listings[i] for i in sorted(self._listings)]

        if seller is not None:
            listings = [l for l in listings if l.seller == seller]
        if for_sale is not None:
            listings = [l for l in listings if l.for_sale == for_sale]
        if asset_contract is not None:
            listings = [l for l in listings if l.asset_contract == asset_contract]

        return [l.model_copy() for l in listings[offset : offset + limit]]

    def cancel_sale_from_market(self, listing_id: int, caller: str) -> None:
        """
        Withdraw a listing and return the asset to its seller.

        Raises:
            ListingNotFoundError: unknown listing
            NotSellerError: caller is not the seller
            NotForSaleError: listing already sold or cancelled
            RegistryError: the custody move failed
        """
        listing = self._require_listing(listing_id)
        self._check_cancellable(listing, caller)

        with self._get_lock(("listing", listing_id)):
            self._check_cancellable(listing, caller)

            with self._get_lock(("asset", *listing.asset_key)):
                self._call_registry(
                    "transfer_custody",
                    self.registry.transfer_custody,
                    listing.asset_contract,
                    listing.asset_id,
                    self.address,
                    listing.seller,
                )

                listing.for_sale = False
                listing.status = ListingStatus.CANCELLED
                listing.closed_at = utc_now()
                with self._global_lock:
                    self._active_by_asset.pop(listing.asset_key, None)

            self._release_listing_lock(listing_id)

        logger.info("listing_cancelled", listing_id=listing_id, seller=caller)

    # =========================================================================
    # Purchases
    # =========================================================================

    def buy_item(self, listing_id: int, buyer: str, payment_amount: int) -> Sale:
        """
        Buy a listed asset for exactly its price.

        The payment is held, split between royalty recipient, fee recipient
        and seller, and the asset moves from escrow to the buyer. Any failure
        reverses every step taken.

        Returns:
            Sale receipt

        Raises:
            ListingNotFoundError: unknown listing
            NotForSaleError: listing already sold or cancelled
            WrongPriceError: payment differs from the price
            PaymentError: the buyer cannot pay or a payout failed
            RegistryError: the custody move failed
        """
        listing = self._require_listing(listing_id)
        # Closed listings never reopen, so they are turned away before locking
        if not listing.for_sale:
            raise NotForSaleError(listing_id)

        with self._get_lock(("listing", listing_id)):
            if not listing.for_sale:
                raise NotForSaleError(listing_id)
            if payment_amount != listing.price:
                raise WrongPriceError(listing_id, listing.price, payment_amount)

            with self._config_lock:
                service_fee_bps = self._service_fee_bps
                royalty = self._royalties.get(listing.asset_contract)

            split = calculate_split(
                listing.price, service_fee_bps, royalty.rate if royalty else 0
            )

            sale = Sale(
                listing_id=listing.listing_id,
                asset_contract=listing.asset_contract,
                asset_id=listing.asset_id,
                seller=listing.seller,
                buyer=buyer,
                price=listing.price,
                service_fee_bps=service_fee_bps,
                royalty_rate=royalty.rate if royalty else 0,
                fee_amount=split.fee_amount,
                royalty_amount=split.royalty_amount,
                seller_proceeds=split.seller_proceeds,
                fee_recipient=self.admin,
                royalty_recipient=royalty.recipient if royalty else None,
            )

            with self._get_lock(("asset", *listing.asset_key)):
                self._settle_sale(listing, buyer, split, royalty)

                listing.for_sale = False
                listing.status = ListingStatus.SOLD
                listing.buyer = buyer
                listing.closed_at = sale.sold_at
                with self._global_lock:
                    self._active_by_asset.pop(listing.asset_key, None)
                    self._sales.append(sale)

            self._release_listing_lock(listing_id)

        logger.info(
            "listing_sold",
            listing_id=listing_id,
            buyer=buyer,
            seller=sale.seller,
            price=sale.price,
            fee_amount=sale.fee_amount,
            royalty_amount=sale.royalty_amount,
            seller_proceeds=sale.seller_proceeds,
        )
        return sale

    def _settle_sale(
        self,
        listing: Listing,
        buyer: str,
        split: FeeSplit,
        royalty: RoyaltyConfig | None,
    ) -> None:
        """Hold the payment, pay everyone and hand over the asset, or undo it all."""
        hold_id = self._call_payments("hold", self.payments.hold, buyer, split.price)
        custody_moved = False

        try:
            if royalty and split.royalty_amount:
                self._call_payments(
                    "pay", self.payments.pay, hold_id, royalty.recipient, split.royalty_amount
                )
            if split.fee_amount:
                self._call_payments(
                    "pay", self.payments.pay, hold_id, self.admin, split.fee_amount
                )
            if split.seller_proceeds:
                self._call_payments(
                    "pay", self.payments.pay, hold_id, listing.seller, split.seller_proceeds
                )

            self._call_registry(
                "transfer_custody",
                self.registry.transfer_custody,
                listing.asset_contract,
                listing.asset_id,
                self.address,
                buyer,
            )
            custody_moved = True

            self._call_payments("settle", self.payments.settle, hold_id)
        except Exception as e:
            logger.warning(
                "sale_rolled_back",
                listing_id=listing.listing_id,
                buyer=buyer,
                error=str(e),
                error_type=type(e).__name__,
            )
            try:
                if custody_moved:
                    self._call_registry(
                        "transfer_custody",
                        self.registry.transfer_custody,
                        listing.asset_contract,
                        listing.asset_id,
                        buyer,
                        self.address,
                    )
            finally:
                # The buyer is refunded even when custody cannot be restored
                self._call_payments("rollback", self.payments.rollback, hold_id)
            raise

    def get_sales(
        self,
        buyer: str | None = None,
        seller: str | None = None,
        limit: int = 50,
    ) -> list[Sale]:
        """Get completed sales, newest first."""
        with self._global_lock:
            sales = list(reversed(self._sales))
        if buyer is not None:
            sales = [s for s in sales if s.buyer == buyer]
        if seller is not None:
            sales = [s for s in sales if s.seller == seller]
        return sales[:limit]

    # =========================================================================
    # Fees and royalties
    # =========================================================================

    def get_service_fee(self) -> int:
        """Current service fee in basis points."""
        return self._service_fee_bps

    def set_service_fee(self, rate: int, caller: str) -> None:
        """
        Change the service fee (basis points). Admin only.

        The new fee must leave room for the largest configured royalty.
        """
        if caller != self.admin:
            raise NotAuthorizedError("Only the marketplace admin can set the service fee")

        with self._config_lock:
            highest_royalty = max((c.rate for c in self._royalties.values()), default=0)
            validate_rates(rate, highest_royalty)
            previous = self._service_fee_bps
            self._service_fee_bps = rate

        logger.info("service_fee_updated", previous_bps=previous, service_fee_bps=rate)

    def get_royalties(self, asset_contract: str) -> int:
        """Royalty rate (whole percent) for a collection, 0 if unconfigured."""
        config = self._royalties.get(asset_contract)
        return config.rate if config else 0

    def get_royalty_config(self, asset_contract: str) -> RoyaltyConfig | None:
        config = self._royalties.get(asset_contract)
        return config.model_copy() if config else None

    def set_royalties(
        self,
        asset_contract: str,
        rate: int,
        caller: str,
        recipient: str | None = None,
    ) -> RoyaltyConfig:
        """
        Configure a collection's royalty. Collection owner only.

        Args:
            asset_contract: Collection reference
            rate: Whole percent of each sale price
            caller: Account making the change
            recipient: Account paid the royalty, defaults to ``caller``
        """
        owner = self._call_registry(
            "collection_owner", self.registry.collection_owner, asset_contract
        )
        if caller != owner:
            raise NotAuthorizedError(
                f"Only the owner of {asset_contract} can set its royalties"
            )

        with self._config_lock:
            validate_rates(self._service_fee_bps, rate)
            config = RoyaltyConfig(
                asset_contract=asset_contract,
                rate=rate,
                recipient=recipient or caller,
                configured_by=caller,
            )
            self._royalties[asset_contract] = config

        logger.info(
            "royalties_updated",
            asset_contract=asset_contract,
            rate=rate,
            recipient=config.recipient,
        )
        return config.model_copy()

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_marketplace_stats(self) -> MarketplaceStats:
        """Get overall marketplace statistics."""
        with self._global_lock:
            listings = list(self._listings.values())
            sales = list(self._sales)

        return MarketplaceStats(
            total_listings=len(listings),
            active_listings=sum(1 for l in listings if l.for_sale),
            cancelled_listings=sum(1 for l in listings if l.status == ListingStatus.CANCELLED),
            total_sales=len(sales),
            total_volume=sum(s.price for s in sales),
            total_fees=sum(s.fee_amount for s in sales),
            total_royalties=sum(s.royalty_amount for s in sales),
            service_fee_bps=self._service_fee_bps,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_lock(self, key: Hashable) -> threading.Lock:
        with self._global_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _release_listing_lock(self, listing_id: int) -> None:
        """Forget a closed listing's lock. Closed listings never reopen."""
        with self._global_lock:
            self._locks.pop(("listing", listing_id), None)

    @staticmethod
    def _check_cancellable(listing: Listing, caller: str) -> None:
        if caller != listing.seller:
            raise NotSellerError(f"Only the seller can cancel listing {listing.listing_id}")
        if not listing.for_sale:
            raise NotForSaleError(listing.listing_id)

    def _require_listing(self, listing_id: int) -> Listing:
        listing = self._listings.get(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    def _call_registry(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except MarketplaceError:
            raise
        except COLLABORATOR_ERRORS as e:
            logger.error("registry_call_failed", operation=operation, error=str(e))
            raise RegistryError(f"Registry {operation} failed: {e}") from e

    def _call_payments(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except MarketplaceError:
            raise
        except COLLABORATOR_ERRORS as e:
            logger.error("payment_call_failed", operation=operation, error=str(e))
            raise PaymentError(f"Payment {operation} failed: {e}") from e


__all__ = ["MarketplaceLedger"]
