"""
Marketplace Errors

Exception hierarchy shared by the ledger, the asset registry adapters and
the payment gateways. Every failure is raised synchronously to the caller
of the failing operation; nothing is retried.
"""


class MarketplaceError(Exception):
    """Base class for all marketplace failures."""

    pass


class NotOwnerError(MarketplaceError):
    """Caller does not hold custody of the asset."""

    pass


class NotApprovedError(MarketplaceError):
    """The marketplace has not been authorized to transfer the asset."""

    pass


class AlreadyListedError(MarketplaceError):
    """The asset already has an active listing."""

    pass


class InvalidPriceError(MarketplaceError):
    """Listing price is outside the accepted range."""

    pass


class ListingNotFoundError(MarketplaceError):
    """No listing was ever assigned this identifier."""

    def __init__(self, listing_id: int) -> None:
        super().__init__(f"Listing not found: {listing_id}")
        self.listing_id = listing_id


class NotForSaleError(MarketplaceError):
    """Listing has already been sold or cancelled."""

    def __init__(self, listing_id: int) -> None:
        super().__init__(f"Listing {listing_id} is not for sale")
        self.listing_id = listing_id


class WrongPriceError(MarketplaceError):
    """Payment does not match the listed price exactly."""

    def __init__(self, listing_id: int, price: int, payment: int) -> None:
        super().__init__(
            f"Listing {listing_id} costs {price}, received {payment}"
        )
        self.listing_id = listing_id
        self.price = price
        self.payment = payment


class NotSellerError(MarketplaceError):
    """Only the seller may withdraw a listing."""

    pass


class NotAuthorizedError(MarketplaceError):
    """Caller may not change marketplace or collection settings."""

    pass


class InvalidRateError(MarketplaceError):
    """Service fee or royalty rate is out of range."""

    pass


class RegistryError(MarketplaceError):
    """The asset registry rejected or failed a call."""

    pass


class PaymentError(MarketplaceError):
    """A hold or disbursement could not be completed."""

    pass


__all__ = [
    "MarketplaceError",
    "NotOwnerError",
    "NotApprovedError",
    "AlreadyListedError",
    "InvalidPriceError",
    "ListingNotFoundError",
    "NotForSaleError",
    "WrongPriceError",
    "NotSellerError",
    "NotAuthorizedError",
    "InvalidRateError",
    "RegistryError",
    "PaymentError",
]
