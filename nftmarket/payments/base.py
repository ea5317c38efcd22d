"""
Payment Gateway Protocol

A purchase reserves the buyer's payment in a hold, pays each recipient out
of that hold, then settles. If anything fails before settlement the ledger
rolls the hold back, which reverses every payout already made and returns
the full amount to the buyer.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PaymentGateway(Protocol):
    """Payment operations the marketplace needs for one purchase."""

    def hold(self, payer: str, amount: int) -> str:
        """Reserve ``amount`` from ``payer``. Raises PaymentError on insufficient funds."""
        ...

    def pay(self, hold_id: str, recipient: str, amount: int) -> None:
        """Pay out of a hold. Raises PaymentError if the hold cannot cover it."""
        ...

    def rollback(self, hold_id: str) -> None:
        """Reverse every payout of the hold and refund the payer in full."""
        ...

    def settle(self, hold_id: str) -> None:
        """Close the hold, returning any remainder to the payer."""
        ...
