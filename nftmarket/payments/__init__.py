"""
Payments

Payment gateway interface and an in-memory implementation with
reversible holds.
"""

from nftmarket.payments.base import PaymentGateway
from nftmarket.payments.memory import HoldStatus, InMemoryPaymentGateway, PaymentHold

__all__ = ["PaymentGateway", "HoldStatus", "InMemoryPaymentGateway", "PaymentHold"]
