"""
In-Memory Payment Gateway

Account balances kept in process, with a payout log per hold so a failed
purchase can be reversed exactly.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

import structlog

from nftmarket.errors import PaymentError

logger = structlog.get_logger(__name__)


class HoldStatus(str, Enum):
    """Lifecycle of a payment hold."""
    OPEN = "open"
    SETTLED = "settled"
    ROLLED_BACK = "rolled_back"


@dataclass
class PaymentHold:
    """Funds reserved from one payer for one purchase."""
    id: str
    payer: str
    amount: int
    remaining: int
    payouts: list[tuple[str, int]] = field(default_factory=list)
    status: HoldStatus = HoldStatus.OPEN


class InMemoryPaymentGateway:
    """
    Process-local balances implementing the PaymentGateway protocol.

    Example:
        gateway = InMemoryPaymentGateway()
        gateway.deposit("bob", 1_000)
        hold_id = gateway.hold("bob", 1_000)
        gateway.pay(hold_id, "alice", 975)
        gateway.pay(hold_id, "marketplace-admin", 25)
        gateway.settle(hold_id)
    """

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._holds: dict[str, PaymentHold] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # Accounts
    # =========================================================================

    def deposit(self, account: str, amount: int) -> int:
        """Credit an account and return its new balance."""
        if amount < 0:
            raise ValueError("Deposit amount must be non-negative")
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
            return self._balances[account]

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def get_hold(self, hold_id: str) -> PaymentHold:
        hold = self._holds.get(hold_id)
        if hold is None:
            raise PaymentError(f"Unknown payment hold: {hold_id}")
        return hold

    # =========================================================================
    # Holds
    # =========================================================================

    def hold(self, payer: str, amount: int) -> str:
        if amount < 0:
            raise PaymentError("Hold amount must be non-negative")
        with self._lock:
            available = self.balance_of(payer)
            if available < amount:
                raise PaymentError(
                    f"Insufficient funds: {payer} has {available}, needs {amount}"
                )
            self._balances[payer] = available - amount
            hold = PaymentHold(id=str(uuid4()), payer=payer, amount=amount, remaining=amount)
            self._holds[hold.id] = hold

        logger.debug("payment_held", hold_id=hold.id, payer=payer, amount=amount)
        return hold.id

    def pay(self, hold_id: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise PaymentError("Payout amount must be non-negative")
        with self._lock:
            hold = self._open_hold(hold_id)
            if hold.remaining < amount:
                raise PaymentError(
                    f"Hold {hold_id} has {hold.remaining} left, cannot pay {amount}"
                )
            hold.remaining -= amount
            self._balances[recipient] = self.balance_of(recipient) + amount
            hold.payouts.append((recipient, amount))

    def rollback(self, hold_id: str) -> None:
        with self._lock:
            hold = self._open_hold(hold_id)
            for recipient, amount in reversed(hold.payouts):
                self._balances[recipient] = self.balance_of(recipient) - amount
                hold.remaining += amount
            hold.payouts.clear()
            self._balances[hold.payer] = self.balance_of(hold.payer) + hold.remaining
            hold.remaining = 0
            hold.status = HoldStatus.ROLLED_BACK

        logger.info("payment_rolled_back", hold_id=hold_id, payer=hold.payer, amount=hold.amount)

    def settle(self, hold_id: str) -> None:
        with self._lock:
            hold = self._open_hold(hold_id)
            if hold.remaining:
                self._balances[hold.payer] = self.balance_of(hold.payer) + hold.remaining
                hold.remaining = 0
            hold.status = HoldStatus.SETTLED

        logger.debug("payment_settled", hold_id=hold_id, payouts=len(hold.payouts))

    def _open_hold(self, hold_id: str) -> PaymentHold:
        hold = self.get_hold(hold_id)
        if hold.status != HoldStatus.OPEN:
            raise PaymentError(f"Payment hold {hold_id} is already {hold.status.value}")
        return hold


__all__ = ["HoldStatus", "InMemoryPaymentGateway", "PaymentHold"]
