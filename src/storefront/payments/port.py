"""Payment gateway port.

The checkout coordinator charges the order total through this interface
before the order is committed, and refunds the charge if the commit fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    success: bool
    transaction_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method: str,
        last4: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        """Charge ``amount`` in ``currency`` to the given payment method."""
        ...

    @abstractmethod
    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        """Refund a previous charge in full."""
        ...
