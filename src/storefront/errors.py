"""Ledger failure taxonomy.

Every failure a caller can recover from is a ``LedgerError`` subclass with
structured fields. Aggregates raise them; the catalogue, reservation, and
ledger services catch them at their boundary and return them as values, so
callers branch on ``isinstance(result, LedgerError)`` instead of relying on
exceptions escaping. Malformed input is a different matter and still raises
Protean's ``ValidationError``.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    INSUFFICIENT_STOCK = "InsufficientStock"
    EMPTY_CART = "EmptyCart"
    INVALID_TRANSITION = "InvalidTransition"
    NOT_FOUND = "NotFound"
    BUSY = "Busy"
    ORDER_CREATION_FAILED = "OrderCreationFailed"
    PAYMENT_DECLINED = "PaymentDeclined"


class LedgerError(Exception):
    """Base class for recoverable ledger failures."""

    kind: ErrorKind
    retryable = False

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": str(self)}


class InsufficientStock(LedgerError):
    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(self, product_id, requested, available):
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {self.product_id}: {available} available, {requested} requested"
        )

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class EmptyCart(LedgerError):
    kind = ErrorKind.EMPTY_CART

    def __init__(self, reason="Cart has no items"):
        self.reason = reason
        super().__init__(reason)


class InvalidTransition(LedgerError):
    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, from_status, to_status):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot transition from {from_status} to {to_status}")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "from": self.from_status, "to": self.to_status}


class NotFound(LedgerError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity_kind, entity_id):
        self.entity_kind = entity_kind
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_kind} {self.entity_id} not found")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "entity_kind": self.entity_kind, "entity_id": self.entity_id}


class Busy(LedgerError):
    """A lock could not be acquired within the configured timeout."""

    kind = ErrorKind.BUSY
    retryable = True

    def __init__(self, keys, timeout):
        self.keys = list(keys)
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for {', '.join(self.keys)}")


class OrderCreationFailed(LedgerError):
    kind = ErrorKind.ORDER_CREATION_FAILED

    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"Order creation failed: {reason}")


class PaymentDeclined(LedgerError):
    kind = ErrorKind.PAYMENT_DECLINED

    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"Payment declined: {reason}")


@dataclass(frozen=True)
class CheckoutError:
    """Terminal outcome of an aborted checkout attempt."""

    kind: ErrorKind
    message: str
    stage: str
    product_id: str | None = None
    retryable: bool = False

    @classmethod
    def from_failure(cls, failure: LedgerError, stage: str) -> "CheckoutError":
        product_id = getattr(failure, "product_id", None)
        if product_id is None and isinstance(failure, NotFound) and failure.entity_kind == "Product":
            product_id = failure.entity_id
        return cls(
            kind=failure.kind,
            message=str(failure),
            stage=stage,
            product_id=product_id,
            retryable=failure.retryable,
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "stage": self.stage,
            "product_id": self.product_id,
            "retryable": self.retryable,
        }
