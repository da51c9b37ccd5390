"""In-process payment gateway used in development and tests.

No money moves. Outcomes are set with ``configure`` and every call is kept
in ``calls`` for assertions.
"""

from uuid import uuid4

from storefront.payments.port import ChargeResult, PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def charges(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "create_charge"]

    def refunds(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "create_refund"]

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method: str,
        last4: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "create_charge",
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
                "last4": last4,
                "idempotency_key": idempotency_key,
            }
        )

        if self.should_succeed:
            return ChargeResult(
                success=True,
                transaction_id=f"TXN_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return ChargeResult(success=False, gateway_status="failed", failure_reason=self.failure_reason)

    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        self.calls.append(
            {
                "method": "create_refund",
                "transaction_id": transaction_id,
                "amount": amount,
                "reason": reason,
            }
        )
        # Refunds of successful charges always go through
        return RefundResult(success=True, refund_id=f"REF_{uuid4().hex[:12]}", gateway_status="succeeded")
