"""Configurable fake payment gateway for development and testing.

Simulates the hosted checkout without any external calls. Tests flip it
between success and decline with ``configure`` and inspect ``calls``.
"""

from uuid import uuid4

from delivery.payment.port import ChargeResult, PaymentCollaborator

WEBHOOK_TEST_SIGNATURE = "test-signature"


class FakePaymentGateway(PaymentCollaborator):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Payment declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def charge(self, order_id: str, amount: float, currency: str) -> ChargeResult:
        self.calls.append({"method": "charge", "order_id": order_id, "amount": amount, "currency": currency})

        if self.should_succeed:
            return ChargeResult(
                success=True,
                payment_id=f"pay_{uuid4().hex[:14]}",
                gateway_status="captured",
            )
        return ChargeResult(
            success=False,
            gateway_status="failed",
            failure_reason=self.failure_reason,
        )

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == WEBHOOK_TEST_SIGNATURE
