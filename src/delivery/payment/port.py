"""Payment collaborator port (abstract interface).

Checkout charges the student through this contract; the gateway answers
synchronously or calls back through the payment webhook. Gateway protocol
details stay behind the adapter.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    """Result of a charge attempt."""

    success: bool
    payment_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentCollaborator(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def charge(self, order_id: str, amount: float, currency: str) -> ChargeResult:
        """Charge the student for an order."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
