"""Payment collaborator factory.

``get_gateway()`` returns the active adapter, a ``FakePaymentGateway`` unless
another one was installed with ``set_gateway()``.
"""

from delivery.payment.fake_adapter import FakePaymentGateway
from delivery.payment.port import PaymentCollaborator

_current_gateway: PaymentCollaborator | None = None


def get_gateway() -> PaymentCollaborator:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = FakePaymentGateway()
    return _current_gateway


def set_gateway(gateway: PaymentCollaborator) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
