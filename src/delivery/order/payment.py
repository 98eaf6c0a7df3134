"""Payment confirmation — command and handler.

The payment collaborator confirms a charge either directly after checkout
or later through its webhook. Both paths arrive here; a confirmation that
was already applied changes nothing.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.domain import delivery
from delivery.order.order import Order

logger = structlog.get_logger(__name__)


@delivery.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    payment_id = String(required=True, max_length=255)


@delivery.command_handler(part_of=Order)
class ConfirmPaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_reference(command.order_id)
        changed = order.confirm_payment(command.payment_id)
        if not changed:
            logger.info("Duplicate payment confirmation ignored", order_id=str(order.id))
            return False
        repo.add(order)
        return True
