"""Checkout — command and handler that turn a basket into an order."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from delivery.domain import delivery
from delivery.order.order import Order


@delivery.command(part_of="Order")
class PlaceOrder:
    """Create an order for one shop's items, waiting for payment."""

    user_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of line item dicts
    delivery_address = Text()  # JSON dict
    order_number = String(max_length=20)


@delivery.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.place(
            user_id=command.user_id,
            shop_id=command.shop_id,
            items_data=json.loads(command.items),
            delivery_address=json.loads(command.delivery_address) if command.delivery_address else None,
            order_number=command.order_number,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
