"""Every delivery event carries an integer schema version."""

import pytest
from delivery.agent import events as agent_events
from delivery.order import events as order_events
from delivery.order.order import Order
from delivery.shop.shop import ShopRegistered
from protean.core.event import BaseEvent


def _event_classes():
    classes = [ShopRegistered]
    for module in (agent_events, order_events):
        classes.extend(
            value
            for value in vars(module).values()
            if isinstance(value, type) and issubclass(value, BaseEvent) and value.__module__ == module.__name__
        )
    return classes


@pytest.mark.parametrize("event_cls", _event_classes(), ids=lambda cls: cls.__name__)
def test_version_is_an_integer(event_cls):
    assert isinstance(event_cls.__version__, int)
    assert event_cls.__version__ == 1


def test_raised_event_can_be_built():
    order = Order.place(
        "stu-1",
        "shop-s1",
        [{"product_id": "p-1", "name": "Vada Pav", "unit_price": 30.0, "quantity": 2}],
        {"hostel": "Hostel A"},
    )
    assert isinstance(order._events[0], order_events.OrderPlaced)
