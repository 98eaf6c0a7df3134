import json

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

DEFAULT_ITEMS = [
    {"product_id": "prod-samosa", "name": "Samosa Plate", "unit_price": 100.0, "quantity": 2, "shop_id": "shop-s1"},
    {"product_id": "prod-chai", "name": "Masala Chai", "unit_price": 50.0, "quantity": 1, "shop_id": "shop-s1"},
]

DEFAULT_ADDRESS = {
    "recipient_name": "Asha Rao",
    "phone": "9876543210",
    "hostel": "Hostel B",
    "room": "214",
}


@pytest.fixture(scope="session")
def delivery_bed():
    from delivery.domain import delivery
    from delivery.utils.db import drop_db, setup_db

    bed = DomainFixture(delivery)
    bed.setup()
    setup_db(delivery)
    yield bed
    drop_db(delivery)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(delivery_bed):
    from delivery.payment import reset_gateway

    with delivery_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_gateway()


@pytest.fixture()
def onboard_agent():
    """Factory for agents that are, by default, active and Available."""
    from delivery.agent.administration import SetAgentAccess
    from delivery.agent.duty import ChangeDutyStatus
    from delivery.agent.onboarding import OnboardAgent

    def _onboard(agent_code, location=None, active=True, available=True, name=None, phone=None):
        agent_id = current_domain.process(
            OnboardAgent(
                agent_code=agent_code,
                name=name or f"Agent {agent_code}",
                phone=phone or "9000000001",
                location=location,
            ),
            asynchronous=False,
        )
        if active:
            current_domain.process(
                SetAgentAccess(agent_id=agent_id, admin_control="active", actor_role="admin"),
                asynchronous=False,
            )
        if available:
            current_domain.process(
                ChangeDutyStatus(agent_id=agent_id, duty_status="Available", actor_role="admin"),
                asynchronous=False,
            )
        return agent_id

    return _onboard


@pytest.fixture()
def register_shop():
    from delivery.shop.registration import RegisterShop

    def _register(name="Campus Canteen", owner_id="owner-1", location=None):
        return current_domain.process(
            RegisterShop(name=name, owner_id=owner_id, location=location),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def place_order():
    from delivery.order.checkout import PlaceOrder

    def _place(user_id="stu-1", shop_id="shop-s1", items=None, address=None):
        items = items or [{**item, "shop_id": shop_id} for item in DEFAULT_ITEMS]
        return current_domain.process(
            PlaceOrder(
                user_id=user_id,
                shop_id=shop_id,
                items=json.dumps(items),
                delivery_address=json.dumps(address or DEFAULT_ADDRESS),
            ),
            asynchronous=False,
        )

    return _place


@pytest.fixture()
def paid_order(place_order):
    """Factory for orders that are paid and waiting in ``pending_delivery``."""
    from delivery.order.payment import ConfirmPayment

    def _paid(**kwargs):
        order_id = place_order(**kwargs)
        current_domain.process(ConfirmPayment(order_id=order_id, payment_id="pay_test_001"), asynchronous=False)
        return order_id

    return _paid
