"""Shop aggregate — a campus outlet students order from.

Only what dispatch needs is kept here: the shop's location decides which
delivery agents count as nearby.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String

from delivery.domain import delivery


@delivery.event(part_of="Shop")
class ShopRegistered:
    __version__ = 1

    shop_id = Identifier(required=True)
    name = String(required=True)
    owner_id = Identifier(required=True)
    location = String()
    registered_at = DateTime(required=True)


@delivery.aggregate
class Shop:
    name = String(required=True, max_length=150)
    owner_id = Identifier(required=True)
    location = String(max_length=100)
    registered_at = DateTime()

    @classmethod
    def register(cls, name: str, owner_id: str, location: str | None = None) -> "Shop":
        now = datetime.now(UTC)
        shop = cls(name=name, owner_id=owner_id, location=location, registered_at=now)
        shop.raise_(
            ShopRegistered(
                shop_id=str(shop.id),
                name=name,
                owner_id=str(owner_id),
                location=location,
                registered_at=now,
            )
        )
        return shop
