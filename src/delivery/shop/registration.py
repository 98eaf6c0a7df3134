"""Shop registration — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.domain import delivery
from delivery.shop.shop import Shop


@delivery.command(part_of="Shop")
class RegisterShop:
    name = String(required=True, max_length=150)
    owner_id = Identifier(required=True)
    location = String(max_length=100)


@delivery.command_handler(part_of=Shop)
class RegisterShopHandler:
    @handle(RegisterShop)
    def register_shop(self, command):
        shop = Shop.register(
            name=command.name,
            owner_id=command.owner_id,
            location=command.location,
        )
        current_domain.repository_for(Shop).add(shop)
        return str(shop.id)
