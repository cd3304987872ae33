"""Role and ownership rules applied by the request handlers.

Every check takes the acting user and the already loaded entities, and raises
ForbiddenError when the user may not perform the action. Role branches are
exhaustive over ``Role`` so adding a role fails type checking until every rule
handles it.
"""

from typing import assert_never

from canteen_ordering_service.exceptions import ForbiddenError
from canteen_ordering_service.models.catalog_models import Shop
from canteen_ordering_service.models.order_models import Order, OrderStatus
from canteen_ordering_service.models.user_models import Role, User


class AccessPolicy:
    """Authorization rules for shops, food items and orders."""

    @staticmethod
    def require_seller(user: User, message: str) -> None:
        """Raise ForbiddenError with ``message`` unless the user is a seller."""
        match user.role:
            case Role.SELLER:
                return
            case Role.CUSTOMER:
                raise ForbiddenError(message)
            case _:
                assert_never(user.role)

    @staticmethod
    def require_customer(user: User, message: str) -> None:
        """Raise ForbiddenError with ``message`` unless the user is a customer."""
        match user.role:
            case Role.CUSTOMER:
                return
            case Role.SELLER:
                raise ForbiddenError(message)
            case _:
                assert_never(user.role)

    @staticmethod
    def owns_shop(user: User, shop: Shop | None) -> bool:
        return shop is not None and shop.owner_id == user.user_id

    def check_can_list_own_shops(self, user: User) -> None:
        self.require_seller(user, "Only sellers can access their shops")

    def check_can_create_shop(self, user: User) -> None:
        self.require_seller(user, "Only sellers can create shops")

    def check_can_update_shop(self, user: User, shop: Shop) -> None:
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only update your own shops")

    def check_can_delete_shop(self, user: User, shop: Shop) -> None:
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only delete your own shops")

    def check_can_create_food_item(self, user: User, shop: Shop) -> None:
        self.require_seller(user, "Only sellers can create food items")
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only add food items to your own shops")

    def check_can_update_food_item(self, user: User, shop: Shop | None) -> None:
        self.require_seller(user, "Only sellers can update food items")
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only update food items in your own shops")

    def check_can_update_food_item_quantity(self, user: User, shop: Shop | None) -> None:
        self.require_seller(user, "Only sellers can update food item quantities")
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only update food items in your own shops")

    def check_can_delete_food_item(self, user: User, shop: Shop | None) -> None:
        self.require_seller(user, "Only sellers can delete food items")
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only delete food items in your own shops")

    def check_can_create_order(self, user: User) -> None:
        self.require_customer(user, "Only customers can create orders")

    def check_can_view_shop_orders(self, user: User, shop: Shop | None) -> None:
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only view orders for your own shops")

    def check_can_view_order(self, user: User, order: Order, shop: Shop | None) -> None:
        """Sellers may view orders of their shops, customers their own orders."""
        match user.role:
            case Role.SELLER:
                if not self.owns_shop(user, shop):
                    raise ForbiddenError("You can only view orders for your own shops")
            case Role.CUSTOMER:
                if order.customer_id != user.user_id:
                    raise ForbiddenError("You can only view your own orders")
            case _:
                assert_never(user.role)

    def check_can_update_order_status(
        self, user: User, order: Order, shop: Shop | None, status: OrderStatus
    ) -> None:
        """Check a status change on an order.

        Both sides may cancel: customers their own orders, sellers the orders
        of their shops. Every other status is set by the owning seller only.
        """
        if status is OrderStatus.CANCELLED:
            match user.role:
                case Role.CUSTOMER:
                    if order.customer_id != user.user_id:
                        raise ForbiddenError("You can only cancel your own orders")
                case Role.SELLER:
                    if not self.owns_shop(user, shop):
                        raise ForbiddenError("You can only cancel orders for your own shops")
                case _:
                    assert_never(user.role)
            return

        self.require_seller(user, "Only sellers can update order status")
        if not self.owns_shop(user, shop):
            raise ForbiddenError("You can only update orders for your own shops")
