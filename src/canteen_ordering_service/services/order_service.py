"""Order engine: placing orders against shop stock and moving them through
their lifecycle.

Stock is reserved in the same DynamoDB transaction that stores the order and
handed back in the same transaction that cancels it. Both are optimistic:
the repository reports a CONFLICT when the records changed after they were
read, and the engine re-reads and tries again a bounded number of times.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import assert_never

from canteen_ordering_service.clock import Clock, utc_now
from canteen_ordering_service.exceptions import (
    ConcurrentModificationError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)
from canteen_ordering_service.models.catalog_models import FoodItem, Shop
from canteen_ordering_service.models.order_models import Order, OrderItem, OrderStatus
from canteen_ordering_service.models.user_models import Role, User
from canteen_ordering_service.observability.decorators import traced
from canteen_ordering_service.observability.metrics import (
    record_commit_conflict,
    record_inventory_released,
    record_order_created,
    record_order_rejected,
    record_status_transition,
)
from canteen_ordering_service.repositories.catalog_repositories import (
    FoodItemRepository,
    ShopRepository,
    UserRepository,
)
from canteen_ordering_service.repositories.order_repositories import (
    MAX_ITEMS_PER_TRANSACTION,
    CommitOutcome,
    OrderRepository,
    StockRelease,
    StockReservation,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class OrderLine:
    """A requested order line: which food item and how many units.

    Attributes:
        food_item_id: Food item to order
        quantity: Units requested, must be positive
    """

    food_item_id: str
    quantity: int


class OrderService:
    """Service for order placement, status changes and order queries.

    Every successful commit either stores a PENDING order together with the
    stock it reserves, or cancels an order together with the stock it
    releases. Nothing is written when validation fails.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        shop_repository: ShopRepository,
        food_item_repository: FoodItemRepository,
        order_repository: OrderRepository,
        clock: Clock = utc_now,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        """Initialize the OrderService.

        Args:
            user_repository: Repository used to resolve customers
            shop_repository: Repository used to resolve shops
            food_item_repository: Repository used to read current stock
            order_repository: Repository storing orders and committing stock changes
            clock: Source of the current time
            max_attempts: Optimistic commit attempts before giving up (at least 1)
        """
        self.user_repository = user_repository
        self.shop_repository = shop_repository
        self.food_item_repository = food_item_repository
        self.order_repository = order_repository
        self.clock = clock
        self.max_attempts = max(1, max_attempts)

    @traced("order.create", attribute_args=("customer_id", "shop_id"))
    async def create_order(
        self,
        customer_id: str,
        shop_id: str,
        lines: list[OrderLine],
        notes: str | None = None,
    ) -> Order:
        """Place a PENDING order and reserve its stock.

        Lines repeating a food item are checked against their combined
        quantity. Unit prices are snapshotted into the order lines.

        Args:
            customer_id: The ordering customer
            shop_id: The shop to order from
            lines: Requested food items and quantities
            notes: Optional notes for the shop

        Returns:
            The stored order

        Raises:
            NotFoundError: If the customer, shop or a food item does not exist,
                or the shop is inactive
            ForbiddenError: If the requester is not a customer
            InvalidArgumentError: If the lines are empty or invalid, a food item
                belongs to another shop, or stock is insufficient
            ConcurrentModificationError: If stock kept changing across all attempts
            PersistenceError: If the transaction failed for another reason
        """
        try:
            return await self._place_order(customer_id, shop_id, lines, notes)
        except (NotFoundError, ForbiddenError, InvalidArgumentError) as e:
            record_order_rejected(type(e).__name__)
            logger.info(f"Order rejected for customer {customer_id} at shop {shop_id}: {e}")
            raise

    @traced("order.update_status", attribute_args=("order_id",))
    async def update_order_status(self, order_id: str, new_status: str | OrderStatus) -> Order:
        """Move an order to a new status.

        Cancelling hands every reserved unit back to stock, skipping food
        items that were deleted since. COMPLETED and CANCELLED orders only
        accept their own status again, which refreshes ``updated_at`` and
        releases nothing.

        Args:
            order_id: The order to update
            new_status: Target status, an OrderStatus or its case-insensitive name

        Returns:
            The updated order

        Raises:
            InvalidArgumentError: If the status is unknown or the order is in a
                terminal state
            NotFoundError: If the order does not exist
            ConcurrentModificationError: If the order kept changing across all attempts
            PersistenceError: If the write failed for another reason
        """
        status = OrderStatus.parse(new_status)

        for attempt in range(1, self.max_attempts + 1):
            order = self.order_repository.get_order(order_id)
            if order is None:
                raise NotFoundError("Order not found")

            previous = order.status
            if previous.is_terminal and status is not previous:
                raise InvalidArgumentError(
                    f"Cannot change status of a {previous.value} order to {status.value}"
                )

            now = self.clock()
            releases: list[StockRelease] = []
            if status is OrderStatus.CANCELLED and previous is not OrderStatus.CANCELLED:
                releases = self._releases_for(order)
                outcome = self.order_repository.cancel_order(order, releases, now)
            else:
                outcome = self.order_repository.update_status(order, status, now)

            if outcome is CommitOutcome.COMMITTED:
                order.status = status
                order.updated_at = now
                record_status_transition(previous.value, status.value)
                if releases:
                    record_inventory_released(sum(r.quantity for r in releases))
                logger.info(f"Order {order_id} moved from {previous.value} to {status.value}")
                return order

            if outcome is CommitOutcome.FAILED:
                raise PersistenceError("Failed to update order")

            record_commit_conflict("update_status")
            logger.warning(
                f"Order {order_id} changed during status update "
                f"(attempt {attempt}/{self.max_attempts})"
            )

        raise ConcurrentModificationError("Order was modified concurrently, please retry")

    async def cancel_order(self, order_id: str) -> Order:
        """Cancel an order, releasing its stock. See ``update_order_status``."""
        return await self.update_order_status(order_id, OrderStatus.CANCELLED)

    async def get_order(self, order_id: str) -> Order | None:
        """Get an order by ID.

        Args:
            order_id: The order ID

        Returns:
            Order if found, None otherwise
        """
        return self.order_repository.get_order(order_id)

    async def get_orders_for_customer(
        self, customer_id: str, status: str | OrderStatus | None = None
    ) -> list[Order]:
        """List a customer's orders, newest first, optionally by status."""
        parsed = OrderStatus.parse(status) if status is not None else None
        return self.order_repository.list_orders_for_customer(customer_id, parsed)

    async def get_orders_for_shop(
        self, shop_id: str, status: str | OrderStatus | None = None
    ) -> list[Order]:
        """List a shop's orders, newest first, optionally by status."""
        parsed = OrderStatus.parse(status) if status is not None else None
        return self.order_repository.list_orders_for_shop(shop_id, parsed)

    async def get_orders_for_user(self, user: User) -> list[Order]:
        """List the orders relevant to a user.

        Customers see the orders they placed. Sellers see the orders of all
        their active shops, newest first.
        """
        match user.role:
            case Role.CUSTOMER:
                return self.order_repository.list_orders_for_customer(user.user_id)
            case Role.SELLER:
                orders: list[Order] = []
                for shop in self.shop_repository.list_shops_for_owner(user.user_id):
                    orders.extend(self.order_repository.list_orders_for_shop(shop.shop_id))
                return sorted(orders, key=lambda order: order.created_at, reverse=True)
            case _:
                assert_never(user.role)

    async def is_order_owned_by_customer(self, order_id: str, customer_id: str) -> bool:
        order = self.order_repository.get_order(order_id)
        return order is not None and order.customer_id == customer_id

    async def is_order_from_shop(self, order_id: str, shop_id: str) -> bool:
        order = self.order_repository.get_order(order_id)
        return order is not None and order.shop_id == shop_id

    async def _place_order(
        self,
        customer_id: str,
        shop_id: str,
        lines: list[OrderLine],
        notes: str | None,
    ) -> Order:
        customer = self.user_repository.get_user(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        match customer.role:
            case Role.CUSTOMER:
                pass
            case Role.SELLER:
                raise ForbiddenError("Only customers can create orders")
            case _:
                assert_never(customer.role)

        shop = self.shop_repository.get_shop(shop_id)
        if shop is None or not shop.active:
            raise NotFoundError("Shop not found")

        self._validate_lines(lines)

        for attempt in range(1, self.max_attempts + 1):
            now = self.clock()
            order, reservations = self._prepare_order(customer, shop, lines, notes, now)

            outcome = self.order_repository.create_order(order, reservations, now)

            if outcome is CommitOutcome.COMMITTED:
                units = sum(line.quantity for line in order.items)
                record_order_created(shop.shop_id, order.total_amount, units)
                logger.info(
                    f"Created order {order.order_id} for customer {customer_id} at shop "
                    f"{shop_id}: {len(order.items)} lines, total {order.total_amount}"
                )
                return order

            if outcome is CommitOutcome.FAILED:
                raise PersistenceError("Failed to save order")

            record_commit_conflict("create")
            logger.warning(
                f"Stock changed while placing order at shop {shop_id} "
                f"(attempt {attempt}/{self.max_attempts})"
            )

        raise ConcurrentModificationError("Stock changed while placing the order, please retry")

    def _validate_lines(self, lines: list[OrderLine]) -> None:
        if not lines:
            raise InvalidArgumentError("Order must contain at least one item")

        for line in lines:
            if line.quantity <= 0:
                raise InvalidArgumentError(
                    f"Quantity must be positive for food item {line.food_item_id}"
                )

        if len({line.food_item_id for line in lines}) > MAX_ITEMS_PER_TRANSACTION:
            raise InvalidArgumentError(
                f"An order may contain at most {MAX_ITEMS_PER_TRANSACTION} different food items"
            )

    def _prepare_order(
        self,
        customer: User,
        shop: Shop,
        lines: list[OrderLine],
        notes: str | None,
        now: datetime,
    ) -> tuple[Order, list[StockReservation]]:
        """Build the order and the stock reservations from freshly read food items."""
        order = Order(
            order_id=f"ord_{uuid.uuid4().hex[:12]}",
            customer_id=customer.user_id,
            shop_id=shop.shop_id,
            status=OrderStatus.PENDING,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        food_items: dict[str, FoodItem] = {}
        for line in lines:
            food_item = food_items.get(line.food_item_id)
            if food_item is None:
                food_item = self.food_item_repository.get_food_item(line.food_item_id)
            if food_item is None:
                raise NotFoundError(f"Food item not found: {line.food_item_id}")
            if food_item.shop_id != shop.shop_id:
                raise InvalidArgumentError(
                    f"Food item {food_item.name} does not belong to the shop"
                )
            food_items[food_item.item_id] = food_item

            order.add_item(
                OrderItem(
                    order_item_id=f"oi_{uuid.uuid4().hex[:12]}",
                    order_id=order.order_id,
                    food_item_id=food_item.item_id,
                    food_item_name=food_item.name,
                    quantity=line.quantity,
                    price=food_item.price,
                )
            )

        reservations: list[StockReservation] = []
        for item_id, quantity in order.reserved_quantities().items():
            current = food_items[item_id]
            reserved = current.model_copy()
            if not reserved.decrease_quantity(quantity, now):
                raise InvalidArgumentError(f"Not enough quantity for {current.name}")
            reservations.append(
                StockReservation(
                    item_id=item_id,
                    shop_id=shop.shop_id,
                    expected_quantity=current.quantity,
                    expected_available=current.available,
                    new_quantity=reserved.quantity,
                    new_available=reserved.available,
                )
            )

        order.calculate_total_amount()
        return order, reservations

    def _releases_for(self, order: Order) -> list[StockRelease]:
        releases = []
        for item_id, quantity in order.reserved_quantities().items():
            if self.food_item_repository.get_food_item(item_id) is None:
                logger.info(f"Food item {item_id} no longer exists, skipping stock release")
                continue
            releases.append(StockRelease(item_id=item_id, quantity=quantity))
        return releases
