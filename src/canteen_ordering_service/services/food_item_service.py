"""Food item service for shop menus and seller stock updates."""

import logging
import uuid

from canteen_ordering_service.clock import Clock, utc_now
from canteen_ordering_service.exceptions import (
    ConcurrentModificationError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)
from canteen_ordering_service.models.catalog_models import FoodItem, FoodItemDetails
from canteen_ordering_service.repositories.catalog_repositories import (
    FoodItemRepository,
    ShopRepository,
)
from canteen_ordering_service.repositories.order_repositories import CommitOutcome

logger = logging.getLogger(__name__)


class FoodItemService:
    """Service for the food items sold by each shop.

    Explicit seller edits go through here. Stock reserved or released by
    orders is written by the order engine instead.
    """

    def __init__(
        self,
        food_item_repository: FoodItemRepository,
        shop_repository: ShopRepository,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the FoodItemService.

        Args:
            food_item_repository: Repository for food item records
            shop_repository: Repository used to validate the owning shop
            clock: Source of the current time
        """
        self.food_item_repository = food_item_repository
        self.shop_repository = shop_repository
        self.clock = clock

    async def get_food_item(self, item_id: str) -> FoodItem | None:
        """Get a food item by ID.

        Args:
            item_id: The food item ID

        Returns:
            FoodItem if found, None otherwise
        """
        return self.food_item_repository.get_food_item(item_id)

    async def get_food_items_for_shop(self, shop_id: str) -> list[FoodItem]:
        """List every food item of a shop, including unavailable ones."""
        items = self.food_item_repository.list_food_items_for_shop(shop_id)
        return sorted(items, key=lambda item: item.name.lower())

    async def get_available_food_items_for_shop(self, shop_id: str) -> list[FoodItem]:
        """List the food items customers can currently order from a shop."""
        items = self.food_item_repository.list_food_items_for_shop(shop_id, available_only=True)
        return sorted(items, key=lambda item: item.name.lower())

    async def is_food_item_in_shop(self, item_id: str, shop_id: str) -> bool:
        """Check that a food item belongs to a shop.

        Returns:
            True if the item exists and belongs to the shop, False otherwise
        """
        item = self.food_item_repository.get_food_item(item_id)
        return item is not None and item.shop_id == shop_id

    async def create_food_item(self, shop_id: str, details: FoodItemDetails) -> FoodItem:
        """Add a food item to a shop.

        An item created without stock is never available.

        Raises:
            NotFoundError: If the shop does not exist
            PersistenceError: If the item could not be stored
        """
        if self.shop_repository.get_shop(shop_id) is None:
            raise NotFoundError("Shop not found")

        now = self.clock()
        data = details.model_dump()
        data["available"] = data["available"] and data["quantity"] > 0
        food_item = FoodItem(
            item_id=f"food_{uuid.uuid4().hex[:12]}",
            shop_id=shop_id,
            created_at=now,
            updated_at=now,
            **data,
        )

        if not self.food_item_repository.save_food_item(food_item):
            raise PersistenceError("Failed to save food item")

        logger.info(f"Created food item {food_item.item_id} ({food_item.name}) in shop {shop_id}")
        return food_item

    async def update_food_item(self, item_id: str, details: FoodItemDetails) -> FoodItem:
        """Replace the editable fields of a food item.

        The owning shop and creation time are preserved.

        Raises:
            NotFoundError: If the item does not exist
            ConcurrentModificationError: If an order changed the stock meanwhile
            PersistenceError: If the item could not be stored
        """
        existing = self.food_item_repository.get_food_item(item_id)
        if existing is None:
            raise NotFoundError("Food item not found")

        data = details.model_dump()
        data["available"] = data["available"] and data["quantity"] > 0
        food_item = existing.model_copy(update={**data, "updated_at": self.clock()})

        self._replace(food_item, expected_quantity=existing.quantity)

        logger.info(f"Updated food item {item_id}")
        return food_item

    async def update_quantity(self, item_id: str, quantity: int) -> FoodItem:
        """Set the stock of a food item; availability follows the new quantity.

        Raises:
            NotFoundError: If the item does not exist
            InvalidArgumentError: If the quantity is negative
            ConcurrentModificationError: If an order changed the stock meanwhile
            PersistenceError: If the item could not be stored
        """
        if quantity < 0:
            raise InvalidArgumentError("Quantity must not be negative")

        food_item = self.food_item_repository.get_food_item(item_id)
        if food_item is None:
            raise NotFoundError("Food item not found")

        expected_quantity = food_item.quantity
        food_item.set_quantity(quantity, self.clock())

        self._replace(food_item, expected_quantity=expected_quantity)

        logger.info(f"Set quantity of food item {item_id} to {quantity}")
        return food_item

    async def delete_food_item(self, item_id: str) -> bool:
        """Delete a food item.

        Orders keep their own snapshot of the item's name and price.

        Returns:
            True if the item existed and was deleted, False otherwise
        """
        if self.food_item_repository.get_food_item(item_id) is None:
            return False
        deleted = self.food_item_repository.delete_food_item(item_id)
        if deleted:
            logger.info(f"Deleted food item {item_id}")
        return deleted

    def _replace(self, food_item: FoodItem, expected_quantity: int) -> None:
        outcome = self.food_item_repository.replace_food_item(food_item, expected_quantity)
        if outcome is CommitOutcome.CONFLICT:
            raise ConcurrentModificationError(
                "Stock changed while updating the food item, please retry"
            )
        if outcome is CommitOutcome.FAILED:
            raise PersistenceError("Failed to save food item")
