"""Unit tests for ShopService and FoodItemService."""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from canteen_ordering_service.exceptions import (
    ConcurrentModificationError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)
from canteen_ordering_service.models.catalog_models import (
    FoodItem,
    FoodItemDetails,
    Shop,
    ShopDetails,
)
from canteen_ordering_service.models.user_models import User
from canteen_ordering_service.repositories.catalog_repositories import (
    FoodItemRepository,
    ShopRepository,
)
from canteen_ordering_service.repositories.order_repositories import CommitOutcome
from canteen_ordering_service.services.food_item_service import FoodItemService
from canteen_ordering_service.services.shop_service import ShopService


@pytest.fixture
def mock_shop_repo() -> MagicMock:
    """Create a mock ShopRepository."""
    repo = MagicMock(spec=ShopRepository)
    repo.save_shop.return_value = True
    return repo


@pytest.fixture
def mock_food_item_repo() -> MagicMock:
    """Create a mock FoodItemRepository."""
    repo = MagicMock(spec=FoodItemRepository)
    repo.save_food_item.return_value = True
    repo.replace_food_item.return_value = CommitOutcome.COMMITTED
    return repo


@pytest.mark.unit
class TestShopService:
    """Test suite for ShopService."""

    @pytest.fixture
    def shop_service(
        self, mock_shop_repo: MagicMock, fixed_clock: Callable[[], datetime]
    ) -> ShopService:
        """Create a ShopService with mocked dependencies."""
        return ShopService(shop_repository=mock_shop_repo, clock=fixed_clock)

    @pytest.mark.asyncio
    async def test_get_active_shops_sorted_by_name(
        self, shop_service: ShopService, mock_shop_repo: MagicMock, shop: Shop
    ) -> None:
        """Test listing active shops alphabetically."""
        bakery = shop.model_copy(update={"shop_id": "shop_bakery", "name": "bakery"})
        mock_shop_repo.list_active_shops.return_value = [shop, bakery]

        shops = await shop_service.get_active_shops()

        assert [s.shop_id for s in shops] == ["shop_bakery", "shop_coffee"]

    @pytest.mark.asyncio
    async def test_get_active_shop_hides_inactive(
        self, shop_service: ShopService, mock_shop_repo: MagicMock, shop: Shop
    ) -> None:
        """Test that soft-deleted shops are not returned to customers."""
        shop.active = False
        mock_shop_repo.get_shop.return_value = shop

        assert await shop_service.get_active_shop(shop.shop_id) is None
        assert await shop_service.get_shop(shop.shop_id) == shop

    @pytest.mark.asyncio
    async def test_create_shop(
        self,
        shop_service: ShopService,
        mock_shop_repo: MagicMock,
        seller: User,
        now: datetime,
    ) -> None:
        """Test creating a shop owned by the seller."""
        details = ShopDetails(name="Tea Room", location="Building C")

        shop = await shop_service.create_shop(seller, details)

        assert shop.shop_id.startswith("shop_")
        assert shop.owner_id == seller.user_id
        assert shop.location == "Building C"
        assert shop.active is True
        assert shop.created_at == now
        mock_shop_repo.save_shop.assert_called_once_with(shop)

    @pytest.mark.asyncio
    async def test_create_shop_save_failure(
        self, shop_service: ShopService, mock_shop_repo: MagicMock, seller: User
    ) -> None:
        """Test that a failed save surfaces as PersistenceError."""
        mock_shop_repo.save_shop.return_value = False

        with pytest.raises(PersistenceError):
            await shop_service.create_shop(seller, ShopDetails(name="Tea Room"))

    @pytest.mark.asyncio
    async def test_update_shop_preserves_owner_and_creation(
        self, shop_service: ShopService, mock_shop_repo: MagicMock, shop: Shop, now: datetime
    ) -> None:
        """Test that editable fields are replaced and the rest is kept."""
        mock_shop_repo.get_shop.return_value = shop

        updated = await shop_service.update_shop(
            shop.shop_id, ShopDetails(name="Coffee Haven 2", phone="555")
        )

        assert updated.name == "Coffee Haven 2"
        assert updated.phone == "555"
        assert updated.description is None
        assert updated.owner_id == shop.owner_id
        assert updated.created_at == shop.created_at
        assert updated.active is True
        assert updated.updated_at == now

    @pytest.mark.asyncio
    async def test_update_shop_not_found(
        self, shop_service: ShopService, mock_shop_repo: MagicMock
    ) -> None:
        """Test updating an unknown shop."""
        mock_shop_repo.get_shop.return_value = None

        with pytest.raises(NotFoundError):
            await shop_service.update_shop("shop_missing", ShopDetails(name="x"))

    @pytest.mark.asyncio
    async def test_soft_delete_shop(
        self, shop_service: ShopService, mock_shop_repo: MagicMock, shop: Shop
    ) -> None:
        """Test that deleting a shop only deactivates it."""
        mock_shop_repo.get_shop.return_value = shop

        assert await shop_service.soft_delete_shop(shop.shop_id) is True

        saved = mock_shop_repo.save_shop.call_args.args[0]
        assert saved.active is False

    @pytest.mark.asyncio
    async def test_is_shop_owned_by_user(
        self, shop_service: ShopService, mock_shop_repo: MagicMock, shop: Shop, seller: User
    ) -> None:
        """Test the ownership predicate, including missing shops."""
        mock_shop_repo.get_shop.return_value = shop
        assert await shop_service.is_shop_owned_by_user(seller.user_id, shop.shop_id) is True
        assert await shop_service.is_shop_owned_by_user("usr_other", shop.shop_id) is False

        mock_shop_repo.get_shop.return_value = None
        assert await shop_service.is_shop_owned_by_user(seller.user_id, "shop_missing") is False


@pytest.mark.unit
class TestFoodItemService:
    """Test suite for FoodItemService."""

    @pytest.fixture
    def food_item_service(
        self,
        mock_food_item_repo: MagicMock,
        mock_shop_repo: MagicMock,
        fixed_clock: Callable[[], datetime],
    ) -> FoodItemService:
        """Create a FoodItemService with mocked dependencies."""
        return FoodItemService(
            food_item_repository=mock_food_item_repo,
            shop_repository=mock_shop_repo,
            clock=fixed_clock,
        )

    @pytest.mark.asyncio
    async def test_create_food_item(
        self,
        food_item_service: FoodItemService,
        mock_shop_repo: MagicMock,
        mock_food_item_repo: MagicMock,
        shop: Shop,
    ) -> None:
        """Test adding a food item to a shop."""
        mock_shop_repo.get_shop.return_value = shop
        details = FoodItemDetails(name="Latte", price=Decimal("3.00"), quantity=10)

        item = await food_item_service.create_food_item(shop.shop_id, details)

        assert item.item_id.startswith("food_")
        assert item.shop_id == shop.shop_id
        assert item.available is True
        mock_food_item_repo.save_food_item.assert_called_once_with(item)

    @pytest.mark.asyncio
    async def test_create_food_item_without_stock_is_unavailable(
        self, food_item_service: FoodItemService, mock_shop_repo: MagicMock, shop: Shop
    ) -> None:
        """Test that a zero-stock item is never available."""
        mock_shop_repo.get_shop.return_value = shop

        item = await food_item_service.create_food_item(
            shop.shop_id, FoodItemDetails(name="Latte", price=Decimal("3"), quantity=0)
        )

        assert item.available is False

    @pytest.mark.asyncio
    async def test_create_food_item_unknown_shop(
        self, food_item_service: FoodItemService, mock_shop_repo: MagicMock
    ) -> None:
        """Test adding an item to a shop that does not exist."""
        mock_shop_repo.get_shop.return_value = None

        with pytest.raises(NotFoundError, match="Shop not found"):
            await food_item_service.create_food_item(
                "shop_missing", FoodItemDetails(name="Latte", price=Decimal("3"), quantity=1)
            )

    @pytest.mark.asyncio
    async def test_update_food_item_preserves_shop(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
        now: datetime,
    ) -> None:
        """Test replacing editable fields keeps the shop and creation time."""
        mock_food_item_repo.get_food_item.return_value = espresso

        updated = await food_item_service.update_food_item(
            espresso.item_id,
            FoodItemDetails(name="Double Espresso", price=Decimal("3.20"), quantity=4),
        )

        assert updated.name == "Double Espresso"
        assert updated.price == Decimal("3.20")
        assert updated.shop_id == espresso.shop_id
        assert updated.created_at == espresso.created_at
        assert updated.updated_at == now
        mock_food_item_repo.replace_food_item.assert_called_once_with(updated, espresso.quantity)

    @pytest.mark.asyncio
    async def test_update_food_item_can_hide_item_with_stock(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
    ) -> None:
        """Test that sellers may mark an item unavailable while stock remains."""
        mock_food_item_repo.get_food_item.return_value = espresso

        updated = await food_item_service.update_food_item(
            espresso.item_id,
            FoodItemDetails(name="Espresso", price=Decimal("2.50"), quantity=5, available=False),
        )

        assert updated.quantity == 5
        assert updated.available is False

    @pytest.mark.asyncio
    async def test_update_quantity(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
    ) -> None:
        """Test that explicit stock updates derive availability."""
        mock_food_item_repo.get_food_item.return_value = espresso

        updated = await food_item_service.update_quantity(espresso.item_id, 0)

        assert updated.quantity == 0
        assert updated.available is False
        mock_food_item_repo.replace_food_item.assert_called_once_with(updated, 5)

    @pytest.mark.asyncio
    async def test_update_quantity_conflicts_with_concurrent_order(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
    ) -> None:
        """Test that a stock change between read and write is reported, not overwritten."""
        mock_food_item_repo.get_food_item.return_value = espresso
        mock_food_item_repo.replace_food_item.return_value = CommitOutcome.CONFLICT

        with pytest.raises(ConcurrentModificationError):
            await food_item_service.update_quantity(espresso.item_id, 20)

    @pytest.mark.asyncio
    async def test_update_food_item_write_failure(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
    ) -> None:
        mock_food_item_repo.get_food_item.return_value = espresso
        mock_food_item_repo.replace_food_item.return_value = CommitOutcome.FAILED

        with pytest.raises(PersistenceError):
            await food_item_service.update_food_item(
                espresso.item_id,
                FoodItemDetails(name="Espresso", price=Decimal("2.50"), quantity=5),
            )

    @pytest.mark.asyncio
    async def test_update_quantity_negative(self, food_item_service: FoodItemService) -> None:
        """Test that negative stock is rejected."""
        with pytest.raises(InvalidArgumentError):
            await food_item_service.update_quantity("food_1", -3)

    @pytest.mark.asyncio
    async def test_get_available_food_items_for_shop(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
        croissant: FoodItem,
    ) -> None:
        """Test listing orderable items sorted by name."""
        mock_food_item_repo.list_food_items_for_shop.return_value = [espresso, croissant]

        items = await food_item_service.get_available_food_items_for_shop("shop_coffee")

        assert [i.name for i in items] == ["Croissant", "Espresso"]
        mock_food_item_repo.list_food_items_for_shop.assert_called_once_with(
            "shop_coffee", available_only=True
        )

    @pytest.mark.asyncio
    async def test_is_food_item_in_shop(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
    ) -> None:
        """Test the shop membership predicate."""
        mock_food_item_repo.get_food_item.return_value = espresso
        assert await food_item_service.is_food_item_in_shop(espresso.item_id, "shop_coffee")
        assert not await food_item_service.is_food_item_in_shop(espresso.item_id, "shop_other")

        mock_food_item_repo.get_food_item.return_value = None
        assert not await food_item_service.is_food_item_in_shop("food_missing", "shop_coffee")

    @pytest.mark.asyncio
    async def test_delete_food_item(
        self,
        food_item_service: FoodItemService,
        mock_food_item_repo: MagicMock,
        espresso: FoodItem,
    ) -> None:
        """Test deleting existing and unknown items."""
        mock_food_item_repo.get_food_item.return_value = espresso
        mock_food_item_repo.delete_food_item.return_value = True
        assert await food_item_service.delete_food_item(espresso.item_id) is True

        mock_food_item_repo.get_food_item.return_value = None
        assert await food_item_service.delete_food_item("food_missing") is False
