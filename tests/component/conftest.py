"""Fixtures for component tests."""

from collections.abc import Callable
from datetime import datetime

import pytest

from canteen_ordering_service.models.catalog_models import FoodItem, Shop
from canteen_ordering_service.models.user_models import User
from tests.component.in_memory_repositories import Canteen


@pytest.fixture
def canteen(
    fixed_clock: Callable[[], datetime],
    customer: User,
    seller: User,
    other_seller: User,
    shop: Shop,
    espresso: FoodItem,
    croissant: FoodItem,
) -> Canteen:
    """A canteen holding the shared user, shop and food item fixtures."""
    canteen = Canteen(fixed_clock)
    for user in (customer, seller, other_seller):
        canteen.user_repository.save_user(user)
    canteen.shop_repository.save_shop(shop)
    canteen.food_item_repository.save_food_item(espresso)
    canteen.food_item_repository.save_food_item(croissant)
    return canteen
