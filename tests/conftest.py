"""Shared pytest fixtures and configuration for all tests."""

import os
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal

import pytest

# Entry point modules skip building real AWS clients in test mode
os.environ.setdefault("ENVIRONMENT", "test")

from canteen_ordering_service.models.catalog_models import FoodItem, Shop  # noqa: E402
from canteen_ordering_service.models.user_models import Role, User  # noqa: E402

FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Fixture providing the time returned by the fixed clock."""
    return FIXED_NOW


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Fixture providing a clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def customer() -> User:
    """Fixture providing a customer account."""
    return User(
        user_id="usr_customer1",
        name="John Doe",
        email="john.doe@example.com",
        password_hash="hash",
        role=Role.CUSTOMER,
        created_at=FIXED_NOW,
    )


@pytest.fixture
def seller() -> User:
    """Fixture providing a seller account that owns ``shop``."""
    return User(
        user_id="usr_seller1",
        name="Coffee Shop Owner",
        email="shop.coffee@example.com",
        password_hash="hash",
        role=Role.SELLER,
        created_at=FIXED_NOW,
    )


@pytest.fixture
def other_seller() -> User:
    """Fixture providing a seller that owns no test shop."""
    return User(
        user_id="usr_seller2",
        name="Sandwich Shop Owner",
        email="shop.sandwich@example.com",
        password_hash="hash",
        role=Role.SELLER,
        created_at=FIXED_NOW,
    )


@pytest.fixture
def shop(seller: User) -> Shop:
    """Fixture providing an active shop owned by ``seller``."""
    return Shop(
        shop_id="shop_coffee",
        owner_id=seller.user_id,
        name="Coffee Haven",
        description="Specialty coffee and pastries",
        location="Building A, Floor 1",
        active=True,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def espresso(shop: Shop) -> FoodItem:
    """Fixture providing an available food item with 5 units in stock."""
    return FoodItem(
        item_id="food_espresso",
        shop_id=shop.shop_id,
        name="Espresso",
        price=Decimal("2.50"),
        quantity=5,
        available=True,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def croissant(shop: Shop) -> FoodItem:
    """Fixture providing a second food item of the same shop."""
    return FoodItem(
        item_id="food_croissant",
        shop_id=shop.shop_id,
        name="Croissant",
        price=Decimal("2.00"),
        quantity=50,
        available=True,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
