"""Local development bootstrap: DynamoDB tables and demo data.

Tables are normally provisioned by infrastructure code. This module creates
them against DynamoDB Local (``CREATE_TABLES=true``) and fills an empty users
table with a small demo canteen (``SEED_SAMPLE_DATA=true``).
"""

import logging
import os
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from botocore.exceptions import ClientError
from werkzeug.security import generate_password_hash

from canteen_ordering_service.clock import Clock, utc_now
from canteen_ordering_service.models.catalog_models import FoodItem, Shop
from canteen_ordering_service.models.user_models import Role, User
from canteen_ordering_service.repositories.catalog_repositories import (
    FoodItemRepository,
    ShopRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableNames:
    """DynamoDB table names used by the service."""

    users: str = "canteen-users"
    shops: str = "canteen-shops"
    food_items: str = "canteen-food-items"
    orders: str = "canteen-orders"

    @classmethod
    def from_env(cls) -> "TableNames":
        return cls(
            users=os.getenv("DYNAMODB_USERS_TABLE", cls.users),
            shops=os.getenv("DYNAMODB_SHOPS_TABLE", cls.shops),
            food_items=os.getenv("DYNAMODB_FOOD_ITEMS_TABLE", cls.food_items),
            orders=os.getenv("DYNAMODB_ORDERS_TABLE", cls.orders),
        )


def _string_attributes(*names: str) -> list[dict[str, str]]:
    return [{"AttributeName": name, "AttributeType": "S"} for name in names]


def _index(name: str, partition_key: str, sort_key: str | None = None) -> dict[str, Any]:
    key_schema = [{"AttributeName": partition_key, "KeyType": "HASH"}]
    if sort_key:
        key_schema.append({"AttributeName": sort_key, "KeyType": "RANGE"})
    return {
        "IndexName": name,
        "KeySchema": key_schema,
        "Projection": {"ProjectionType": "ALL"},
    }


def table_definitions(tables: TableNames) -> list[dict[str, Any]]:
    """Build the ``create_table`` arguments for every table.

    Args:
        tables: Table names to create

    Returns:
        list: One keyword-argument dict per table
    """
    return [
        {
            "TableName": tables.users,
            "KeySchema": [{"AttributeName": "user_id", "KeyType": "HASH"}],
            "AttributeDefinitions": _string_attributes("user_id", "email"),
            "GlobalSecondaryIndexes": [_index("email-index", "email")],
        },
        {
            "TableName": tables.shops,
            "KeySchema": [{"AttributeName": "shop_id", "KeyType": "HASH"}],
            "AttributeDefinitions": _string_attributes("shop_id", "owner_id"),
            "GlobalSecondaryIndexes": [_index("owner_id-index", "owner_id")],
        },
        {
            "TableName": tables.food_items,
            "KeySchema": [{"AttributeName": "item_id", "KeyType": "HASH"}],
            "AttributeDefinitions": _string_attributes("item_id", "shop_id"),
            "GlobalSecondaryIndexes": [_index("shop_id-index", "shop_id")],
        },
        {
            "TableName": tables.orders,
            "KeySchema": [{"AttributeName": "order_id", "KeyType": "HASH"}],
            "AttributeDefinitions": _string_attributes(
                "order_id", "customer_id", "shop_id", "created_at"
            ),
            "GlobalSecondaryIndexes": [
                _index("customer_id-index", "customer_id", "created_at"),
                _index("shop_id-index", "shop_id", "created_at"),
            ],
        },
    ]


def create_tables(dynamodb_resource: Any, tables: TableNames) -> list[str]:
    """Create any missing table with on-demand billing.

    Args:
        dynamodb_resource: Boto3 DynamoDB resource
        tables: Table names to create

    Returns:
        list: Names of the tables that were created
    """
    created = []
    for definition in table_definitions(tables):
        name = definition["TableName"]
        try:
            table = dynamodb_resource.create_table(BillingMode="PAY_PER_REQUEST", **definition)
            table.wait_until_exists()
            created.append(name)
            logger.info(f"Created table {name}")
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceInUseException":
                logger.info(f"Table {name} already exists")
                continue
            raise
    return created


_SAMPLE_SHOPS: list[dict[str, Any]] = [
    {
        "owner": ("Coffee Shop Owner", "shop.coffee@example.com", "password123"),
        "shop": {
            "name": "Coffee Haven",
            "description": "Specialty coffee and pastries",
            "location": "Building A, Floor 1",
            "phone": "123-456-7890",
            "email": "coffee.haven@example.com",
            "opening_hours": "8:00 AM - 6:00 PM",
        },
        "items": [
            (
                "Espresso",
                "Strong coffee brewed by forcing hot water through finely-ground coffee beans",
                "2.50",
                100,
            ),
            ("Cappuccino", "Espresso with steamed milk and foam", "3.50", 80),
            ("Croissant", "Buttery, flaky pastry", "2.00", 50),
        ],
    },
    {
        "owner": ("Sandwich Shop Owner", "shop.sandwich@example.com", "password456"),
        "shop": {
            "name": "Sandwich Corner",
            "description": "Fresh sandwiches made to order",
            "location": "Building B, Floor 2",
            "phone": "987-654-3210",
            "email": "sandwich.corner@example.com",
            "opening_hours": "10:00 AM - 4:00 PM",
        },
        "items": [
            (
                "Turkey Club",
                "Turkey, bacon, lettuce, tomato, and mayo on toasted bread",
                "6.50",
                30,
            ),
            (
                "Veggie Delight",
                "Cucumber, avocado, lettuce, tomato, and hummus on whole grain bread",
                "5.50",
                25,
            ),
            ("Potato Chips", "Crispy, salted potato chips", "1.50", 100),
        ],
    },
]

_SAMPLE_CUSTOMERS = [
    ("John Doe", "john.doe@example.com", "password123"),
    ("Jane Smith", "jane.smith@example.com", "password456"),
]


def _new_user(name: str, email: str, password: str, clock: Clock) -> User:
    return User(
        user_id=f"usr_{uuid.uuid4().hex[:12]}",
        name=name,
        email=email,
        password_hash=generate_password_hash(password),
        role=Role.for_email(email),
        active=True,
        created_at=clock(),
    )


def seed_sample_data(
    user_repository: UserRepository,
    shop_repository: ShopRepository,
    food_item_repository: FoodItemRepository,
    clock: Clock = utc_now,
) -> bool:
    """Insert the demo users, shops and food items into an empty database.

    Args:
        user_repository: Repository for users
        shop_repository: Repository for shops
        food_item_repository: Repository for food items
        clock: Source of the current time

    Returns:
        bool: True if data was seeded, False if users already existed
    """
    if user_repository.has_users():
        logger.info("Users table is not empty, skipping sample data")
        return False

    for entry in _SAMPLE_SHOPS:
        owner = _new_user(*entry["owner"], clock=clock)
        user_repository.save_user(owner)

        now = clock()
        shop = Shop(
            shop_id=f"shop_{uuid.uuid4().hex[:12]}",
            owner_id=owner.user_id,
            active=True,
            created_at=now,
            updated_at=now,
            **entry["shop"],
        )
        shop_repository.save_shop(shop)

        for name, description, price, quantity in entry["items"]:
            food_item_repository.save_food_item(
                FoodItem(
                    item_id=f"food_{uuid.uuid4().hex[:12]}",
                    shop_id=shop.shop_id,
                    name=name,
                    description=description,
                    price=Decimal(price),
                    quantity=quantity,
                    available=True,
                    created_at=now,
                    updated_at=now,
                )
            )

    for customer in _SAMPLE_CUSTOMERS:
        user_repository.save_user(_new_user(*customer, clock=clock))

    logger.info(
        f"Seeded {len(_SAMPLE_SHOPS) + len(_SAMPLE_CUSTOMERS)} users "
        f"and {len(_SAMPLE_SHOPS)} shops of sample data"
    )
    return True
