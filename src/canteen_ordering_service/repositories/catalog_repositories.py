"""DynamoDB repository classes for users, shops and food items.

Reads use simple return values (None/empty list) for expected failures rather
than raising exceptions. Writes return a bool so services can decide how to
surface a failed save. Conditional food item writes return a CommitOutcome
like the order transactions.
"""

import logging
from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from canteen_ordering_service.models.catalog_models import FoodItem, Shop
from canteen_ordering_service.models.user_models import User
from canteen_ordering_service.repositories.order_repositories import (
    CommitOutcome,
    classify_client_error,
)
from canteen_ordering_service.repositories.pagination import query_all, scan_all

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user CRUD operations.

    Manages user records in DynamoDB with user_id as partition key and an
    ``email-index`` GSI for login lookups.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_user(self, user_id: str) -> User | None:
        """Retrieve a user by ID.

        Args:
            user_id: User identifier

        Returns:
            User if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"user_id": user_id})

            if "Item" not in response:
                return None

            return User.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get user: {e}")  # pragma: no cover
            return None

    def find_by_email(self, email: str) -> User | None:
        """Retrieve a user by email address.

        Args:
            email: Login email

        Returns:
            User if found, None otherwise
        """
        try:
            response = self.table.query(
                IndexName="email-index",
                KeyConditionExpression="email = :email",
                ExpressionAttributeValues={":email": email},
                Limit=1,
            )

            items = response.get("Items", [])
            if not items:
                return None

            return User.from_dynamodb_item(items[0])

        except ClientError as e:
            logger.error(f"Failed to find user by email: {e}")  # pragma: no cover
            return None

    def has_users(self) -> bool:
        """Check whether any user exists (used to decide whether to seed demo data)."""
        try:
            response = self.table.scan(Select="COUNT", Limit=1)
            return int(response.get("Count", 0)) > 0

        except ClientError as e:
            logger.error(f"Failed to check for users: {e}")  # pragma: no cover
            return False

    def save_user(self, user: User) -> bool:
        """Save or update a user.

        Args:
            user: User to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=user.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save user: {e}")  # pragma: no cover
            return False

    def delete_user(self, user_id: str) -> bool:
        """Delete a user.

        Args:
            user_id: User identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"user_id": user_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete user: {e}")  # pragma: no cover
            return False


class ShopRepository:
    """Repository for shop CRUD operations.

    Manages shop records in DynamoDB with shop_id as partition key and an
    ``owner_id-index`` GSI.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_shop(self, shop_id: str) -> Shop | None:
        """Retrieve a shop by ID, active or not.

        Args:
            shop_id: Shop identifier

        Returns:
            Shop if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"shop_id": shop_id})

            if "Item" not in response:
                return None

            return Shop.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get shop: {e}")  # pragma: no cover
            return None

    def save_shop(self, shop: Shop) -> bool:
        """Save or update a shop.

        Args:
            shop: Shop to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=shop.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save shop: {e}")  # pragma: no cover
            return False

    def list_active_shops(self) -> list[Shop]:
        """List every active shop.

        Returns:
            list: Active shops (empty list if none found)
        """
        try:
            items = scan_all(
                self.table,
                FilterExpression="#active = :true",
                ExpressionAttributeNames={"#active": "active"},
                ExpressionAttributeValues={":true": True},
            )
            return [Shop.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list shops: {e}")  # pragma: no cover
            return []

    def list_shops_for_owner(self, owner_id: str, active_only: bool = True) -> list[Shop]:
        """List shops owned by a seller.

        Uses a Global Secondary Index on owner_id.

        Args:
            owner_id: Seller user identifier
            active_only: Skip soft-deleted shops

        Returns:
            list: Shops owned by the seller (empty list if none found)
        """
        try:
            items = query_all(
                self.table,
                IndexName="owner_id-index",
                KeyConditionExpression="owner_id = :oid",
                ExpressionAttributeValues={":oid": owner_id},
            )
            shops = [Shop.from_dynamodb_item(item) for item in items]
            if active_only:
                shops = [shop for shop in shops if shop.active]
            return shops

        except ClientError as e:
            logger.error(f"Failed to list shops for owner: {e}")  # pragma: no cover
            return []


class FoodItemRepository:
    """Repository for food item CRUD operations.

    Manages food item records in DynamoDB with item_id as partition key and a
    ``shop_id-index`` GSI. Stock changes caused by orders do not go through
    this class; they are written by OrderRepository inside transactions.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_food_item(self, item_id: str) -> FoodItem | None:
        """Retrieve a food item by ID.

        Args:
            item_id: Food item identifier

        Returns:
            FoodItem if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"item_id": item_id}, ConsistentRead=True)

            if "Item" not in response:
                return None

            return FoodItem.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get food item: {e}")  # pragma: no cover
            return None

    def save_food_item(self, food_item: FoodItem) -> bool:
        """Save or update a food item.

        Args:
            food_item: FoodItem to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=food_item.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save food item: {e}")  # pragma: no cover
            return False

    def replace_food_item(self, food_item: FoodItem, expected_quantity: int) -> CommitOutcome:
        """Overwrite a food item only if its stock is still ``expected_quantity``.

        Seller edits carry a full quantity, so writing them over a stock level
        that an order changed in the meantime would undo that reservation.

        Args:
            food_item: FoodItem with the edited fields
            expected_quantity: Quantity read before the edit

        Returns:
            CommitOutcome: CONFLICT if the stock moved or the item is gone
        """
        try:
            self.table.put_item(
                Item=food_item.to_dynamodb_item(),
                ConditionExpression="#quantity = :expected",
                ExpressionAttributeNames={"#quantity": "quantity"},
                ExpressionAttributeValues={":expected": expected_quantity},
            )
            return CommitOutcome.COMMITTED

        except ClientError as e:
            outcome = classify_client_error(e)
            if outcome is CommitOutcome.CONFLICT:
                logger.warning(f"Stock of food item {food_item.item_id} changed during edit")
            else:
                logger.error(f"Failed to replace food item: {e}")
            return outcome

    def list_food_items_for_shop(self, shop_id: str, available_only: bool = False) -> list[FoodItem]:
        """List food items of a shop.

        Uses a Global Secondary Index on shop_id.

        Args:
            shop_id: Shop identifier
            available_only: Only return items customers can order

        Returns:
            list: Food items (empty list if none found)
        """
        kwargs: dict[str, Any] = {
            "IndexName": "shop_id-index",
            "KeyConditionExpression": "shop_id = :sid",
            "ExpressionAttributeValues": {":sid": shop_id},
        }
        if available_only:
            kwargs["FilterExpression"] = "#available = :true"
            kwargs["ExpressionAttributeNames"] = {"#available": "available"}
            kwargs["ExpressionAttributeValues"] = {":sid": shop_id, ":true": True}

        try:
            items = query_all(self.table, **kwargs)
            return [FoodItem.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list food items: {e}")  # pragma: no cover
            return []

    def delete_food_item(self, item_id: str) -> bool:
        """Delete a food item.

        Args:
            item_id: Food item identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"item_id": item_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete food item: {e}")  # pragma: no cover
            return False
