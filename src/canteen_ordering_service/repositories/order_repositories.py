"""DynamoDB repository for orders and the inventory writes they imply.

Placing and cancelling an order touch two tables: the order record and the
stock of every food item it references. Both go through TransactWriteItems so
either every write lands or none does. Food item updates are guarded by
condition expressions on the values that were read, which turns a concurrent
stock change into a CONFLICT outcome the service can retry.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from canteen_ordering_service.models.order_models import Order, OrderStatus
from canteen_ordering_service.repositories.pagination import query_all

logger = logging.getLogger(__name__)

CONFLICT_CODES = frozenset(
    {
        "ConditionalCheckFailed",
        "ConditionalCheckFailedException",
        "TransactionConflict",
        "TransactionConflictException",
    }
)

# TransactWriteItems accepts at most 100 actions; one is the order itself.
MAX_ITEMS_PER_TRANSACTION = 99


class CommitOutcome(str, Enum):
    """Result of a conditional write."""

    COMMITTED = "committed"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class StockReservation:
    """Stock change for one food item when an order is placed.

    Attributes:
        item_id: Food item being reserved
        shop_id: Shop the item must still belong to
        expected_quantity: Quantity read before the reservation
        expected_available: Availability read before the reservation
        new_quantity: Quantity after the reservation
        new_available: Availability after the reservation
    """

    item_id: str
    shop_id: str
    expected_quantity: int
    expected_available: bool
    new_quantity: int
    new_available: bool


@dataclass(frozen=True)
class StockRelease:
    """Units handed back to a food item when an order is cancelled."""

    item_id: str
    quantity: int


def classify_client_error(error: ClientError) -> CommitOutcome:
    """Map a write failure to CONFLICT (retryable) or FAILED."""
    code = error.response.get("Error", {}).get("Code", "")
    if code in CONFLICT_CODES:
        return CommitOutcome.CONFLICT
    if code == "TransactionCanceledException":
        reasons = error.response.get("CancellationReasons", [])
        if any(reason.get("Code") in CONFLICT_CODES for reason in reasons):
            return CommitOutcome.CONFLICT
    return CommitOutcome.FAILED


class OrderRepository:
    """Repository for order CRUD and transactional stock changes.

    Manages order records in DynamoDB with order_id as partition key and GSIs
    ``customer_id-index`` and ``shop_id-index``, both sorted by created_at.
    """

    def __init__(
        self,
        dynamodb_resource: DynamoDBServiceResource,
        table_name: str,
        food_items_table_name: str,
    ) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the orders table
            food_items_table_name: Name of the food items table updated in transactions
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.food_items_table_name = food_items_table_name
        self.table: Table = dynamodb_resource.Table(table_name)
        self.client = dynamodb_resource.meta.client
        self._serializer = TypeSerializer()

    def get_order(self, order_id: str) -> Order | None:
        """Retrieve an order by ID.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"order_id": order_id}, ConsistentRead=True)

            if "Item" not in response:
                return None

            return Order.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get order: {e}")  # pragma: no cover
            return None

    def list_orders_for_customer(
        self, customer_id: str, status: OrderStatus | None = None
    ) -> list[Order]:
        """List a customer's orders, newest first.

        Args:
            customer_id: Customer user identifier
            status: Optional status filter

        Returns:
            list: Orders (empty list if none found)
        """
        return self._list_by_index("customer_id-index", "customer_id", customer_id, status)

    def list_orders_for_shop(self, shop_id: str, status: OrderStatus | None = None) -> list[Order]:
        """List a shop's orders, newest first.

        Args:
            shop_id: Shop identifier
            status: Optional status filter

        Returns:
            list: Orders (empty list if none found)
        """
        return self._list_by_index("shop_id-index", "shop_id", shop_id, status)

    def create_order(
        self, order: Order, reservations: list[StockReservation], now: datetime
    ) -> CommitOutcome:
        """Store a new order and reserve its stock in one transaction.

        Args:
            order: Order to store
            reservations: One entry per distinct food item in the order
            now: Timestamp written to the updated food items

        Returns:
            CommitOutcome: COMMITTED, CONFLICT if any food item changed since it
            was read, FAILED otherwise
        """
        actions: list[dict[str, Any]] = [
            {
                "Put": {
                    "TableName": self.table_name,
                    "Item": self._marshal(order.to_dynamodb_item()),
                    "ConditionExpression": "attribute_not_exists(order_id)",
                }
            }
        ]
        actions.extend(self._reservation_action(r, now) for r in reservations)

        return self._transact(actions, f"create order {order.order_id}")

    def cancel_order(
        self, order: Order, releases: list[StockRelease], now: datetime
    ) -> CommitOutcome:
        """Mark an order CANCELLED and hand its stock back in one transaction.

        The order update is conditioned on the status that was read, so two
        concurrent cancellations cannot both release stock.

        Args:
            order: Order as read, before cancellation
            releases: Units to return per food item
            now: Timestamp for updated_at on every touched record

        Returns:
            CommitOutcome: COMMITTED, CONFLICT if the order changed since it
            was read, FAILED otherwise
        """
        actions: list[dict[str, Any]] = [
            self._status_action(order, OrderStatus.CANCELLED, now),
        ]
        actions.extend(self._release_action(r, now) for r in releases)

        return self._transact(actions, f"cancel order {order.order_id}")

    def update_status(self, order: Order, status: OrderStatus, now: datetime) -> CommitOutcome:
        """Change an order's status without touching stock.

        Args:
            order: Order as read
            status: New status
            now: Timestamp for updated_at

        Returns:
            CommitOutcome: COMMITTED, CONFLICT if the status changed since it
            was read, FAILED otherwise
        """
        try:
            self.table.update_item(
                Key={"order_id": order.order_id},
                UpdateExpression="SET #status = :status, updated_at = :now",
                ConditionExpression="#status = :expected",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":status": status.value,
                    ":now": now.isoformat(),
                    ":expected": order.status.value,
                },
            )
            return CommitOutcome.COMMITTED

        except ClientError as e:
            outcome = classify_client_error(e)
            logger.warning(f"Failed to update status of order {order.order_id}: {outcome.value}")
            return outcome

    def delete_order(self, order_id: str) -> bool:
        """Delete an order together with its items.

        Args:
            order_id: Order identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"order_id": order_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete order: {e}")  # pragma: no cover
            return False

    def _list_by_index(
        self, index_name: str, key_name: str, key_value: str, status: OrderStatus | None
    ) -> list[Order]:
        kwargs: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": f"{key_name} = :key",
            "ExpressionAttributeValues": {":key": key_value},
            "ScanIndexForward": False,  # Most recent first
        }
        if status is not None:
            kwargs["FilterExpression"] = "#status = :status"
            kwargs["ExpressionAttributeNames"] = {"#status": "status"}
            kwargs["ExpressionAttributeValues"][":status"] = status.value

        try:
            items = query_all(self.table, **kwargs)
            return [Order.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list orders by {key_name}: {e}")  # pragma: no cover
            return []

    def _reservation_action(self, reservation: StockReservation, now: datetime) -> dict[str, Any]:
        return {
            "Update": {
                "TableName": self.food_items_table_name,
                "Key": self._marshal({"item_id": reservation.item_id}),
                "UpdateExpression": (
                    "SET #quantity = :new_quantity, #available = :new_available, updated_at = :now"
                ),
                "ConditionExpression": (
                    "shop_id = :shop_id AND #quantity = :expected_quantity "
                    "AND #available = :expected_available"
                ),
                "ExpressionAttributeNames": {"#quantity": "quantity", "#available": "available"},
                "ExpressionAttributeValues": self._marshal(
                    {
                        ":new_quantity": reservation.new_quantity,
                        ":new_available": reservation.new_available,
                        ":now": now.isoformat(),
                        ":shop_id": reservation.shop_id,
                        ":expected_quantity": reservation.expected_quantity,
                        ":expected_available": reservation.expected_available,
                    }
                ),
            }
        }

    def _release_action(self, release: StockRelease, now: datetime) -> dict[str, Any]:
        # Adding a positive amount always leaves stock, so the item is orderable again.
        return {
            "Update": {
                "TableName": self.food_items_table_name,
                "Key": self._marshal({"item_id": release.item_id}),
                "UpdateExpression": (
                    "SET #quantity = #quantity + :amount, #available = :true, updated_at = :now"
                ),
                "ConditionExpression": "attribute_exists(item_id)",
                "ExpressionAttributeNames": {"#quantity": "quantity", "#available": "available"},
                "ExpressionAttributeValues": self._marshal(
                    {":amount": release.quantity, ":true": True, ":now": now.isoformat()}
                ),
            }
        }

    def _status_action(self, order: Order, status: OrderStatus, now: datetime) -> dict[str, Any]:
        return {
            "Update": {
                "TableName": self.table_name,
                "Key": self._marshal({"order_id": order.order_id}),
                "UpdateExpression": "SET #status = :status, updated_at = :now",
                "ConditionExpression": "#status = :expected",
                "ExpressionAttributeNames": {"#status": "status"},
                "ExpressionAttributeValues": self._marshal(
                    {
                        ":status": status.value,
                        ":now": now.isoformat(),
                        ":expected": order.status.value,
                    }
                ),
            }
        }

    def _transact(self, actions: list[dict[str, Any]], description: str) -> CommitOutcome:
        try:
            self.client.transact_write_items(TransactItems=actions)
            return CommitOutcome.COMMITTED

        except ClientError as e:
            outcome = classify_client_error(e)
            if outcome is CommitOutcome.CONFLICT:
                logger.warning(f"Transaction to {description} hit a conflict")
            else:
                logger.error(f"Transaction to {description} failed: {e}")
            return outcome

    def _marshal(self, values: dict[str, Any]) -> dict[str, Any]:
        """Convert plain Python values to DynamoDB wire format for the client API."""
        return {key: self._serializer.serialize(value) for key, value in values.items()}
