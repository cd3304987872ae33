"""Order models.

An order belongs to one customer and one shop and owns its line items. The
items are stored inline in the order record, so they live and die with it.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from canteen_ordering_service.exceptions import InvalidArgumentError


class OrderStatus(str, Enum):
    """Order lifecycle states.

    PENDING is initial. COMPLETED and CANCELLED are terminal.
    """

    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

    @classmethod
    def parse(cls, value: "str | OrderStatus") -> "OrderStatus":
        """Parse a status name case-insensitively.

        Raises:
            InvalidArgumentError: If the value names no status
        """
        if isinstance(value, OrderStatus):
            return value
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError):
            raise InvalidArgumentError(f"Invalid status: {value}") from None


class OrderItem(BaseModel):
    """One line of an order.

    ``price`` is the unit price snapshotted when the order was placed, so later
    price changes never alter historical orders.
    """

    model_config = ConfigDict(json_encoders={Decimal: str})

    order_item_id: str = Field(..., description="Unique line identifier")
    order_id: str = Field(..., description="Order this line belongs to")
    food_item_id: str = Field(..., description="Food item ordered")
    food_item_name: str = Field(..., description="Food item name at order time")
    quantity: int = Field(..., description="Units ordered", gt=0)
    price: Decimal = Field(
        ..., description="Unit price at order time", ge=0, max_digits=10, decimal_places=2
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {
            "order_item_id": self.order_item_id,
            "order_id": self.order_id,
            "food_item_id": self.food_item_id,
            "food_item_name": self.food_item_name,
            "quantity": self.quantity,
            "price": self.price,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "OrderItem":
        return cls(
            order_item_id=item["order_item_id"],
            order_id=item["order_id"],
            food_item_id=item["food_item_id"],
            food_item_name=item["food_item_name"],
            quantity=int(item["quantity"]),
            price=Decimal(str(item["price"])),
        )


class Order(BaseModel):
    """Customer order placed at a shop.

    Stored in DynamoDB with order_id as partition key and GSIs on customer_id
    and shop_id (both sorted by created_at).
    """

    model_config = ConfigDict(json_encoders={Decimal: str})

    order_id: str = Field(..., description="Unique order identifier")
    customer_id: str = Field(..., description="User id of the ordering customer")
    shop_id: str = Field(..., description="Shop the order was placed at")
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Lifecycle state")
    total_amount: Decimal = Field(default=Decimal("0"), description="Sum of line subtotals", ge=0)
    notes: str | None = Field(None, description="Customer notes for the shop", max_length=500)
    items: list[OrderItem] = Field(default_factory=list, description="Order lines in order")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")

    def add_item(self, item: OrderItem) -> None:
        """Append a line, binding it to this order."""
        item.order_id = self.order_id
        self.items.append(item)

    def calculate_total_amount(self) -> Decimal:
        """Recompute ``total_amount`` from the line subtotals.

        Returns:
            Decimal: The new total
        """
        self.total_amount = sum((item.subtotal for item in self.items), Decimal("0"))
        return self.total_amount

    def reserved_quantities(self) -> dict[str, int]:
        """Total units held per food item across all lines."""
        totals: dict[str, int] = {}
        for item in self.items:
            totals[item.food_item_id] = totals.get(item.food_item_id, 0) + item.quantity
        return totals

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "shop_id": self.shop_id,
            "status": self.status.value,
            "total_amount": self.total_amount,
            "items": [line.to_dynamodb_item() for line in self.items],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if self.notes is not None:
            item["notes"] = self.notes

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        return cls(
            order_id=item["order_id"],
            customer_id=item["customer_id"],
            shop_id=item["shop_id"],
            status=OrderStatus(item["status"]),
            total_amount=Decimal(str(item["total_amount"])),
            notes=item.get("notes"),
            items=[OrderItem.from_dynamodb_item(line) for line in item.get("items", [])],
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )
