"""Shop and food item models.

Shops are owned by sellers and soft-deleted through their ``active`` flag.
Food items carry the stock that orders reserve and release, so the quantity
mutators here are the only place availability is derived from stock.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ShopDetails(BaseModel):
    """Seller-editable shop fields, as sent by clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=200)
    location: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=100)
    opening_hours: str | None = Field(None, max_length=100)


class FoodItemDetails(BaseModel):
    """Seller-editable food item fields, as sent by clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    image_url: str | None = Field(None, max_length=255)
    quantity: int = Field(..., ge=0)
    available: bool = True


class Shop(BaseModel):
    """Canteen shop run by a seller."""

    shop_id: str = Field(..., description="Unique shop identifier")
    owner_id: str = Field(..., description="User id of the owning seller")
    name: str = Field(..., description="Shop name", min_length=1, max_length=100)
    description: str | None = Field(None, description="Shop description", max_length=200)
    location: str | None = Field(None, description="Where to find the shop", max_length=100)
    phone: str | None = Field(None, description="Contact phone number", max_length=20)
    email: str | None = Field(None, description="Contact email", max_length=100)
    opening_hours: str | None = Field(None, description="Opening hours", max_length=100)
    active: bool = Field(default=True, description="False once the shop is soft-deleted")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "shop_id": self.shop_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "active": self.active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        for field in ("description", "location", "phone", "email", "opening_hours"):
            value = getattr(self, field)
            if value is not None:
                item[field] = value

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Shop":
        """Create Shop from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Shop: Parsed model instance
        """
        return cls(
            shop_id=item["shop_id"],
            owner_id=item["owner_id"],
            name=item["name"],
            description=item.get("description"),
            location=item.get("location"),
            phone=item.get("phone"),
            email=item.get("email"),
            opening_hours=item.get("opening_hours"),
            active=item.get("active", True),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )


class FoodItem(BaseModel):
    """Food item on sale in a shop.

    ``available`` is always False when ``quantity`` is zero. The reverse does
    not hold: sellers may hide an item that still has stock.
    """

    model_config = ConfigDict(json_encoders={Decimal: str})

    item_id: str = Field(..., description="Unique food item identifier")
    shop_id: str = Field(..., description="Shop this item belongs to")
    name: str = Field(..., description="Item name", min_length=1, max_length=100)
    description: str | None = Field(None, description="Item description", max_length=500)
    price: Decimal = Field(
        ..., description="Unit price", ge=0, max_digits=10, decimal_places=2
    )
    image_url: str | None = Field(None, description="URL to item image", max_length=255)
    quantity: int = Field(..., description="Units in stock", ge=0)
    available: bool = Field(default=True, description="Whether customers can order the item")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")

    def decrease_quantity(self, amount: int, now: datetime) -> bool:
        """Take ``amount`` units out of stock.

        Args:
            amount: Units to remove
            now: Timestamp for ``updated_at``

        Returns:
            bool: True if there was enough stock, False otherwise (nothing changes)
        """
        if self.quantity < amount:
            return False

        self.quantity -= amount
        if self.quantity == 0:
            self.available = False
        self.updated_at = now
        return True

    def increase_quantity(self, amount: int, now: datetime) -> None:
        """Put ``amount`` units back into stock.

        An unavailable item becomes available again once it has stock.

        Args:
            amount: Units to add
            now: Timestamp for ``updated_at``
        """
        self.quantity += amount
        if not self.available and self.quantity > 0:
            self.available = True
        self.updated_at = now

    def set_quantity(self, quantity: int, now: datetime) -> None:
        """Overwrite the stock level, deriving availability from it."""
        if quantity < 0:
            raise ValueError("quantity must be non-negative")
        self.quantity = quantity
        self.available = quantity > 0
        self.updated_at = now

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "item_id": self.item_id,
            "shop_id": self.shop_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "available": self.available,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if self.description is not None:
            item["description"] = self.description

        if self.image_url is not None:
            item["image_url"] = self.image_url

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "FoodItem":
        """Create FoodItem from DynamoDB item.

        DynamoDB returns every number as Decimal, so quantity is converted back
        to int here.

        Args:
            item: DynamoDB item dictionary

        Returns:
            FoodItem: Parsed model instance
        """
        return cls(
            item_id=item["item_id"],
            shop_id=item["shop_id"],
            name=item["name"],
            description=item.get("description"),
            price=Decimal(str(item["price"])),
            image_url=item.get("image_url"),
            quantity=int(item["quantity"]),
            available=item.get("available", True),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )
