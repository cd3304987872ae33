"""User identity models.

Users are either customers, who place orders, or sellers, who own shops.
Stored in DynamoDB with user_id as partition key and an email GSI.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

SELLER_EMAIL_PREFIX = "shop."


class Role(str, Enum):
    """Closed set of user roles."""

    CUSTOMER = "CUSTOMER"
    SELLER = "SELLER"

    @classmethod
    def for_email(cls, email: str) -> "Role":
        """Derive the role assigned at registration.

        Accounts registered with a ``shop.`` email address are sellers.
        """
        if email.lower().startswith(SELLER_EMAIL_PREFIX):
            return cls.SELLER
        return cls.CUSTOMER


class User(BaseModel):
    """Registered user of the canteen."""

    user_id: str = Field(..., description="Unique user identifier")
    name: str = Field(..., description="Display name", min_length=1, max_length=100)
    email: str = Field(..., description="Login email, unique across users", max_length=100)
    password_hash: str = Field(..., description="Salted password hash", exclude=True)
    role: Role = Field(..., description="Customer or seller")
    active: bool = Field(default=True, description="Whether the account may log in")
    created_at: datetime = Field(..., description="Registration timestamp")
    last_login: datetime | None = Field(None, description="Timestamp of last successful login")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "active": self.active,
            "created_at": self.created_at.isoformat(),
        }

        if self.last_login is not None:
            item["last_login"] = self.last_login.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "User":
        """Create User from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            User: Parsed model instance
        """
        data: dict[str, Any] = {
            "user_id": item["user_id"],
            "name": item["name"],
            "email": item["email"],
            "password_hash": item["password_hash"],
            "role": Role(item["role"]),
            "active": item.get("active", True),
            "created_at": datetime.fromisoformat(item["created_at"]),
        }

        if "last_login" in item:
            data["last_login"] = datetime.fromisoformat(item["last_login"])

        return cls(**data)
