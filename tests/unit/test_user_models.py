"""Unit tests for user models."""

from datetime import datetime

import pytest

from canteen_ordering_service.models.user_models import Role, User


@pytest.mark.unit
class TestRole:
    """Test suite for Role."""

    @pytest.mark.parametrize(
        ("email", "expected"),
        [
            ("shop.coffee@example.com", Role.SELLER),
            ("SHOP.tea@example.com", Role.SELLER),
            ("john.doe@example.com", Role.CUSTOMER),
            ("coffee.shop@example.com", Role.CUSTOMER),
        ],
    )
    def test_for_email(self, email: str, expected: Role) -> None:
        """Test that shop. addresses register as sellers."""
        assert Role.for_email(email) is expected


@pytest.mark.unit
class TestUser:
    """Test suite for User."""

    def test_password_hash_never_serialized(self, customer: User) -> None:
        """Test that the credential hash is excluded from dumps."""
        assert "password_hash" not in customer.model_dump()
        assert "password_hash" not in customer.model_dump_json()

    def test_dynamodb_round_trip(self, customer: User, now: datetime) -> None:
        """Test conversion keeps the hash and optional last login."""
        customer.last_login = now

        item = customer.to_dynamodb_item()

        assert item["password_hash"] == "hash"
        assert item["role"] == "CUSTOMER"
        assert User.from_dynamodb_item(item) == customer

    def test_to_dynamodb_item_without_last_login(self, customer: User) -> None:
        """Test that a user who never logged in has no last_login attribute."""
        assert "last_login" not in customer.to_dynamodb_item()
