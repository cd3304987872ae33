"""Unit tests for resolving the acting user."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from canteen_ordering_service.auth.api_dependencies import get_acting_user
from canteen_ordering_service.exceptions import InvalidArgumentError, NotFoundError
from canteen_ordering_service.models.user_models import User
from canteen_ordering_service.services.user_service import UserService


@pytest.mark.unit
class TestGetActingUser:
    """Test suite for get_acting_user dependency."""

    @pytest.fixture
    def user_service(self, customer: User) -> MagicMock:
        service = MagicMock(spec=UserService)
        service.get_user = AsyncMock(
            side_effect=lambda user_id: customer if user_id == customer.user_id else None
        )
        return service

    @pytest.mark.asyncio
    async def test_returns_user_when_known(self, user_service: MagicMock, customer: User) -> None:
        """Test that a known userId resolves to the user."""
        user = await get_acting_user(user_id=" usr_customer1 ", user_service=user_service)

        assert user == customer
        user_service.get_user.assert_awaited_once_with("usr_customer1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [None, "", "   "])
    async def test_raises_400_when_user_id_missing(
        self, user_service: MagicMock, user_id: str | None
    ) -> None:
        """Test that requests without userId are rejected before any lookup."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            await get_acting_user(user_id=user_id, user_service=user_service)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "userId is required"
        user_service.get_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_raises_404_when_user_unknown(self, user_service: MagicMock) -> None:
        """Test that unknown users are rejected."""
        with pytest.raises(NotFoundError) as exc_info:
            await get_acting_user(user_id="usr_missing", user_service=user_service)

        assert exc_info.value.status_code == 404
