"""FastAPI dependencies for resolving the acting user.

Clients identify themselves with a ``userId`` query parameter. There are no
session tokens; the parameter is trusted as-is and only checked to name an
existing user.
"""

from canteen_ordering_service.exceptions import InvalidArgumentError, NotFoundError
from canteen_ordering_service.models.user_models import User
from canteen_ordering_service.services.user_service import UserService


async def get_acting_user(user_id: str | None, user_service: UserService) -> User:
    """Resolve the user named by the ``userId`` query parameter.

    Args:
        user_id: Value of the ``userId`` query parameter
        user_service: Service used to look the user up

    Returns:
        User: The acting user

    Raises:
        InvalidArgumentError: If the parameter is missing or blank
        NotFoundError: If no user has that ID
    """
    if not user_id or not user_id.strip():
        raise InvalidArgumentError("userId is required")

    user = await user_service.get_user(user_id.strip())
    if user is None:
        raise NotFoundError("User not found")

    return user
