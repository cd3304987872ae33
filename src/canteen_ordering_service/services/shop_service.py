"""Shop service for the seller-facing shop catalog."""

import logging
import uuid

from canteen_ordering_service.clock import Clock, utc_now
from canteen_ordering_service.exceptions import NotFoundError, PersistenceError
from canteen_ordering_service.models.catalog_models import Shop, ShopDetails
from canteen_ordering_service.models.user_models import User
from canteen_ordering_service.repositories.catalog_repositories import ShopRepository

logger = logging.getLogger(__name__)


class ShopService:
    """Service for creating, editing and soft-deleting shops.

    Customer-facing reads only ever see active shops; ``get_shop`` returns
    inactive ones too so owners and historical orders can still resolve them.
    """

    def __init__(self, shop_repository: ShopRepository, clock: Clock = utc_now) -> None:
        """Initialize the ShopService.

        Args:
            shop_repository: Repository for shop records
            clock: Source of the current time
        """
        self.shop_repository = shop_repository
        self.clock = clock

    async def get_active_shops(self) -> list[Shop]:
        """List every active shop, sorted by name."""
        shops = self.shop_repository.list_active_shops()
        return sorted(shops, key=lambda shop: shop.name.lower())

    async def get_shop(self, shop_id: str) -> Shop | None:
        """Get a shop by ID, whether active or not.

        Args:
            shop_id: The shop ID

        Returns:
            Shop if found, None otherwise
        """
        return self.shop_repository.get_shop(shop_id)

    async def get_active_shop(self, shop_id: str) -> Shop | None:
        """Get a shop by ID only if it has not been soft-deleted."""
        shop = self.shop_repository.get_shop(shop_id)
        if shop is None or not shop.active:
            return None
        return shop

    async def get_shops_for_owner(self, owner_id: str) -> list[Shop]:
        """List the active shops owned by a seller."""
        return self.shop_repository.list_shops_for_owner(owner_id, active_only=True)

    async def is_shop_owned_by_user(self, user_id: str, shop_id: str) -> bool:
        """Check shop ownership.

        Returns:
            True if the shop exists and is owned by the user, False otherwise
        """
        shop = self.shop_repository.get_shop(shop_id)
        return shop is not None and shop.owner_id == user_id

    async def create_shop(self, owner: User, details: ShopDetails) -> Shop:
        """Create an active shop owned by ``owner``.

        Raises:
            PersistenceError: If the shop could not be stored
        """
        now = self.clock()
        shop = Shop(
            shop_id=f"shop_{uuid.uuid4().hex[:12]}",
            owner_id=owner.user_id,
            active=True,
            created_at=now,
            updated_at=now,
            **details.model_dump(),
        )

        if not self.shop_repository.save_shop(shop):
            raise PersistenceError("Failed to save shop")

        logger.info(f"Created shop {shop.shop_id} ({shop.name}) for owner {owner.user_id}")
        return shop

    async def update_shop(self, shop_id: str, details: ShopDetails) -> Shop:
        """Replace the editable fields of a shop.

        Owner, active flag and creation time are preserved.

        Raises:
            NotFoundError: If the shop does not exist
            PersistenceError: If the shop could not be stored
        """
        existing = self.shop_repository.get_shop(shop_id)
        if existing is None:
            raise NotFoundError("Shop not found")

        shop = existing.model_copy(update={**details.model_dump(), "updated_at": self.clock()})

        if not self.shop_repository.save_shop(shop):
            raise PersistenceError("Failed to save shop")

        logger.info(f"Updated shop {shop_id}")
        return shop

    async def soft_delete_shop(self, shop_id: str) -> bool:
        """Mark a shop inactive.

        Returns:
            True if the shop existed and was deactivated, False otherwise
        """
        shop = self.shop_repository.get_shop(shop_id)
        if shop is None:
            return False

        shop.active = False
        shop.updated_at = self.clock()
        saved = self.shop_repository.save_shop(shop)
        if saved:
            logger.info(f"Soft deleted shop {shop_id}")
        return saved
