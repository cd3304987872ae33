"""FastAPI application for the canteen ordering API."""

import logging

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from canteen_ordering_service.auth.access_control import AccessPolicy
from canteen_ordering_service.auth.api_dependencies import get_acting_user
from canteen_ordering_service.exceptions import CanteenServiceError, NotFoundError
from canteen_ordering_service.models.catalog_models import (
    FoodItem,
    FoodItemDetails,
    Shop,
    ShopDetails,
)
from canteen_ordering_service.models.order_models import Order, OrderStatus
from canteen_ordering_service.models.user_models import User
from canteen_ordering_service.services.food_item_service import FoodItemService
from canteen_ordering_service.services.order_service import OrderLine, OrderService
from canteen_ordering_service.services.shop_service import ShopService
from canteen_ordering_service.services.user_service import UserService

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Request body accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class MessageResponse(BaseModel):
    """Plain message response, also used for every error."""

    message: str


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """User details returned after login or registration."""

    user_id: str
    name: str
    email: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "AuthResponse":
        return cls(user_id=user.user_id, name=user.name, email=user.email, role=user.role.value)


class OrderLineRequest(CamelModel):
    food_item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class CreateOrderRequest(CamelModel):
    """Body of a new order: the shop, the lines and optional notes."""

    shop_id: str = Field(..., min_length=1)
    order_items: list[OrderLineRequest] = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=500)


class UpdateOrderStatusRequest(CamelModel):
    status: str


def create_app(
    user_service: UserService,
    shop_service: ShopService,
    food_item_service: FoodItemService,
    order_service: OrderService,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        user_service: Service for registration, login and user lookup
        shop_service: Service for shops
        food_item_service: Service for food items
        order_service: Order engine
        cors_origins: Origins allowed to call the API from a browser

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Canteen Ordering API",
        description="Shops, menus and orders for the online canteen",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    # Store services in app state for access in route handlers
    app.state.user_service = user_service
    app.state.shop_service = shop_service
    app.state.food_item_service = food_item_service
    app.state.order_service = order_service
    app.state.access_policy = AccessPolicy()

    @app.exception_handler(CanteenServiceError)
    async def handle_service_error(_request: Request, exc: CanteenServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"Request failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"message": "; ".join(problems)})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(status_code=500, content={"message": f"Internal error: {exc}"})

    async def acting_user(user_id: str | None = Query(None, alias="userId")) -> User:
        """Dependency resolving the user named by the ``userId`` query parameter."""
        return await get_acting_user(user_id, app.state.user_service)

    async def load_shop(shop_id: str) -> Shop:
        shop: Shop | None = await app.state.shop_service.get_shop(shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")
        return shop

    async def load_food_item(item_id: str) -> FoodItem:
        food_item: FoodItem | None = await app.state.food_item_service.get_food_item(item_id)
        if food_item is None:
            raise NotFoundError("Food item not found")
        return food_item

    async def load_order(order_id: str) -> Order:
        order: Order | None = await app.state.order_service.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    # Auth

    @app.post("/api/auth/register", response_model=AuthResponse, status_code=201, tags=["Auth"])
    async def register(request: RegisterRequest) -> AuthResponse:
        user = await app.state.user_service.register(
            name=request.name, email=request.email, password=request.password
        )
        return AuthResponse.from_user(user)

    @app.post("/api/auth/login", response_model=AuthResponse, tags=["Auth"])
    async def login(request: LoginRequest) -> AuthResponse:
        user = await app.state.user_service.authenticate(
            email=request.email, password=request.password
        )
        logger.info(f"User {user.user_id} logged in")
        return AuthResponse.from_user(user)

    @app.get("/api/auth/check", response_model=MessageResponse, tags=["Auth"])
    async def check_auth() -> MessageResponse:
        return MessageResponse(message="Authenticated")

    @app.get("/api/users/{user_id}", response_model=User, tags=["Users"])
    async def get_user(user_id: str) -> User:
        user: User | None = await app.state.user_service.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # Shops

    @app.get("/api/shop", response_model=list[Shop], tags=["Shops"])
    async def list_shops() -> list[Shop]:
        """List every active shop."""
        shops: list[Shop] = await app.state.shop_service.get_active_shops()
        return shops

    @app.get("/api/shop/my-shops", response_model=list[Shop], tags=["Shops"])
    async def list_my_shops(user: User = Depends(acting_user)) -> list[Shop]:
        """List the active shops owned by the acting seller."""
        app.state.access_policy.check_can_list_own_shops(user)
        shops: list[Shop] = await app.state.shop_service.get_shops_for_owner(user.user_id)
        return shops

    @app.get("/api/shop/{shop_id}", response_model=Shop, tags=["Shops"])
    async def get_shop(shop_id: str) -> Shop:
        shop: Shop | None = await app.state.shop_service.get_active_shop(shop_id)
        if shop is None:
            raise NotFoundError("Shop not found or inactive")
        return shop

    @app.post("/api/shop", response_model=Shop, status_code=201, tags=["Shops"])
    async def create_shop(details: ShopDetails, user: User = Depends(acting_user)) -> Shop:
        app.state.access_policy.check_can_create_shop(user)
        shop: Shop = await app.state.shop_service.create_shop(owner=user, details=details)
        return shop

    @app.put("/api/shop/{shop_id}", response_model=Shop, tags=["Shops"])
    async def update_shop(
        shop_id: str, details: ShopDetails, user: User = Depends(acting_user)
    ) -> Shop:
        app.state.access_policy.check_can_update_shop(user, await load_shop(shop_id))
        shop: Shop = await app.state.shop_service.update_shop(shop_id=shop_id, details=details)
        return shop

    @app.delete("/api/shop/{shop_id}", response_model=MessageResponse, tags=["Shops"])
    async def delete_shop(shop_id: str, user: User = Depends(acting_user)) -> MessageResponse:
        """Soft delete a shop. Its orders and food items are kept."""
        app.state.access_policy.check_can_delete_shop(user, await load_shop(shop_id))
        await app.state.shop_service.soft_delete_shop(shop_id)
        return MessageResponse(message="Shop deleted successfully")

    # Food items

    @app.get("/api/food/shop/{shop_id}", response_model=list[FoodItem], tags=["Food Items"])
    async def list_shop_food_items(shop_id: str) -> list[FoodItem]:
        """List the food items customers can order from an active shop."""
        if await app.state.shop_service.get_active_shop(shop_id) is None:
            raise NotFoundError("Shop not found or inactive")
        items: list[FoodItem] = await app.state.food_item_service.get_available_food_items_for_shop(
            shop_id
        )
        return items

    @app.get("/api/food/{item_id}", response_model=FoodItem, tags=["Food Items"])
    async def get_food_item(item_id: str) -> FoodItem:
        return await load_food_item(item_id)

    @app.post("/api/food", response_model=FoodItem, status_code=201, tags=["Food Items"])
    async def create_food_item(
        details: FoodItemDetails,
        shop_id: str = Query(..., alias="shopId"),
        user: User = Depends(acting_user),
    ) -> FoodItem:
        app.state.access_policy.check_can_create_food_item(user, await load_shop(shop_id))
        food_item: FoodItem = await app.state.food_item_service.create_food_item(
            shop_id=shop_id, details=details
        )
        return food_item

    @app.put("/api/food/{item_id}", response_model=FoodItem, tags=["Food Items"])
    async def update_food_item(
        item_id: str, details: FoodItemDetails, user: User = Depends(acting_user)
    ) -> FoodItem:
        existing = await load_food_item(item_id)
        shop = await app.state.shop_service.get_shop(existing.shop_id)
        app.state.access_policy.check_can_update_food_item(user, shop)
        food_item: FoodItem = await app.state.food_item_service.update_food_item(
            item_id=item_id, details=details
        )
        return food_item

    @app.put("/api/food/{item_id}/quantity", response_model=FoodItem, tags=["Food Items"])
    async def update_food_item_quantity(
        item_id: str,
        quantity: int = Query(...),
        user: User = Depends(acting_user),
    ) -> FoodItem:
        existing = await load_food_item(item_id)
        shop = await app.state.shop_service.get_shop(existing.shop_id)
        app.state.access_policy.check_can_update_food_item_quantity(user, shop)
        food_item: FoodItem = await app.state.food_item_service.update_quantity(
            item_id=item_id, quantity=quantity
        )
        return food_item

    @app.delete("/api/food/{item_id}", response_model=MessageResponse, tags=["Food Items"])
    async def delete_food_item(item_id: str, user: User = Depends(acting_user)) -> MessageResponse:
        existing = await load_food_item(item_id)
        shop = await app.state.shop_service.get_shop(existing.shop_id)
        app.state.access_policy.check_can_delete_food_item(user, shop)
        await app.state.food_item_service.delete_food_item(item_id)
        return MessageResponse(message="Food item deleted successfully")

    # Orders

    @app.get("/api/orders/my-orders", response_model=list[Order], tags=["Orders"])
    async def list_my_orders(user: User = Depends(acting_user)) -> list[Order]:
        """Customers get the orders they placed, sellers the orders of their shops."""
        orders: list[Order] = await app.state.order_service.get_orders_for_user(user)
        return orders

    @app.get("/api/orders/shop/{shop_id}", response_model=list[Order], tags=["Orders"])
    async def list_shop_orders(shop_id: str, user: User = Depends(acting_user)) -> list[Order]:
        shop = await app.state.shop_service.get_shop(shop_id)
        app.state.access_policy.check_can_view_shop_orders(user, shop)
        orders: list[Order] = await app.state.order_service.get_orders_for_shop(shop_id)
        return orders

    @app.get(
        "/api/orders/shop/{shop_id}/status/{status}",
        response_model=list[Order],
        tags=["Orders"],
    )
    async def list_shop_orders_by_status(
        shop_id: str, status: str, user: User = Depends(acting_user)
    ) -> list[Order]:
        shop = await app.state.shop_service.get_shop(shop_id)
        app.state.access_policy.check_can_view_shop_orders(user, shop)
        orders: list[Order] = await app.state.order_service.get_orders_for_shop(
            shop_id, status=status
        )
        return orders

    @app.get("/api/orders/{order_id}", response_model=Order, tags=["Orders"])
    async def get_order(order_id: str, user: User = Depends(acting_user)) -> Order:
        order = await load_order(order_id)
        shop = await app.state.shop_service.get_shop(order.shop_id)
        app.state.access_policy.check_can_view_order(user, order, shop)
        return order

    @app.post("/api/orders", response_model=Order, status_code=201, tags=["Orders"])
    async def create_order(request: CreateOrderRequest, user: User = Depends(acting_user)) -> Order:
        """Place an order for the acting customer."""
        app.state.access_policy.check_can_create_order(user)
        order: Order = await app.state.order_service.create_order(
            customer_id=user.user_id,
            shop_id=request.shop_id,
            lines=[
                OrderLine(food_item_id=line.food_item_id, quantity=line.quantity)
                for line in request.order_items
            ],
            notes=request.notes,
        )
        return order

    @app.put("/api/orders/{order_id}/status", response_model=Order, tags=["Orders"])
    async def update_order_status(
        order_id: str, request: UpdateOrderStatusRequest, user: User = Depends(acting_user)
    ) -> Order:
        """Move an order to a new status; cancelling releases its stock."""
        status = OrderStatus.parse(request.status)
        order = await load_order(order_id)
        shop = await app.state.shop_service.get_shop(order.shop_id)
        app.state.access_policy.check_can_update_order_status(user, order, shop, status)
        updated: Order = await app.state.order_service.update_order_status(
            order_id=order_id, new_status=status
        )
        return updated

    return app
