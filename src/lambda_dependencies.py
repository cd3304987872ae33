"""Shared dependency factory for the Lambda handler.

This module provides cached dependency initialization to optimize Lambda cold starts.
Dependencies are created once and reused across invocations within the same Lambda container.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from bootstrap import TableNames
from canteen_ordering_service.handlers.api_handler import create_app
from canteen_ordering_service.observability import configure_logging, setup_observability
from canteen_ordering_service.repositories.catalog_repositories import (
    FoodItemRepository,
    ShopRepository,
    UserRepository,
)
from canteen_ordering_service.repositories.order_repositories import OrderRepository
from canteen_ordering_service.services.food_item_service import FoodItemService
from canteen_ordering_service.services.order_service import OrderService
from canteen_ordering_service.services.shop_service import ShopService
from canteen_ordering_service.services.user_service import UserService

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_dynamodb_resource: Any | None = None
_user_repository: UserRepository | None = None
_shop_repository: ShopRepository | None = None
_food_item_repository: FoodItemRepository | None = None
_order_service: OrderService | None = None
_fastapi_app: FastAPI | None = None


def get_dynamodb_resource() -> Any:
    """Create or retrieve cached DynamoDB resource.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    global _dynamodb_resource

    if _dynamodb_resource is not None:
        return _dynamodb_resource

    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        _dynamodb_resource = boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        _dynamodb_resource = boto3.resource("dynamodb", region_name=region)

    return _dynamodb_resource


def get_user_repository() -> UserRepository:
    global _user_repository

    if _user_repository is None:
        _user_repository = UserRepository(
            dynamodb_resource=get_dynamodb_resource(), table_name=TableNames.from_env().users
        )
    return _user_repository


def get_shop_repository() -> ShopRepository:
    global _shop_repository

    if _shop_repository is None:
        _shop_repository = ShopRepository(
            dynamodb_resource=get_dynamodb_resource(), table_name=TableNames.from_env().shops
        )
    return _shop_repository


def get_food_item_repository() -> FoodItemRepository:
    global _food_item_repository

    if _food_item_repository is None:
        _food_item_repository = FoodItemRepository(
            dynamodb_resource=get_dynamodb_resource(),
            table_name=TableNames.from_env().food_items,
        )
    return _food_item_repository


def get_order_service() -> OrderService:
    """Create or retrieve cached order service.

    Returns:
        Configured OrderService instance
    """
    global _order_service

    if _order_service is not None:
        return _order_service

    tables = TableNames.from_env()
    order_repository = OrderRepository(
        dynamodb_resource=get_dynamodb_resource(),
        table_name=tables.orders,
        food_items_table_name=tables.food_items,
    )

    _order_service = OrderService(
        user_repository=get_user_repository(),
        shop_repository=get_shop_repository(),
        food_item_repository=get_food_item_repository(),
        order_repository=order_repository,
        max_attempts=int(os.getenv("ORDER_COMMIT_MAX_ATTEMPTS", "3")),
    )

    logger.info("Order service initialized")
    return _order_service


def get_fastapi_app() -> FastAPI:
    """Create or retrieve cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    origins = os.getenv("CORS_ALLOWED_ORIGINS", "*")

    _fastapi_app = create_app(
        user_service=UserService(user_repository=get_user_repository()),
        shop_service=ShopService(shop_repository=get_shop_repository()),
        food_item_service=FoodItemService(
            food_item_repository=get_food_item_repository(),
            shop_repository=get_shop_repository(),
        ),
        order_service=get_order_service(),
        cors_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
    )

    setup_observability(_fastapi_app)

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Initialize Lambda environment with structured logging.

    Should be called once during Lambda cold start.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)

    logger.info("Lambda environment initialized")
