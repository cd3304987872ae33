"""Main application entry point for the canteen ordering service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from bootstrap import TableNames, create_tables, seed_sample_data
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


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    # Check for local DynamoDB endpoint (for development)
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        access_key = os.getenv("AWS_ACCESS_KEY_ID")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY")
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        # Production - boto3 will use default credential chain (IAM role, env vars, etc.)
        return boto3.resource("dynamodb", region_name=region)


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def get_cors_origins() -> list[str]:
    """Parse the comma separated CORS_ALLOWED_ORIGINS setting."""
    origins = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    return [origin.strip() for origin in origins.split(",") if origin.strip()] or ["*"]


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the DynamoDB resource (and local tables when asked to)
    3. Initializes repositories
    4. Creates services
    5. Creates the FastAPI app
    6. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)

    logger.info("Initializing canteen ordering service...")

    dynamodb_resource = get_dynamodb_resource()
    tables = TableNames.from_env()

    if env_flag("CREATE_TABLES"):
        create_tables(dynamodb_resource, tables)

    user_repository = UserRepository(dynamodb_resource=dynamodb_resource, table_name=tables.users)
    shop_repository = ShopRepository(dynamodb_resource=dynamodb_resource, table_name=tables.shops)
    food_item_repository = FoodItemRepository(
        dynamodb_resource=dynamodb_resource, table_name=tables.food_items
    )
    order_repository = OrderRepository(
        dynamodb_resource=dynamodb_resource,
        table_name=tables.orders,
        food_items_table_name=tables.food_items,
    )

    logger.info(
        f"Repositories configured - users: {tables.users}, shops: {tables.shops}, "
        f"food items: {tables.food_items}, orders: {tables.orders}"
    )

    if env_flag("SEED_SAMPLE_DATA"):
        seed_sample_data(user_repository, shop_repository, food_item_repository)

    max_attempts = int(os.getenv("ORDER_COMMIT_MAX_ATTEMPTS", "3"))
    user_service = UserService(user_repository=user_repository)
    shop_service = ShopService(shop_repository=shop_repository)
    food_item_service = FoodItemService(
        food_item_repository=food_item_repository, shop_repository=shop_repository
    )
    order_service = OrderService(
        user_repository=user_repository,
        shop_repository=shop_repository,
        food_item_repository=food_item_repository,
        order_repository=order_repository,
        max_attempts=max_attempts,
    )

    logger.info("Services initialized")

    app = create_app(
        user_service=user_service,
        shop_service=shop_service,
        food_item_service=food_item_service,
        order_service=order_service,
        cors_origins=get_cors_origins(),
    )

    setup_observability(app)

    logger.info("Canteen ordering service initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
