"""Custom metrics for the canteen ordering service."""

from decimal import Decimal

from opentelemetry import metrics

meter = metrics.get_meter("canteen-svc")

orders_created_counter = meter.create_counter(
    name="orders_created_total",
    description="Total number of orders placed by shop",
    unit="1",
)

orders_rejected_counter = meter.create_counter(
    name="orders_rejected_total",
    description="Total number of order requests rejected by reason",
    unit="1",
)

status_transition_counter = meter.create_counter(
    name="order_status_transitions_total",
    description="Total number of order status changes by target status",
    unit="1",
)

inventory_units_counter = meter.create_counter(
    name="inventory_units_total",
    description="Food item units reserved by orders and released by cancellations",
    unit="1",
)

# Optimistic commit retries caused by concurrent stock or status changes
commit_conflict_counter = meter.create_counter(
    name="order_commit_conflicts_total",
    description="Total number of order transactions that lost an optimistic check",
    unit="1",
)

order_amount_histogram = meter.create_histogram(
    name="order_total_amount",
    description="Total amount of placed orders",
    unit="1",
)


def record_order_created(shop_id: str, total_amount: Decimal, units: int) -> None:
    """Record a placed order.

    Args:
        shop_id: Shop the order was placed at
        total_amount: Order total
        units: Food item units reserved by the order
    """
    orders_created_counter.add(1, {"shop_id": shop_id})
    order_amount_histogram.record(float(total_amount), {"shop_id": shop_id})
    inventory_units_counter.add(units, {"direction": "reserved"})


def record_order_rejected(reason: str) -> None:
    """Record an order request that failed validation.

    Args:
        reason: Exception class name of the rejection
    """
    orders_rejected_counter.add(1, {"reason": reason})


def record_status_transition(from_status: str, to_status: str) -> None:
    """Record an order status change.

    Args:
        from_status: Status before the change
        to_status: Status after the change
    """
    status_transition_counter.add(1, {"from": from_status, "to": to_status})


def record_inventory_released(units: int) -> None:
    """Record units handed back to stock by a cancellation."""
    inventory_units_counter.add(units, {"direction": "released"})


def record_commit_conflict(operation: str) -> None:
    """Record a lost optimistic check.

    Args:
        operation: The operation that will be retried (e.g. "create", "cancel")
    """
    commit_conflict_counter.add(1, {"operation": operation})
