"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from canteen_ordering_service.exceptions import CanteenServiceError

# Type variable for generic function signatures
F = TypeVar("F", bound=Callable[..., Any])


def _record_failure(span: Span, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))

    # Business rule rejections are part of normal traffic, not span errors
    if isinstance(error, CanteenServiceError) and error.status_code < 500:
        span.set_attribute("http.response.status_code", error.status_code)
        return

    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, str(error)))


def traced(
    span_name: str | None = None,
    service_name: str = "canteen-svc",
    attribute_args: tuple[str, ...] = (),
) -> Callable[[F], F]:
    """Decorator to add OpenTelemetry tracing to a function.

    Creates a new span for the decorated function. Keyword arguments named in
    ``attribute_args`` are copied onto the span (e.g. ``order_id``), which
    makes a single order traceable across requests.

    Args:
        span_name: Name for the span (defaults to function name if not provided)
        service_name: Service name for span attributes
        attribute_args: Keyword argument names to record as span attributes

    Returns:
        Decorated function with tracing

    Example:
        @traced("order.update_status", attribute_args=("order_id",))
        async def update_order_status(self, order_id: str, status: str) -> Order:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def start_span(span: Span, kwargs: dict[str, Any]) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)
            for arg in attribute_args:
                value = kwargs.get(arg)
                if value is not None:
                    span.set_attribute(f"canteen.{arg}", str(value))

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                start_span(span, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                start_span(span, kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
