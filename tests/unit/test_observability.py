"""Unit tests for tracing, metrics and logging setup."""

import logging
import os
from collections.abc import Iterator
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from pythonjsonlogger import jsonlogger

from canteen_ordering_service.exceptions import InvalidArgumentError
from canteen_ordering_service.observability import metrics as canteen_metrics
from canteen_ordering_service.observability.config import configure_logging, setup_observability
from canteen_ordering_service.observability.decorators import traced


@pytest.fixture
def exporter() -> Iterator[InMemorySpanExporter]:
    """Route spans of functions decorated inside the test to memory."""
    span_exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    with patch(
        "canteen_ordering_service.observability.decorators.trace.get_tracer",
        side_effect=lambda name: provider.get_tracer(name),
    ):
        yield span_exporter


@pytest.mark.unit
class TestTraced:
    """Tests for the traced decorator."""

    @pytest.mark.asyncio
    async def test_async_span_records_attributes(self, exporter: InMemorySpanExporter) -> None:
        """Test that named keyword arguments become span attributes."""

        @traced("order.update_status", attribute_args=("order_id",))
        async def update(order_id: str, new_status: str) -> str:
            return new_status

        assert await update(order_id="ord_1", new_status="READY") == "READY"

        (span,) = exporter.get_finished_spans()
        assert span.name == "order.update_status"
        assert span.attributes["canteen.order_id"] == "ord_1"
        assert span.attributes["function.name"] == "update"
        assert span.attributes["success"] is True

    def test_sync_span_uses_function_name(self, exporter: InMemorySpanExporter) -> None:
        @traced()
        def compute() -> int:
            return 1

        compute()

        (span,) = exporter.get_finished_spans()
        assert span.name == "compute"

    @pytest.mark.asyncio
    async def test_business_rejections_do_not_mark_span_as_error(
        self, exporter: InMemorySpanExporter
    ) -> None:
        """Test that 4xx rejections are recorded without an error status."""

        @traced("order.create")
        async def create() -> None:
            raise InvalidArgumentError("Not enough quantity for Espresso")

        with pytest.raises(InvalidArgumentError):
            await create()

        (span,) = exporter.get_finished_spans()
        assert span.attributes["success"] is False
        assert span.attributes["http.response.status_code"] == 400
        assert span.status.status_code is StatusCode.UNSET

    @pytest.mark.asyncio
    async def test_unexpected_errors_mark_span_as_error(
        self, exporter: InMemorySpanExporter
    ) -> None:
        @traced("order.create")
        async def create() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await create()

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code is StatusCode.ERROR
        assert span.events[0].name == "exception"


@pytest.mark.unit
class TestMetrics:
    """Tests for the metric recording helpers."""

    @patch.object(canteen_metrics, "inventory_units_counter")
    @patch.object(canteen_metrics, "order_amount_histogram")
    @patch.object(canteen_metrics, "orders_created_counter")
    def test_record_order_created(
        self, mock_created: Mock, mock_amount: Mock, mock_units: Mock
    ) -> None:
        canteen_metrics.record_order_created("shop_coffee", Decimal("11.00"), 5)

        mock_created.add.assert_called_once_with(1, {"shop_id": "shop_coffee"})
        mock_amount.record.assert_called_once_with(11.0, {"shop_id": "shop_coffee"})
        mock_units.add.assert_called_once_with(5, {"direction": "reserved"})

    @patch.object(canteen_metrics, "status_transition_counter")
    def test_record_status_transition(self, mock_counter: Mock) -> None:
        canteen_metrics.record_status_transition("PENDING", "CANCELLED")

        mock_counter.add.assert_called_once_with(1, {"from": "PENDING", "to": "CANCELLED"})

    @patch.object(canteen_metrics, "commit_conflict_counter")
    def test_record_commit_conflict(self, mock_counter: Mock) -> None:
        canteen_metrics.record_commit_conflict("create")

        mock_counter.add.assert_called_once_with(1, {"operation": "create"})


@pytest.mark.unit
class TestConfig:
    """Tests for logging and OpenTelemetry setup."""

    def test_configure_logging_installs_json_formatter(self) -> None:
        root_logger = logging.getLogger()
        original_handlers = root_logger.handlers[:]
        original_level = root_logger.level
        try:
            with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}):
                configure_logging()

            assert root_logger.level == logging.DEBUG
            assert isinstance(root_logger.handlers[-1].formatter, jsonlogger.JsonFormatter)
            assert logging.getLogger("botocore").level == logging.WARNING
        finally:
            root_logger.handlers[:] = original_handlers
            root_logger.setLevel(original_level)

    @patch("canteen_ordering_service.observability.config.FastAPIInstrumentor")
    @patch("canteen_ordering_service.observability.config.BotocoreInstrumentor")
    @patch("canteen_ordering_service.observability.config.setup_metrics")
    @patch("canteen_ordering_service.observability.config.setup_tracing")
    @patch("canteen_ordering_service.observability.config.metrics.set_meter_provider")
    @patch("canteen_ordering_service.observability.config.trace.set_tracer_provider")
    @patch.dict(os.environ, {"ENVIRONMENT": "test"})
    def test_exporters_disabled_in_test_environment(
        self,
        mock_set_tracer_provider: Mock,
        mock_set_meter_provider: Mock,
        mock_setup_tracing: Mock,
        mock_setup_metrics: Mock,
        mock_botocore: Mock,
        mock_fastapi: Mock,
    ) -> None:
        """Test that no exporter is configured in tests and the app is instrumented."""
        app = Mock()

        setup_observability(app)

        mock_setup_tracing.assert_not_called()
        mock_setup_metrics.assert_not_called()
        mock_set_tracer_provider.assert_called_once()
        mock_botocore.return_value.instrument.assert_called_once()
        mock_fastapi.instrument_app.assert_called_once_with(app)
