"""
Tests for the correlation-ID logging helpers.
"""

import contextvars

from sentinel.utils.logger import (
    SERVICE_NAME, add_request_context, correlation_id_ctx, ensure_correlation_id, set_correlation_id
)


class TestCorrelationId:

    def test_set_explicit_id(self) -> None:
        ctx = contextvars.copy_context()

        assert ctx.run(set_correlation_id, "req-123") == "req-123"
        assert ctx.run(ensure_correlation_id) == "req-123"

    def test_ensure_generates_once(self) -> None:
        def run() -> tuple:
            correlation_id_ctx.set("")
            return ensure_correlation_id(), ensure_correlation_id()

        first, second = contextvars.copy_context().run(run)

        assert first
        assert first == second

    def test_processor_adds_request_context(self) -> None:
        def run() -> dict:
            set_correlation_id("req-456")
            return add_request_context(None, "info", {"event": "Request started"})

        event = contextvars.copy_context().run(run)

        assert event == {"event": "Request started", "service": SERVICE_NAME, "correlation_id": "req-456"}

    def test_processor_without_correlation_id(self) -> None:
        def run() -> dict:
            correlation_id_ctx.set("")
            return add_request_context(None, "info", {"event": "startup"})

        event = contextvars.copy_context().run(run)

        assert event == {"event": "startup", "service": SERVICE_NAME}
