"""
Test suite for the observability middleware.

System role: Verification of correlation ID propagation
"""

import uuid

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from ai_orchestrator.observability.logger import correlation_id_var
from ai_orchestrator.observability.middleware import (
    CORRELATION_HEADER,
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)


@pytest.fixture
def app() -> FastAPI:
    """Create a minimal app with both middlewares installed."""
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        return {
            "state": request.state.correlation_id,
            "context": correlation_id_var.get(),
        }

    @app.get("/boom")
    async def boom() -> dict:
        raise RuntimeError("boom")

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class TestCorrelationMiddleware:
    """Test suite for CorrelationMiddleware."""

    def test_should_echo_incoming_correlation_id(self, client) -> None:
        # Act
        response = client.get("/echo", headers={CORRELATION_HEADER: "req-42"})

        # Assert
        assert response.status_code == 200
        assert response.headers[CORRELATION_HEADER] == "req-42"
        assert response.json() == {"state": "req-42", "context": "req-42"}

    def test_should_generate_correlation_id_when_missing(self, client) -> None:
        # Act
        response = client.get("/echo")

        # Assert
        generated = response.headers[CORRELATION_HEADER]
        assert uuid.UUID(generated)
        assert response.json()["state"] == generated

    def test_context_should_be_reset_after_request(self, client) -> None:
        # Act
        client.get("/echo", headers={CORRELATION_HEADER: "req-43"})

        # Assert
        assert correlation_id_var.get() == "-"


class TestRequestLoggingMiddleware:
    """Test suite for RequestLoggingMiddleware."""

    def test_should_log_request_and_status(self, client, caplog) -> None:
        # Act
        with caplog.at_level("INFO", logger="ai_orchestrator.observability.middleware"):
            client.get("/echo", headers={CORRELATION_HEADER: "req-44"})

        # Assert
        records = [r for r in caplog.records if r.name == "ai_orchestrator.observability.middleware"]
        assert [r.getMessage() for r in records] == ["GET /echo", "GET /echo - 200"]
        assert all(r.correlation_id == "req-44" for r in records)

    def test_should_log_and_reraise_handler_errors(self, client, caplog) -> None:
        # Act
        with caplog.at_level("INFO", logger="ai_orchestrator.observability.middleware"):
            with pytest.raises(RuntimeError, match="boom"):
                client.get("/boom")

        # Assert
        assert any(record.getMessage() == "GET /boom - Exception" for record in caplog.records)

    def test_health_probes_should_log_at_debug(self, caplog) -> None:
        # Arrange
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware)

        @app.get("/api/v1/health")
        async def health() -> dict:
            return {"status": "healthy"}

        # Act
        with caplog.at_level("DEBUG", logger="ai_orchestrator.observability.middleware"):
            TestClient(app).get("/api/v1/health")

        # Assert
        records = [r for r in caplog.records if r.name == "ai_orchestrator.observability.middleware"]
        assert [r.levelname for r in records] == ["DEBUG", "DEBUG"]
