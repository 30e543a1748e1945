"""
Test suite for the taxonomy AI sync endpoint.

System role: Verification of taxonomy sync HTTP API
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ai_orchestrator.api.deps import get_taxonomy_sync_adapter
from ai_orchestrator.boundary.db.models import AIJobModel, JobKind, JobStatus
from ai_orchestrator.core.exceptions import ConfigurationError, TaxonomyNotFoundError
from ai_orchestrator.main import create_app


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def mock_adapter() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def sync_job() -> AIJobModel:
    return AIJobModel(
        id=uuid.uuid4(),
        kind=JobKind.TAXONOMY_SYNC,
        status=JobStatus.PROCESSING,
        taxonomy_id=uuid.uuid4(),
        total_units=0,
        processed_units=0,
        failed_units=0,
        external_job_id="remote-1",
        payload={},
    )


class TestSyncTaxonomy:
    """Test suite for POST /taxonomies/{key}/sync-ai."""

    def test_should_accept_sync_without_body(self, client, mock_adapter, sync_job) -> None:
        # Arrange
        mock_adapter.request.return_value = sync_job
        client.app.dependency_overrides[get_taxonomy_sync_adapter] = lambda: mock_adapter

        # Act
        response = client.post("/api/v1/taxonomies/topics/sync-ai")

        # Assert
        assert response.status_code == 202
        assert response.json()["external_job_id"] == "remote-1"
        mock_adapter.request.assert_called_once_with("topics", created_by=None)

    def test_should_forward_requester(self, client, mock_adapter, sync_job) -> None:
        # Arrange
        mock_adapter.request.return_value = sync_job
        client.app.dependency_overrides[get_taxonomy_sync_adapter] = lambda: mock_adapter

        # Act
        response = client.post("/api/v1/taxonomies/topics/sync-ai", json={"created_by": "carol"})

        # Assert
        assert response.status_code == 202
        mock_adapter.request.assert_called_once_with("topics", created_by="carol")

    def test_unknown_taxonomy_should_return_404(self, client, mock_adapter) -> None:
        # Arrange
        mock_adapter.request.side_effect = TaxonomyNotFoundError("missing")
        client.app.dependency_overrides[get_taxonomy_sync_adapter] = lambda: mock_adapter

        # Act
        response = client.post("/api/v1/taxonomies/missing/sync-ai")

        # Assert
        assert response.status_code == 404
        assert response.json()["detail"] == "Taxonomy not found: missing"

    def test_unconfigured_service_should_return_400(self, client, mock_adapter) -> None:
        # Arrange
        mock_adapter.request.side_effect = ConfigurationError("AI service is not configured")
        client.app.dependency_overrides[get_taxonomy_sync_adapter] = lambda: mock_adapter

        # Act
        response = client.post("/api/v1/taxonomies/topics/sync-ai")

        # Assert
        assert response.status_code == 400
