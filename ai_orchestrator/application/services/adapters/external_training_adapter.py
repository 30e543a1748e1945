"""
External training job adapter.

Asks the external service to train from a training file that was already
uploaded elsewhere.

Dependencies: ai_orchestrator.application.services.adapters.base_adapter
System role: External training job kind
"""

from typing import Any
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.application.services.adapters.base_adapter import MonitoredJobAdapter
from ai_orchestrator.boundary.db.models.ai_job_model import AIJobModel, JobKind
from ai_orchestrator.boundary.db.models.taxonomy_model import TaxonomyModel
from ai_orchestrator.core.exceptions import ValidationError


class ExternalTrainingAdapter(MonitoredJobAdapter):
    """External training kind: POST /learn with externalTraining=true."""

    kind = JobKind.EXTERNAL_TRAINING
    submit_path = "/learn"
    display_name = "External training"

    async def request(
        self,
        taxonomy_key: str,
        training_data_url: str,
        file_name: str,
        record_count: int,
        created_by: str | None = None,
    ) -> AIJobModel:
        """
        Request training from an uploaded file.

        Args:
            taxonomy_key: Active taxonomy to train
            training_data_url: Absolute http(s) URL of the training file
            file_name: Original file name (for display)
            record_count: Number of training records (>= 1)
            created_by: Requester identifier

        Raises:
            ValidationError: Malformed URL, missing file name, or record_count < 1
            TaxonomyNotFoundError: Unknown or inactive taxonomy
            ConfigurationError: AI service not configured
        """
        parsed = urlparse(training_data_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError("Training data URL must be a valid URL", field="training_data_url")
        if not file_name:
            raise ValidationError("File name is required", field="file_name")
        if record_count is None or record_count < 1:
            raise ValidationError("Record count must be at least 1", field="record_count")

        async with self._session_factory() as session:
            taxonomy = await self._load_taxonomy(session, taxonomy_key)

        self._client.ensure_configured()

        return await self._enqueue(
            taxonomy.id,
            created_by=created_by,
            payload={
                "training_data_url": training_data_url,
                "file_name": file_name,
                "record_count": record_count,
            },
        )

    async def build_request(
        self,
        session: AsyncSession,
        job: AIJobModel,
        taxonomy: TaxonomyModel,
    ) -> dict[str, Any]:
        return {
            "taxonomyKey": taxonomy.key,
            "trainingDataUrl": (job.payload or {}).get("training_data_url"),
            "externalTraining": True,
        }
