"""
Taxonomy sync job adapter.

Pushes a taxonomy's node graph and synonyms to the external service.

Dependencies: ai_orchestrator.application.services.adapters.base_adapter
System role: Taxonomy sync job kind
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.application.services.adapters.base_adapter import MonitoredJobAdapter
from ai_orchestrator.boundary.db.CRUD.taxonomy_crud import taxonomy_crud
from ai_orchestrator.boundary.db.models.ai_job_model import AIJobModel, JobKind
from ai_orchestrator.boundary.db.models.taxonomy_model import TaxonomyModel


class TaxonomySyncAdapter(MonitoredJobAdapter):
    """Taxonomy sync kind: POST /taxonomies, status /taxonomies/{handle}/status."""

    kind = JobKind.TAXONOMY_SYNC
    submit_path = "/taxonomies"
    display_name = "Taxonomy sync"

    async def request(self, taxonomy_key: str, created_by: str | None = None) -> AIJobModel:
        """
        Request a sync of one taxonomy (active or not).

        Raises:
            ConfigurationError: AI service not configured
            TaxonomyNotFoundError: Unknown taxonomy
        """
        self._client.ensure_configured()

        async with self._session_factory() as session:
            taxonomy = await self._load_taxonomy(session, taxonomy_key, require_active=False)

        return await self._enqueue(taxonomy.id, created_by=created_by)

    async def build_request(
        self,
        session: AsyncSession,
        job: AIJobModel,
        taxonomy: TaxonomyModel,
    ) -> dict[str, Any]:
        nodes = await taxonomy_crud.get_nodes(session, taxonomy.id)
        synonyms = await taxonomy_crud.get_synonyms(session, taxonomy.id)

        node_payload = []
        for node in nodes:
            item = {
                "code": node.code,
                "level": node.level,
                "label": node.label,
                "definition": node.definition,
                "parentCode": node.parent_code,
            }
            if node.is_leaf is not None:
                item["isLeaf"] = node.is_leaf
            node_payload.append(item)

        return {
            "action": "update",
            "taxonomy": {
                "key": taxonomy.key,
                "displayName": taxonomy.display_name,
                "description": taxonomy.description,
                "maxDepth": taxonomy.max_depth,
                "levelNames": taxonomy.level_names,
                "nodes": node_payload,
                "synonyms": [
                    {"nodeCode": code, "synonym": synonym} for code, synonym in synonyms
                ],
            },
        }
