from typing import Any

import structlog

from gcov_server.core.repository import SummaryRepository
from gcov_server.models.coverage import CoverageSummary
from gcov_server.models.summary import OrganisationView
from gcov_server.services.aggregation_service import group_by_organisation

logger = structlog.get_logger('summary_service')


class SummaryService:
    """Ingests coverage summaries and builds the dashboard view."""

    def __init__(self, repository: SummaryRepository):
        self.repository = repository

    async def ingest(self, org: str, repo: str, payload: Any) -> CoverageSummary:
        summary = CoverageSummary.from_flat(payload)
        await self.repository.insert(org, repo, summary)
        logger.info(
            'Summary ingested', org=org, repo=repo,
            line_percent=summary.line.percent,
        )
        return summary

    async def latest_by_organisation(self) -> list[OrganisationView]:
        records = await self.repository.fetch_latest_per_repo()
        return group_by_organisation(records)
