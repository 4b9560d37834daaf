from pathlib import Path
from typing import Any

import structlog

from gcov_server.core.errors import PersistenceError
from gcov_server.core.errors import SerializationError
from gcov_server.core.repository import ReportRepository
from gcov_server.models.summary import ReportRecord

logger = structlog.get_logger('report_service')

REPORT_FIELDS = ('branch', 'commit')


class ReportService:
    """Records report artifacts and lists what has been archived on disk."""

    def __init__(self, repository: ReportRepository, reports_dir: Path):
        self.repository = repository
        self.reports_dir = Path(reports_dir)

    async def record(self, org: str, repo: str, payload: Any) -> None:
        if not isinstance(payload, dict):
            raise SerializationError(
                f"expected a JSON object, got {type(payload).__name__}",
            )
        for key in REPORT_FIELDS:
            if not isinstance(payload.get(key), str):
                raise SerializationError(f"field {key!r} must be a string")

        await self.repository.insert(org, repo, payload['branch'], payload['commit'])
        logger.info(
            'Report recorded', org=org, repo=repo,
            branch=payload['branch'], commit=payload['commit'],
        )

    async def list_reports(self) -> list[ReportRecord]:
        return await self.repository.fetch_all()

    def list_orgs(self) -> list[str]:
        """Names of the organisation directories under the reports directory."""
        if not self.reports_dir.is_dir():
            logger.warning('Reports directory not found', path=str(self.reports_dir))
            return []

        try:
            return sorted(
                entry.name for entry in self.reports_dir.iterdir() if entry.is_dir()
            )
        except OSError as e:
            raise PersistenceError(f"Unable to list {self.reports_dir}: {e}") from e
