"""Data access layer for coverage summaries and report metadata."""
from abc import ABC
from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy import select
from sqlalchemy import Table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from gcov_server.core.errors import PersistenceError
from gcov_server.core.schema import REPORTS_TABLE
from gcov_server.core.schema import SUMMARY_TABLE
from gcov_server.models.coverage import CoverageSummary
from gcov_server.models.summary import ReportRecord
from gcov_server.models.summary import SummaryRecord

logger = structlog.get_logger('repository')


class BaseRepository(ABC):
    """Abstract base repository sharing the process-wide engine."""

    table: Table

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def setup(self) -> None:
        """Idempotent table creation."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self.table.create, checkfirst=True)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Unable to create table {self.table.name}: {e}") from e

    async def _insert(self, values: dict[str, Any]) -> None:
        stmt = self.table.insert().values(insert_time=func.now(), **values)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Unable to insert to {self.table.name}: {e}") from e

        if result.rowcount != 1:
            raise PersistenceError(f"Unable to insert to {self.table.name}")

    async def _fetch(self, stmt) -> list[Any]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return list(result.mappings())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Unable to query {self.table.name}: {e}") from e


class SummaryRepository(BaseRepository):
    """Append-only store of coverage summaries."""

    table = SUMMARY_TABLE

    async def insert(self, org: str, repo: str, summary: CoverageSummary) -> None:
        await self._insert({
            'org': org,
            'repo': repo,
            'coverage': summary.to_flat(),
        })
        logger.debug('Summary inserted', org=org, repo=repo)

    async def fetch_latest_per_repo(self) -> list[SummaryRecord]:
        """
        One row per distinct (org, repo, coverage) triple, stamped with the
        latest insertion time of that group.

        Identical consecutive submissions collapse into one row; a change of
        coverage content yields an additional row for the same repository.
        """
        t = self.table
        stmt = select(
            t.c.org,
            t.c.repo,
            t.c.coverage,
            func.max(t.c.insert_time).label('insert_time'),
        ).group_by(t.c.org, t.c.repo, t.c.coverage)

        rows = await self._fetch(stmt)
        return [
            SummaryRecord(
                insert_time=row['insert_time'],
                org=row['org'],
                repo=row['repo'],
                coverage=CoverageSummary.from_flat(row['coverage']),
            )
            for row in rows
        ]


class ReportRepository(BaseRepository):
    """Append-only store of report metadata."""

    table = REPORTS_TABLE

    async def insert(self, org: str, repo: str, branch: str, commit: str) -> None:
        await self._insert({
            'org': org,
            'repo': repo,
            'branch': branch,
            'commit': commit,
        })
        logger.debug('Report inserted', org=org, repo=repo, branch=branch, commit=commit)

    async def fetch_all(self) -> list[ReportRecord]:
        t = self.table
        stmt = select(t).order_by(t.c.org, t.c.repo, t.c.insert_time)
        rows = await self._fetch(stmt)
        return [ReportRecord.model_validate(dict(row)) for row in rows]
