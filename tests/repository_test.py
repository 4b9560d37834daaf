import asyncio
from datetime import datetime
from datetime import timezone

import pytest
from sqlalchemy import func
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine

from gcov_server.core.errors import PersistenceError
from gcov_server.core.errors import SerializationError
from gcov_server.core.repository import ReportRepository
from gcov_server.core.repository import SummaryRepository
from gcov_server.core.schema import SUMMARY_TABLE
from gcov_server.models.coverage import CoverageSummary


async def table_names(engine) -> list[str]:
    async with engine.connect() as conn:
        return await conn.run_sync(lambda c: inspect(c).get_table_names())


class TestSetup:
    async def test_setup_is_idempotent(self, engine):
        summaries = SummaryRepository(engine)
        reports = ReportRepository(engine)

        await summaries.setup()
        await summaries.setup()
        await reports.setup()
        await reports.setup()

        assert sorted(await table_names(engine)) == ['reports', 'summary']

    async def test_insert_without_table_raises(self, tmp_path, summary):
        bare = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bare.sqlite3'}")
        try:
            with pytest.raises(PersistenceError):
                await SummaryRepository(bare).insert('orgA', 'repoX', summary)
        finally:
            await bare.dispose()


class TestSummaryRepository:
    async def test_insert_then_fetch(self, engine, summary):
        repo = SummaryRepository(engine)
        await repo.insert('orgA', 'repoX', summary)

        rows = await repo.fetch_latest_per_repo()

        assert len(rows) == 1
        assert rows[0].org == 'orgA'
        assert rows[0].repo == 'repoX'
        assert rows[0].coverage == summary
        assert rows[0].insert_time.tzinfo is not None

    async def test_identical_submissions_collapse(self, engine, summary):
        repo = SummaryRepository(engine)
        await repo.insert('orgA', 'repoX', summary)
        await repo.insert('orgA', 'repoX', summary)
        await repo.insert('orgA', 'repoY', summary)

        rows = await repo.fetch_latest_per_repo()

        assert len(rows) == 2
        assert sorted((r.org, r.repo) for r in rows) == [('orgA', 'repoX'), ('orgA', 'repoY')]

    async def test_changed_content_is_a_new_row(self, engine, summary, make_summary):
        repo = SummaryRepository(engine)
        changed = CoverageSummary.from_flat(make_summary(line=(95, 100, 95.0)))
        await repo.insert('orgA', 'repoX', summary)
        await repo.insert('orgA', 'repoX', changed)
        await repo.insert('orgA', 'repoX', summary)

        rows = await repo.fetch_latest_per_repo()

        assert len(rows) == 2
        assert {r.coverage.line.percent for r in rows} == {90.0, 95.0}

    async def test_collapsed_row_carries_latest_time(self, engine, summary):
        older = datetime(2024, 1, 1, tzinfo=timezone.utc)
        newer = datetime(2024, 3, 1, tzinfo=timezone.utc)
        async with engine.begin() as conn:
            for stamp in (older, newer, older):
                await conn.execute(
                    SUMMARY_TABLE.insert().values(
                        insert_time=stamp, org='orgA', repo='repoX', coverage=summary.to_flat(),
                    ),
                )

        rows = await SummaryRepository(engine).fetch_latest_per_repo()

        assert len(rows) == 1
        assert rows[0].insert_time == newer

    async def test_concurrent_inserts(self, engine, summary):
        repo = SummaryRepository(engine)
        pairs = [(f'org{i % 3}', f'repo{i}') for i in range(10)]

        await asyncio.gather(*(repo.insert(org, name, summary) for org, name in pairs))

        rows = await repo.fetch_latest_per_repo()
        assert sorted((r.org, r.repo) for r in rows) == sorted(pairs)

    async def test_malformed_blob_raises(self, engine):
        async with engine.begin() as conn:
            await conn.execute(
                SUMMARY_TABLE.insert().values(insert_time=func.now(), org='o', repo='r', coverage={'line_percent': 1.0}),
            )

        with pytest.raises(SerializationError):
            await SummaryRepository(engine).fetch_latest_per_repo()


class TestReportRepository:
    async def test_fetch_all_ordered(self, engine):
        repo = ReportRepository(engine)
        await repo.insert('wibble', 'b', 'main', 'abc123')
        await repo.insert('acme', 'z', 'dev', 'def456')
        await repo.insert('acme', 'a', 'main', '0123abc')

        rows = await repo.fetch_all()

        assert [(r.org, r.repo) for r in rows] == [('acme', 'a'), ('acme', 'z'), ('wibble', 'b')]
        assert rows[0].branch == 'main'
        assert rows[0].commit == '0123abc'

    async def test_report_ids_assigned(self, engine):
        repo = ReportRepository(engine)
        await repo.insert('acme', 'a', 'main', 'c1')
        await repo.insert('acme', 'a', 'main', 'c1')

        rows = await repo.fetch_all()

        assert len(rows) == 2
        assert len({r.report_id for r in rows}) == 2
