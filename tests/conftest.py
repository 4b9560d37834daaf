import pytest
import pytest_asyncio
from httpx import ASGITransport
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from gcov_server.core.config import AppConfig
from gcov_server.core.config import DatabaseConfig
from gcov_server.core.config import ServerConfig
from gcov_server.core.container import Container
from gcov_server.core.database import setup_tables
from gcov_server.models.coverage import CoverageSummary
from gcov_server.web.app import create_app


def make_flat_summary(branch=(10, 20, 50.0), function=(3, 4, 75.0), line=(90, 100, 90.0)) -> dict:
    flat = {}
    for metric, (covered, total, percent) in (
        ('branch', branch), ('function', function), ('line', line),
    ):
        flat[f'{metric}_covered'] = covered
        flat[f'{metric}_total'] = total
        flat[f'{metric}_percent'] = percent
    return flat


@pytest.fixture
def make_summary():
    """Factory for flat summaries with chosen (covered, total, percent) triples."""
    return make_flat_summary


@pytest.fixture
def flat_summary() -> dict:
    return make_flat_summary()


@pytest.fixture
def summary(flat_summary) -> CoverageSummary:
    return CoverageSummary.from_flat(flat_summary)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gcov.sqlite3'}")
    await setup_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(password='secret', database='coverage'),
        server=ServerConfig(
            bind_address='127.0.0.1:0',
            reports_dir=tmp_path / 'reports',
            assets_dir=tmp_path / 'assets',
        ),
    )


@pytest.fixture
def container(app_config, engine) -> Container:
    return Container(app_config, engine)


@pytest_asyncio.fixture
async def client(container):
    transport = ASGITransport(app=create_app(container))
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac
