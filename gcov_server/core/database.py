"""Database engine construction and one-time startup setup."""
import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import create_async_engine

from gcov_server.core.config import DatabaseConfig
from gcov_server.core.errors import DatabaseStartupError
from gcov_server.core.errors import PersistenceError
from gcov_server.core.repository import ReportRepository
from gcov_server.core.repository import SummaryRepository

logger = structlog.get_logger('database')


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Build the process-wide connection pool. No connection is opened yet."""
    return create_async_engine(config.url, pool_pre_ping=True)


async def setup_tables(engine: AsyncEngine) -> None:
    await SummaryRepository(engine).setup()
    await ReportRepository(engine).setup()


async def connect_and_setup(config: DatabaseConfig, engine: AsyncEngine | None = None) -> AsyncEngine:
    """
    Connect to the DB instance and perform any required setup (creating tables).

    Raises:
        DatabaseStartupError: the database is unreachable or setup failed.
    """
    engine = engine or create_engine(config)
    logger.info('Connecting to database', config=repr(config))

    try:
        async with engine.connect() as conn:
            await conn.execute(text('SELECT 1'))
        await setup_tables(engine)
    except (SQLAlchemyError, PersistenceError, OSError) as e:
        await engine.dispose()
        raise DatabaseStartupError(
            f"Unable to connect to database {config.database!r} on {config.host!r}: {e}",
        ) from e

    logger.info('Database ready', host=config.host, database=config.database)
    return engine
