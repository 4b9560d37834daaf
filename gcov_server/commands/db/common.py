import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncEngine

from gcov_server.core.config import AppConfig
from gcov_server.core.database import connect_and_setup

T = TypeVar('T')


def run_with_engine(config: AppConfig, action: Callable[[AsyncEngine], Awaitable[T]]) -> T:
    """Connect, run ``action`` against the engine, and dispose of the pool."""
    async def _run() -> T:
        engine = await connect_and_setup(config.database)
        try:
            return await action(engine)
        finally:
            await engine.dispose()

    return asyncio.run(_run())
