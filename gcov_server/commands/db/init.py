import typer
from sqlalchemy import inspect

from gcov_server.core.config import AppConfig
from gcov_server.core.decorators import handle_errors
from gcov_server.core.logging import console

from .common import run_with_engine

app = typer.Typer()


async def list_tables(engine) -> list[str]:
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


@app.callback(invoke_without_command=True)
@handle_errors
def main():
    """Create the summary and reports tables if they do not exist."""
    config = AppConfig.load()
    tables = run_with_engine(config, list_tables)
    console.print(
        f"[green]Tables ready in[/] [cyan]{config.database.database}[/]: {', '.join(sorted(tables))}",
    )
