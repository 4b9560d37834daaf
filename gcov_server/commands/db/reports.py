import typer
from rich.table import Table

from gcov_server.core.config import AppConfig
from gcov_server.core.decorators import handle_errors
from gcov_server.core.logging import console
from gcov_server.core.repository import ReportRepository
from gcov_server.web.rendering import format_time

from .common import run_with_engine

app = typer.Typer()


@app.callback(invoke_without_command=True)
@handle_errors
def main():
    """List every recorded coverage report."""
    config = AppConfig.load()

    async def fetch(engine):
        return await ReportRepository(engine).fetch_all()

    reports = run_with_engine(config, fetch)

    table = Table(title='Coverage Reports')
    table.add_column('Organisation', style='cyan')
    table.add_column('Repository', style='cyan')
    table.add_column('Branch', style='magenta')
    table.add_column('Commit')
    table.add_column('Recorded', style='dim')
    for report in reports:
        table.add_row(
            report.org, report.repo, report.branch, report.commit,
            format_time(report.insert_time),
        )
    console.print(table)
