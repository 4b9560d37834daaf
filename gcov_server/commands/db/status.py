import typer
from rich.table import Table

from gcov_server.core.config import AppConfig
from gcov_server.core.decorators import handle_errors
from gcov_server.core.logging import console
from gcov_server.core.repository import SummaryRepository
from gcov_server.models.summary import OrganisationView
from gcov_server.services.summary_service import SummaryService
from gcov_server.web.rendering import format_percent
from gcov_server.web.rendering import format_time

from .common import run_with_engine

app = typer.Typer()


def build_org_table(org: OrganisationView) -> Table:
    table = Table(title=org.name)
    table.add_column('Repository', style='cyan')
    table.add_column('Overall', style='bold magenta', justify='right')
    table.add_column('Branch', justify='right')
    table.add_column('Function', justify='right')
    table.add_column('Line', justify='right')
    table.add_column('Updated', style='dim')
    for entry in org.repos:
        cov = entry.coverage
        table.add_row(
            entry.repo,
            format_percent(cov.overall_percent),
            *(
                f"{format_percent(m.percent)} ({m.covered}/{m.total})"
                for m in (cov.branch, cov.function, cov.line)
            ),
            format_time(entry.insert_time),
        )
    return table


@app.callback(invoke_without_command=True)
@handle_errors
def main():
    """Show the latest coverage summary per repository."""
    config = AppConfig.load()

    async def fetch(engine):
        return await SummaryService(SummaryRepository(engine)).latest_by_organisation()

    orgs = run_with_engine(config, fetch)
    if not orgs:
        console.print('[yellow]No coverage summaries recorded yet.[/]')
        return

    for org in sorted(orgs, key=lambda o: o.name):
        console.print(build_org_table(org))
        console.print()
