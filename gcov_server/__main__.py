import typer

from gcov_server.commands import db
from gcov_server.commands import serve
from gcov_server.core.config import LogConfig
from gcov_server.core.decorators import handle_errors
from gcov_server.core.logging import setup_logging

app = typer.Typer(
    help='gcov-server: collect coverage summaries from CI and show them on a dashboard.',
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)

app.add_typer(serve.app, name='serve')
app.add_typer(db.app, name='db')


@app.callback()
@handle_errors
def main(
    debug: bool = typer.Option(False, '--debug', help='Enable debug logging'),
):
    """
    gcov-server CLI - coverage summaries for every repository.
    """
    level = 'DEBUG' if debug else 'INFO'
    setup_logging(level=level, config=LogConfig())


if __name__ == '__main__':
    app()
