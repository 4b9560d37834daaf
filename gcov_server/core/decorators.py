import functools
from collections.abc import Callable
from typing import Any

import structlog
import typer
from rich.markup import escape

from gcov_server.core.errors import GcovServerError
from gcov_server.core.logging import console
logger = structlog.get_logger()


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator mapping gcov-server errors in CLI commands to exit codes."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except GcovServerError as e:
            console.print(f"[bold red]{type(e).__name__}:[/] {escape(str(e))}", highlight=False)
            logger.debug('Fatal error', exc_info=True)
            raise typer.Exit(e.exit_code)
        except KeyboardInterrupt:
            console.print('\n[yellow]Operation cancelled by user.[/]')
            raise typer.Exit(130)
        except Exception as e:
            console.print(f"[bold red]Unexpected Error:[/] {escape(str(e))}", highlight=False)
            logger.exception('Unexpected error')
            raise typer.Exit(1)
    return wrapper
