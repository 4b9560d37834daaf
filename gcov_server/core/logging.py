import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Any

import structlog
from rich.console import Console
from rich.markup import escape

from gcov_server.core.config import LogConfig
from gcov_server.core.errors import LoggingSetupError

# Central console for rich output
console = Console()


class RichConsoleRenderer:
    """
    A structlog renderer producing rich markup for an event.
    It formats events as key=value pairs and applies rich styling based on
    an '_style' key in the event dict, and standard log levels.
    """

    def __init__(self):
        self._level_styles = {
            'debug': 'dim',
            'info': 'green',
            'warning': 'yellow',
            'error': 'bold red',
            'critical': 'bold magenta',
        }

    def __call__(self, logger, name, event_dict):
        # Pop custom style hint - this ensures it's not printed as a key-value pair
        custom_style = event_dict.pop('_style', None)

        event = event_dict.pop('event', '')
        log_level = event_dict.pop('level', 'info')
        logger_name = event_dict.pop('logger', 'root')
        timestamp = event_dict.pop('timestamp', '')
        exception = event_dict.pop('exception', None)
        stack_info = event_dict.pop('stack_info', None)

        parts = []
        if timestamp:
            parts.append(f"[dim]{timestamp}[/dim]")
        if logger_name:
            parts.append(f"[bold]{escape(logger_name)}[/bold]")

        level_style = self._level_styles.get(log_level, 'white')
        parts.append(f"[{level_style}]{log_level:<8}[/{level_style}]")

        message = escape(str(event))
        if custom_style:
            message = f"[{custom_style}]{message}[/{custom_style}]"
        parts.append(message)

        for key, value in event_dict.items():
            parts.append(f"[cyan]{key}[/cyan]=[green]{escape(repr(value))}[/green]")

        final_msg = ' '.join(parts)

        if exception:
            final_msg += f"\n[red]{escape(exception)}[/red]"

        if stack_info:
            final_msg += f"\n[dim]{escape(stack_info)}[/dim]"

        return final_msg


class RichConsoleHandler(logging.Handler):
    """Prints formatted records through the shared rich console."""

    def __init__(self, target: Console | None = None):
        super().__init__()
        self._console = target or console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._console.print(self.format(record), highlight=False)
        except Exception:
            self.handleError(record)


def drop_style_processor(logger, method_name, event_dict):
    """
    Remove the internal '_style' key if it exists.
    Ensures it never leaks into JSON logs.
    """
    event_dict.pop('_style', None)
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _json_formatter(shared_processors: list[Any]) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            drop_style_processor,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )


def setup_logging(level: str = 'INFO', config: LogConfig | None = None) -> None:
    """
    Configure structured logging for the application.

    Console output goes through rich (or JSON when ENV=production); every
    record is also written as JSON to an hourly rotated file under the log
    directory.

    Raises:
        LoggingSetupError: the log directory or file cannot be opened.
    """
    config = config or LogConfig()
    shared_processors = _shared_processors()

    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            config.log_file,
            when='H',
            backupCount=config.max_log_files,
            encoding='utf-8',
        )
    except OSError as e:
        raise LoggingSetupError(
            f"Failed to initialise rolling file appender in {config.log_dir}: {e}",
        ) from e
    file_handler.setFormatter(_json_formatter(shared_processors))

    # Different formatters for Dev (Console) vs Prod (JSON)
    if os.getenv('ENV') == 'production':
        console_handler: logging.Handler = logging.StreamHandler()
        console_handler.setFormatter(_json_formatter(shared_processors))
    else:
        console_handler = RichConsoleHandler()
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared_processors,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    RichConsoleRenderer(),
                ],
            ),
        )

    logging.basicConfig(
        level=level,
        handlers=[console_handler, file_handler],
        force=True,
    )

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
