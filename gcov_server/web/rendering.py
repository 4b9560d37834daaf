from datetime import datetime
from datetime import timezone
from pathlib import Path
from typing import Any

import jinja2
import structlog

from gcov_server.core.errors import RenderError
from gcov_server.core.errors import TemplateError
from gcov_server.models.summary import OrganisationView

logger = structlog.get_logger('rendering')

TEMPLATES_DIR = Path(__file__).parent / 'templates'
DASHBOARD_TEMPLATE = 'dashboard.html'


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')


class TemplateRenderer:
    """Holds the parsed, read-only template set shared by all requests."""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.templates_dir = Path(templates_dir)
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(self.templates_dir),
            autoescape=jinja2.select_autoescape(['html']),
            undefined=jinja2.StrictUndefined,
        )
        self.env.filters['percent'] = format_percent
        self.env.filters['utc'] = format_time

    def load(self) -> None:
        """
        Parse every template up front.

        Raises:
            TemplateError: a template has a syntax error or none were found.
        """
        names = self.env.list_templates()
        if DASHBOARD_TEMPLATE not in names:
            raise TemplateError(f"{DASHBOARD_TEMPLATE} not found in {self.templates_dir}")

        for name in names:
            try:
                self.env.get_template(name)
            except jinja2.TemplateSyntaxError as e:
                raise TemplateError(f"Failed to parse {name} (line {e.lineno}): {e.message}") from e
        logger.info('Templates loaded', count=len(names))

    def render(self, name: str, **context: Any) -> str:
        try:
            return self.env.get_template(name).render(**context)
        except jinja2.TemplateError as e:
            raise RenderError(f"Failed to render {name}: {e}") from e

    def render_dashboard(self, orgs: list[OrganisationView]) -> str:
        return self.render(DASHBOARD_TEMPLATE, orgs=orgs)
