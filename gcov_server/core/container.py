"""Dependency container wiring the shared engine into repositories and services."""
from sqlalchemy.ext.asyncio import AsyncEngine

from gcov_server.core.config import AppConfig
from gcov_server.core.repository import ReportRepository
from gcov_server.core.repository import SummaryRepository
from gcov_server.services.report_service import ReportService
from gcov_server.services.summary_service import SummaryService
from gcov_server.web.rendering import TemplateRenderer


class Container:
    """
    Holds the process-wide engine and the read-only template set.

    One instance is built at startup and handed to the web app explicitly;
    there is no global accessor.
    """

    def __init__(self, config: AppConfig, engine: AsyncEngine, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.engine = engine
        self.renderer = renderer or TemplateRenderer()
        self._summary_service: SummaryService | None = None
        self._report_service: ReportService | None = None

    # -- Repositories --

    def get_summary_repository(self) -> SummaryRepository:
        return SummaryRepository(self.engine)

    def get_report_repository(self) -> ReportRepository:
        return ReportRepository(self.engine)

    # -- Services (Singletons) --

    def get_summary_service(self) -> SummaryService:
        if not self._summary_service:
            self._summary_service = SummaryService(self.get_summary_repository())
        return self._summary_service

    def get_report_service(self) -> ReportService:
        if not self._report_service:
            self._report_service = ReportService(
                self.get_report_repository(), self.config.server.reports_dir,
            )
        return self._report_service

    async def close(self) -> None:
        await self.engine.dispose()
