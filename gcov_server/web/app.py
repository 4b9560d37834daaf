"""HTTP surface: ingestion, dashboard, report listing and static report files."""
import json
import time
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi.responses import FileResponse
from fastapi.responses import HTMLResponse
from fastapi.responses import JSONResponse
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from gcov_server.__version__ import __version__
from gcov_server.core.container import Container
from gcov_server.core.errors import GcovServerError
from gcov_server.core.errors import SerializationError
from gcov_server.services.report_service import ReportService
from gcov_server.services.summary_service import SummaryService
from gcov_server.web.rendering import TemplateRenderer

logger = structlog.get_logger('http')


class SPAStaticFiles(StaticFiles):
    """Static files that fall back to a single-page-app entry file on 404."""

    def __init__(self, *args, fallback=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fallback = fallback

    async def get_response(self, path: str, scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as e:
            if e.status_code != 404 or self.fallback is None or not self.fallback.is_file():
                raise
            return FileResponse(self.fallback)


def reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


async def read_json(request: Request) -> Any:
    body = await request.body()
    try:
        return json.loads(body, parse_constant=reject_constant)
    except ValueError as e:
        raise SerializationError(f"Invalid JSON body: {e}") from e


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_summary_service(container: Container = Depends(get_container)) -> SummaryService:
    return container.get_summary_service()


def get_report_service(container: Container = Depends(get_container)) -> ReportService:
    return container.get_report_service()


def get_renderer(container: Container = Depends(get_container)) -> TemplateRenderer:
    return container.renderer


def create_app(container: Container) -> FastAPI:
    """Build the FastAPI app around an already connected container."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await container.close()

    app = FastAPI(
        title='gcov-server',
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )
    app.state.container = container

    @app.middleware('http')
    async def trace_requests(request: Request, call_next):
        t0 = time.perf_counter()
        response = await call_next(request)
        logger.info(
            'Request handled',
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed=f"{time.perf_counter() - t0:.3f}s",
        )
        return response

    @app.exception_handler(GcovServerError)
    async def app_error(request: Request, exc: GcovServerError) -> PlainTextResponse:
        logger.error(
            'Request failed', path=request.url.path,
            error_type=type(exc).__name__, error=str(exc),
        )
        return PlainTextResponse(f"Something went wrong: {exc}", status_code=500)

    @app.post('/{org}/{repo}/summary')
    async def ingest_summary(
        org: str,
        repo: str,
        request: Request,
        service: SummaryService = Depends(get_summary_service),
    ) -> Response:
        payload = await read_json(request)
        await service.ingest(org, repo, payload)
        return Response(status_code=200)

    @app.post('/{org}/{repo}/report')
    async def ingest_report(
        org: str,
        repo: str,
        request: Request,
        service: ReportService = Depends(get_report_service),
    ) -> Response:
        payload = await read_json(request)
        await service.record(org, repo, payload)
        return Response(status_code=200)

    @app.get('/summary', response_class=HTMLResponse)
    @app.get('/', response_class=HTMLResponse)
    async def dashboard(
        service: SummaryService = Depends(get_summary_service),
        renderer: TemplateRenderer = Depends(get_renderer),
    ) -> HTMLResponse:
        orgs = await service.latest_by_organisation()
        return HTMLResponse(renderer.render_dashboard(orgs))

    @app.get('/api/summary')
    async def summary_json(service: SummaryService = Depends(get_summary_service)) -> JSONResponse:
        orgs = await service.latest_by_organisation()
        return JSONResponse({'orgs': [org.to_json_dict() for org in orgs]})

    @app.get('/report')
    async def reports_json(service: ReportService = Depends(get_report_service)) -> JSONResponse:
        reports = await service.list_reports()
        return JSONResponse({'reports': [report.to_json_dict() for report in reports]})

    @app.get('/report/orgs')
    async def report_orgs(service: ReportService = Depends(get_report_service)) -> JSONResponse:
        return JSONResponse({'orgs': service.list_orgs()})

    server = container.config.server
    server.reports_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        '/reports',
        SPAStaticFiles(
            directory=server.reports_dir,
            check_dir=False,
            fallback=server.spa_entry_path,
        ),
        name='reports',
    )

    return app
