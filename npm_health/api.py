"""
HTTP API

GET /api/check?package=<name> returns a HealthReport as JSON. Failures
that abort a check are mapped to {"error": ...} bodies by the exception
handler below; the cause stays in the server log.
"""

import logging
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import Settings, get_settings
from .errors import NotFoundError, PackageHealthError, UpstreamError, ValidationError
from .health import check_health
from .models import HealthReport

logger = logging.getLogger(__name__)

app = FastAPI(
    title="npm-health",
    description="Check whether an npm package is still maintained",
    version=__version__
)


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response"""
    error: str


class StatusResponse(BaseModel):
    """GET /api/health response"""
    status: str
    version: str


def get_upstream_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for upstream calls; None uses the network. Overridden in tests."""
    return None


@app.exception_handler(PackageHealthError)
async def package_health_error_handler(request: Request, exc: PackageHealthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/api/health", response_model=StatusResponse)
async def health() -> StatusResponse:
    """Liveness check"""
    return StatusResponse(status="ok", version=__version__)


@app.get(
    "/api/check",
    response_model=HealthReport,
    responses={
        ValidationError.status_code: {"model": ErrorResponse},
        NotFoundError.status_code: {"model": ErrorResponse},
        UpstreamError.status_code: {"model": ErrorResponse},
    }
)
async def check_package(
    response: Response,
    package: Optional[str] = Query(None, description="npm package name, e.g. react or @types/node"),
    settings: Settings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport)
) -> HealthReport:
    """Check the health of an npm package"""
    try:
        report = await check_health(package, settings=settings, transport=transport)
    except PackageHealthError:
        raise
    except Exception as e:
        logger.exception(f"Error checking package {package!r}")
        raise UpstreamError() from e

    if settings.revalidate_seconds:
        response.headers["Cache-Control"] = f"public, s-maxage={settings.revalidate_seconds}"
    return report
