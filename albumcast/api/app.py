"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..config import settings
from ..service import PipelineService
from .routers import pipeline

logger = logging.getLogger(__name__)


def create_app(service: Optional[PipelineService] = None) -> FastAPI:
    """Create the application.

    Args:
        service: Pipeline to serve. Built from settings on startup when omitted.

    Returns:
        Configured FastAPI app; the service is on ``app.state.service``
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        pipeline_service = service or PipelineService(settings)
        app.state.service = pipeline_service
        if not pipeline_service.running:
            pipeline_service.start()
        try:
            yield
        finally:
            pipeline_service.shutdown()

    app = FastAPI(
        title="albumcast",
        version=__version__,
        description="Shared-album media classification and reporting pipeline",
        lifespan=lifespan,
    )
    app.include_router(pipeline.router)
    return app
