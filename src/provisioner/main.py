"""FastAPI application for the Build-A-Badge provisioner."""

import shutil
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import uvicorn

from provisioner.api.routes import router
from provisioner.config import Settings, get_settings
from provisioner.services.executor import StepExecutor
from provisioner.services.reporter import ReportService
from provisioner.services.session import ProvisioningSession
from provisioner.utils.logging import setup_logger


def create_app(
    settings: Optional[Settings] = None, executor: Optional[StepExecutor] = None
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use (read from the environment at startup if None)
        executor: Step executor (real subprocesses if None)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: logger, transport check, session. Shutdown: log."""
        resolved = settings or get_settings()
        logger = setup_logger("provisioner", resolved.log_file, level=resolved.log_level)
        logger.info("Badge provisioner starting up...")

        if shutil.which(resolved.transport_program) is None:
            logger.warning(
                f"Transport utility '{resolved.transport_program}' not found on PATH; "
                f"runs will fail at the first upload"
            )
        if not resolved.work_dir.is_dir():
            logger.warning(f"Work directory {resolved.work_dir} does not exist")

        app.state.session = ProvisioningSession(
            settings=resolved,
            executor=executor,
            reporter=ReportService(resolved.report_url),
        )
        logger.info(f"Badge provisioner ready on port {resolved.api_port}")

        yield

        if app.state.session.active:
            logger.warning("Shutting down with a provisioning run in flight")
        logger.info("Badge provisioner shutting down...")

    app = FastAPI(
        title="Build-A-Badge Provisioner",
        description="Writes badge configuration and pushes it to the device",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(router)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "badge-provisioner", "version": "1.0.0"}

    return app


app = create_app()


def main():
    """Main entry point for running the server."""
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
