"""FastAPI application factory."""

import logging

from fastapi import FastAPI

from offline_images import __version__
from offline_images.api.routes import health, k8s_images
from offline_images.config import Settings
from offline_images.pipeline import OfflineExportPipeline


def create_app(
    settings: Settings | None = None,
    pipeline: OfflineExportPipeline | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing).
        pipeline: Optional pipeline override (useful for testing).

    Returns:
        Configured FastAPI app.
    """
    if settings is None:
        settings = Settings()
    if pipeline is None:
        pipeline = OfflineExportPipeline.from_settings(
            settings, logger=logging.getLogger("offline_images.api")
        )

    app = FastAPI(
        title="offline-images API",
        description="Export Kubernetes and Docker Compose images for offline environments",
        version=__version__,
    )

    app.state.settings = settings
    app.state.pipeline = pipeline

    prefix = settings.api_prefix
    app.include_router(health.router, tags=["health"])
    app.include_router(k8s_images.router, prefix=prefix, tags=["k8s-images"])

    return app
