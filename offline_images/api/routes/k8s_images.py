"""Image export endpoints.

Every action answers 200 with an ApiResponse envelope; failures are
reported through `success: false` rather than HTTP status codes. Unset
fields are omitted from `data` rather than sent as null.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Query
from fastapi.requests import Request

from offline_images.api.models import ApiResponse
from offline_images.consts import (
    COMPOSE_IMAGE_LIST_FILE,
    DEFAULT_COMPOSE_FILE,
    K8S_IMAGE_LIST_FILE,
)
from offline_images.pipeline import OfflineExportPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/k8s-images")


def _pipeline(request: Request) -> OfflineExportPipeline:
    return request.app.state.pipeline


def _failure(action: str, e: Exception) -> ApiResponse:
    logger.error(f"Failed to {action}: {e}")
    return ApiResponse(success=False, message=str(e), error=type(e).__name__)


@router.get("/export", response_model=ApiResponse, response_model_exclude_none=True)
async def export_images(
    request: Request,
    release: str | None = Query(None),
    namespace: str | None = Query(None),
    filename: str = Query(K8S_IMAGE_LIST_FILE),
) -> ApiResponse:
    """Resolve cluster images and write them to an image list file."""
    try:
        path = Path(filename)
        result = await _pipeline(request).k8s_resolver.export_images(
            helm_release=release,
            namespace=namespace,
            output_dir=path.parent,
            filename=path.name,
        )
    except Exception as e:
        return _failure("export images", e)

    return ApiResponse(
        success=True,
        message=f"Images exported successfully to {filename}",
        data=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.get("/releases", response_model=ApiResponse, response_model_exclude_none=True)
async def get_helm_releases(
    request: Request,
    namespace: str | None = Query(None),
) -> ApiResponse:
    """List Helm releases."""
    try:
        releases = await _pipeline(request).k8s_resolver.get_helm_releases(namespace)
    except Exception as e:
        return _failure("get Helm releases", e)

    return ApiResponse(
        success=True,
        message="Helm releases retrieved successfully",
        data={
            "total": len(releases),
            "releases": [r.model_dump(mode="json", exclude_none=True) for r in releases],
        },
    )


@router.post("/export-offline", response_model=ApiResponse, response_model_exclude_none=True)
async def export_offline(
    request: Request,
    release: str | None = Query(None),
    namespace: str | None = Query(None),
    output_dir: str | None = Query(None, alias="outputDir"),
    scan_vulnerabilities: bool = Query(False, alias="scanVulnerabilities"),
) -> ApiResponse:
    """Run the full cluster offline export."""
    settings = request.app.state.settings
    try:
        result = await _pipeline(request).run_k8s_export(
            helm_release=release,
            namespace=namespace,
            output_dir=output_dir or settings.default_output_dir,
            scan_vulnerabilities=scan_vulnerabilities,
        )
    except Exception as e:
        return _failure("export images offline", e)

    return ApiResponse(
        success=True,
        message="Offline export completed successfully",
        data=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.post("/export-compose", response_model=ApiResponse, response_model_exclude_none=True)
async def export_compose(
    request: Request,
    compose_path: str = Query(str(DEFAULT_COMPOSE_FILE), alias="composePath"),
    filename: str = Query(COMPOSE_IMAGE_LIST_FILE),
    build_if_needed: bool = Query(False, alias="buildIfNeeded"),
) -> ApiResponse:
    """Resolve compose images and write them to an image list file."""
    try:
        path = Path(filename)
        result = await _pipeline(request).compose_resolver.export_images(
            compose_path,
            build_if_needed=build_if_needed,
            output_dir=path.parent,
            filename=path.name,
        )
    except Exception as e:
        return _failure("export compose images", e)

    return ApiResponse(
        success=True,
        message=f"Images exported successfully to {filename}",
        data=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.post(
    "/export-compose-offline", response_model=ApiResponse, response_model_exclude_none=True
)
async def export_compose_offline(
    request: Request,
    compose_path: str = Query(str(DEFAULT_COMPOSE_FILE), alias="composePath"),
    output_dir: str | None = Query(None, alias="outputDir"),
    build_if_needed: bool = Query(False, alias="buildIfNeeded"),
    scan_vulnerabilities: bool = Query(False, alias="scanVulnerabilities"),
) -> ApiResponse:
    """Run the full compose offline export."""
    settings = request.app.state.settings
    try:
        result = await _pipeline(request).run_compose_export(
            compose_path,
            output_dir=output_dir or settings.default_compose_output_dir,
            build_if_needed=build_if_needed,
            scan_vulnerabilities=scan_vulnerabilities,
        )
    except Exception as e:
        return _failure("export compose images offline", e)

    return ApiResponse(
        success=True,
        message="Docker Compose offline export completed successfully",
        data=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
