"""Aggregate results returned by the offline export pipeline."""

from pydantic import Field

from offline_images.models.model_scanner import ScanSummary
from offline_images.models.model_transfer import TransferResult


class OfflineExportResult(TransferResult):
    """Cluster-sourced offline export."""

    image_list_file: str
    total_pods: int = Field(default=0, ge=0)
    total_containers: int = Field(default=0, ge=0)
    helm_release: str | None = None
    vulnerability_scan: ScanSummary | None = None


class ComposeOfflineExportResult(TransferResult):
    """Compose-sourced offline export."""

    image_list_file: str
    compose_file: str
    total_services: int = Field(default=0, ge=0)
    services_built: int = Field(default=0, ge=0)
    vulnerability_scan: ScanSummary | None = None
