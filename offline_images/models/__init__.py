"""Pydantic models for offline-images."""

from offline_images.models.model_compose import (
    ComposeImageExport,
    ComposeManifest,
    ServiceKind,
    ServiceSpec,
)
from offline_images.models.model_export import (
    ComposeOfflineExportResult,
    OfflineExportResult,
)
from offline_images.models.model_k8s import (
    Container,
    ContainerRecord,
    HelmRelease,
    K8sImageExport,
    Pod,
    PodList,
    PodMetadata,
    PodSpec,
)
from offline_images.models.model_scanner import ScanSummary, VulnerabilityOutcome
from offline_images.models.model_transfer import PullOutcome, SaveOutcome, TransferResult

__all__ = [
    # Cluster models
    "Container",
    "ContainerRecord",
    "HelmRelease",
    "K8sImageExport",
    "Pod",
    "PodList",
    "PodMetadata",
    "PodSpec",
    # Compose models
    "ComposeImageExport",
    "ComposeManifest",
    "ServiceKind",
    "ServiceSpec",
    # Transfer models
    "PullOutcome",
    "SaveOutcome",
    "TransferResult",
    # Scan models
    "ScanSummary",
    "VulnerabilityOutcome",
    # Export results
    "ComposeOfflineExportResult",
    "OfflineExportResult",
]
