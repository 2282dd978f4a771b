"""Image reference discovery from clusters and compose manifests."""

from offline_images.discovery.compose_file import load_compose_manifest, load_compose_services
from offline_images.discovery.compose_images import ComposeImageResolver
from offline_images.discovery.k8s_images import KubernetesImageResolver

__all__ = [
    "ComposeImageResolver",
    "KubernetesImageResolver",
    "load_compose_manifest",
    "load_compose_services",
]
