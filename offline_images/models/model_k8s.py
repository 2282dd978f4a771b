"""Typed views over `kubectl get pods -o json` and `helm list -o json` output."""

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from offline_images.consts import HELM_RELEASE_LABELS
from offline_images.models.common import CamelModel


def first_present_label(labels: Mapping[str, str], keys: Iterable[str]) -> str | None:
    """Return the value of the first key present in labels.

    Empty values count as absent.
    """
    for key in keys:
        value = labels.get(key)
        if value:
            return value
    return None


class Container(CamelModel):
    """A container entry from a pod spec (init, regular or ephemeral)."""

    name: str = ""
    image: str


class PodMetadata(CamelModel):
    name: str = "unknown"
    namespace: str = "default"
    labels: dict[str, str] = Field(default_factory=dict)

    @property
    def helm_release_label(self) -> str | None:
        """Label value identifying the Helm release, by label precedence."""
        return first_present_label(self.labels, HELM_RELEASE_LABELS)


class PodSpec(CamelModel):
    init_containers: list[Container] = Field(default_factory=list)
    containers: list[Container] = Field(default_factory=list)
    ephemeral_containers: list[Container] = Field(default_factory=list)


class Pod(CamelModel):
    metadata: PodMetadata = Field(default_factory=PodMetadata)
    spec: PodSpec = Field(default_factory=PodSpec)

    def matches_release(self, release: str) -> bool:
        """Substring match of the release name against the Helm release label."""
        label = self.metadata.helm_release_label
        return label is not None and release in label


class PodList(CamelModel):
    """Pod list as returned by kubectl; unknown fields are ignored."""

    items: list[Pod] = Field(default_factory=list)

    def filter_by_release(self, release: str) -> "PodList":
        return PodList(items=[pod for pod in self.items if pod.matches_release(release)])


class ContainerRecord(BaseModel):
    """One container instance discovered in a pod spec."""

    model_config = ConfigDict(frozen=True)

    pod_name: str
    namespace: str
    container_name: str
    image: str


class HelmRelease(BaseModel):
    """An installed Helm release."""

    name: str
    namespace: str = ""
    revision: str = ""
    status: str = ""
    chart: str = ""
    app_version: str = ""


class K8sImageExport(CamelModel):
    """Result of resolving images from the cluster."""

    total_pods: int = Field(default=0, ge=0)
    total_containers: int = Field(default=0, ge=0)
    unique_images: int = Field(default=0, ge=0)
    images: list[str] = Field(default_factory=list)
    helm_release: str | None = None
