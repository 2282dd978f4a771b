"""Resolve container image references from a live Kubernetes cluster."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from offline_images.consts import HELM_PATH, K8S_IMAGE_LIST_FILE, KUBECTL_PATH
from offline_images.errors import ResolutionError
from offline_images.models.model_k8s import ContainerRecord, HelmRelease, K8sImageExport, PodList
from offline_images.storage.artifact_writer import write_image_list
from offline_images.utils.command import CommandRunner


class KubernetesImageResolver:
    """Discovers images used by running pods, optionally scoped to a Helm release."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        kubectl_path: str = KUBECTL_PATH,
        helm_path: str = HELM_PATH,
        logger: logging.Logger | None = None,
    ):
        """Initialize KubernetesImageResolver.

        Args:
            runner: Command runner for kubectl/helm (default: new CommandRunner)
            kubectl_path: kubectl executable
            helm_path: helm executable
            logger: Logger to report progress on (default: module logger)
        """
        self.runner = runner or CommandRunner()
        self.kubectl_path = kubectl_path
        self.helm_path = helm_path
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def _namespace_args(namespace: str | None) -> list[str]:
        return ["-n", namespace] if namespace else ["--all-namespaces"]

    async def get_helm_releases(self, namespace: str | None = None) -> list[HelmRelease]:
        """List installed Helm releases.

        Args:
            namespace: Restrict to one namespace (default: all namespaces)

        Returns:
            Releases as reported by `helm list -o json`

        Raises:
            ResolutionError: helm failed or returned unparsable output
        """
        scope = f"namespace {namespace}" if namespace else "all namespaces"
        self.logger.info(f"Fetching Helm releases from {scope}...")

        result = await self.runner.run(
            [self.helm_path, "list", *self._namespace_args(namespace), "-o", "json"]
        )
        if not result.success:
            self.logger.error(f"Failed to get Helm releases: {result.error_text}")
            raise ResolutionError(f"Failed to execute helm: {result.error_text}")

        try:
            raw = json.loads(result.stdout or "[]")
            return [HelmRelease.model_validate(item) for item in raw or []]
        except (json.JSONDecodeError, ValidationError) as e:
            raise ResolutionError(f"Failed to parse helm output: {e}") from e

    async def get_all_pods(self, namespace: str | None = None) -> PodList:
        """Fetch the current pod list.

        Raises:
            ResolutionError: the cluster is unreachable or the output is not a pod list
        """
        scope = f"namespace {namespace}" if namespace else "all namespaces"
        self.logger.info(f"Fetching pods from {scope}...")

        result = await self.runner.run(
            [self.kubectl_path, "get", "pods", *self._namespace_args(namespace), "-o", "json"]
        )
        if not result.success:
            self.logger.error(f"Failed to get pods from kubectl: {result.error_text}")
            raise ResolutionError(f"Failed to execute kubectl: {result.error_text}")
        if result.stderr.strip():
            self.logger.warning(f"kubectl stderr: {result.stderr.strip()}")

        try:
            return PodList.model_validate_json(result.stdout)
        except ValidationError as e:
            raise ResolutionError(f"Failed to parse kubectl output: {e}") from e

    @staticmethod
    def filter_pods_by_helm_release(pods: PodList, helm_release: str) -> PodList:
        """Keep pods whose Helm release label contains the release name."""
        return pods.filter_by_release(helm_release)

    def extract_images(self, pods: PodList) -> list[ContainerRecord]:
        """One record per init, regular and ephemeral container, in that order per pod."""
        records: list[ContainerRecord] = []

        if not pods.items:
            self.logger.warning("No pods found")
            return records

        for pod in pods.items:
            for container in (
                *pod.spec.init_containers,
                *pod.spec.containers,
                *pod.spec.ephemeral_containers,
            ):
                records.append(
                    ContainerRecord(
                        pod_name=pod.metadata.name,
                        namespace=pod.metadata.namespace,
                        container_name=container.name,
                        image=container.image,
                    )
                )

        return records

    @staticmethod
    def get_unique_images(records: list[ContainerRecord]) -> list[str]:
        """Sorted, duplicate-free image references."""
        return sorted({record.image for record in records})

    async def export_images(
        self,
        helm_release: str | None = None,
        namespace: str | None = None,
        output_dir: Path | str | None = None,
        filename: str = K8S_IMAGE_LIST_FILE,
    ) -> K8sImageExport:
        """Resolve the image set, optionally writing it to an image list file.

        Args:
            helm_release: Keep only pods of this Helm release (substring match)
            namespace: Restrict to one namespace
            output_dir: Directory for the image list; nothing is written when None
            filename: Image list file name

        Returns:
            K8sImageExport with pod/container/image counts
        """
        if helm_release:
            suffix = f" in namespace: {namespace}" if namespace else ""
            self.logger.info(
                f"Starting Kubernetes images export for Helm release: {helm_release}{suffix}..."
            )
        else:
            self.logger.info("Starting Kubernetes images export for all resources...")

        pods = await self.get_all_pods(namespace)

        if helm_release:
            pods = self.filter_pods_by_helm_release(pods, helm_release)
            self.logger.info(
                f"Filtered to {len(pods.items)} pods for Helm release: {helm_release}"
            )

        total_pods = len(pods.items)
        if total_pods == 0:
            self.logger.warning("No pods found matching the criteria")

        records = self.extract_images(pods)
        images = self.get_unique_images(records)

        if output_dir is not None:
            write_image_list(images, Path(output_dir) / filename, logger=self.logger)

        self.logger.info(
            f"Export completed: {total_pods} pods, {len(records)} containers, "
            f"{len(images)} unique images"
        )

        return K8sImageExport(
            total_pods=total_pods,
            total_containers=len(records),
            unique_images=len(images),
            images=images,
            helm_release=helm_release,
        )
