"""Pipeline orchestration for the offline export workflow.

This module sequences every stage of an export:
1. Resolve image references (cluster pods or compose manifest)
2. Optionally build compose services (one batch)
3. Pull every image
4. Save every pulled image as a tar.gz archive
5. Optionally scan every resolved image with Trivy
6. Write the load script and README

Resolution failures, an empty image set and unavailable tools abort the run.
Individual pull, save and scan failures are recorded on the result.
"""

import logging
from pathlib import Path

from offline_images.config import Settings
from offline_images.consts import (
    COMPOSE_IMAGE_LIST_FILE,
    DEFAULT_COMPOSE_OUTPUT_DIR,
    DEFAULT_OUTPUT_DIR,
    K8S_IMAGE_LIST_FILE,
)
from offline_images.discovery.compose_images import ComposeImageResolver
from offline_images.discovery.k8s_images import KubernetesImageResolver
from offline_images.errors import NoImagesFoundError
from offline_images.models.model_export import ComposeOfflineExportResult, OfflineExportResult
from offline_images.models.model_scanner import ScanSummary
from offline_images.models.model_transfer import TransferResult
from offline_images.scanner.trivy_scanner import TrivyScanner
from offline_images.storage.artifact_writer import ArtifactWriter
from offline_images.transfer.docker_transfer import DockerTransfer
from offline_images.utils.command import CommandRunner


class OfflineExportPipeline:
    """Runs RESOLVE → (BUILD) → PULL → SAVE → (SCAN) → WRITE_ARTIFACTS."""

    def __init__(
        self,
        k8s_resolver: KubernetesImageResolver | None = None,
        compose_resolver: ComposeImageResolver | None = None,
        transfer: DockerTransfer | None = None,
        scanner: TrivyScanner | None = None,
        show_progress: bool = True,
        logger: logging.Logger | None = None,
    ):
        """Initialize OfflineExportPipeline.

        Components not supplied are built with a shared CommandRunner and
        this pipeline's logger.

        Args:
            k8s_resolver: Cluster image resolver
            compose_resolver: Compose image resolver
            transfer: Pull/save engine
            scanner: Trivy scanner
            show_progress: Stream pull output and log per-image progress
            logger: Logger handed to every component built here
        """
        self.logger = logger or logging.getLogger(__name__)
        runner = CommandRunner()
        self.k8s_resolver = k8s_resolver or KubernetesImageResolver(runner, logger=self.logger)
        self.compose_resolver = compose_resolver or ComposeImageResolver(
            runner, logger=self.logger
        )
        self.transfer = transfer or DockerTransfer(runner, logger=self.logger)
        self.scanner = scanner or TrivyScanner(runner, logger=self.logger)
        self.show_progress = show_progress

    @classmethod
    def from_settings(
        cls, settings: Settings, logger: logging.Logger | None = None
    ) -> "OfflineExportPipeline":
        """Build a pipeline whose components use the configured executables."""
        logger = logger or logging.getLogger(__name__)
        runner = CommandRunner()
        return cls(
            k8s_resolver=KubernetesImageResolver(
                runner,
                kubectl_path=settings.kubectl_path,
                helm_path=settings.helm_path,
                logger=logger,
            ),
            compose_resolver=ComposeImageResolver(
                runner,
                docker_path=settings.docker_path,
                compose_command=settings.compose_command,
                logger=logger,
            ),
            transfer=DockerTransfer(runner, docker_path=settings.docker_path, logger=logger),
            scanner=TrivyScanner(
                runner,
                trivy_path=settings.trivy_path,
                timeout=settings.trivy_timeout,
                logger=logger,
            ),
            show_progress=settings.show_progress,
            logger=logger,
        )

    async def _transfer_and_scan(
        self,
        images: list[str],
        output_dir: Path,
        scan_vulnerabilities: bool,
        total_steps: int,
    ) -> tuple[TransferResult, ScanSummary | None]:
        self.logger.info("Step 2/4: Pulling Docker images...")
        self.logger.info("Step 3/4: Saving images to tar.gz files...")
        transfer_result = await self.transfer.offline_export(
            images, output_dir, self.show_progress
        )

        vulnerability_scan = None
        if scan_vulnerabilities:
            self.logger.info(
                f"Step 4/{total_steps}: Scanning images for vulnerabilities..."
            )
            vulnerability_scan = await self.scanner.perform_vulnerability_scan(
                images, output_dir, self.show_progress
            )

        return transfer_result, vulnerability_scan

    def _log_transfer_summary(
        self, result: TransferResult, vulnerability_scan: ScanSummary | None
    ) -> None:
        self.logger.info(f"Output Directory: {result.output_directory}")
        self.logger.info(f"Unique Images: {result.total_images}")
        self.logger.info(f"Successfully Saved: {result.saved_images}")
        self.logger.info(f"Failed Pulls: {len(result.failed_pulls)}")
        self.logger.info(f"Failed Saves: {len(result.failed_saves)}")

        if vulnerability_scan:
            self.logger.info("=== Vulnerability Scan Summary (CRITICAL & HIGH) ===")
            self.logger.info(f"CRITICAL: {vulnerability_scan.total_critical}")
            self.logger.info(f"HIGH: {vulnerability_scan.total_high}")

    async def run_k8s_export(
        self,
        helm_release: str | None = None,
        namespace: str | None = None,
        output_dir: Path | str = DEFAULT_OUTPUT_DIR,
        scan_vulnerabilities: bool = True,
    ) -> OfflineExportResult:
        """Export the images of running pods for offline use.

        Args:
            helm_release: Keep only pods of this Helm release (substring match)
            namespace: Restrict to one namespace
            output_dir: Export directory
            scan_vulnerabilities: Run the Trivy stage

        Returns:
            OfflineExportResult; partial pull/save/scan failures are listed on it

        Raises:
            ExportError: resolution failed, no images found, or a required tool is missing
        """
        output_dir = Path(output_dir)
        total_steps = 5 if scan_vulnerabilities else 4
        self.logger.info("=== Starting Complete Offline Export ===")

        self.logger.info(f"Step 1/{total_steps}: Extracting images from Kubernetes...")
        k8s_export = await self.k8s_resolver.export_images(
            helm_release=helm_release, namespace=namespace
        )
        if k8s_export.unique_images == 0:
            raise NoImagesFoundError("No images found to export")

        self.logger.info(
            f"Found {k8s_export.unique_images} unique images from {k8s_export.total_pods} pods"
        )

        writer = ArtifactWriter(output_dir, logger=self.logger)
        writer.write_image_list(k8s_export.images, K8S_IMAGE_LIST_FILE)

        transfer_result, vulnerability_scan = await self._transfer_and_scan(
            k8s_export.images, output_dir, scan_vulnerabilities, total_steps
        )

        self.logger.info(
            f"Step {total_steps}/{total_steps}: Creating helper scripts and documentation..."
        )
        writer.write_load_script()
        writer.write_readme(transfer_result)

        result = OfflineExportResult(
            **dict(transfer_result),
            image_list_file=K8S_IMAGE_LIST_FILE,
            total_pods=k8s_export.total_pods,
            total_containers=k8s_export.total_containers,
            helm_release=helm_release,
            vulnerability_scan=vulnerability_scan,
        )

        self.logger.info("=== Offline Export Complete ===")
        self.logger.info(f"Kubernetes Pods: {result.total_pods}")
        self.logger.info(f"Kubernetes Containers: {result.total_containers}")
        self._log_transfer_summary(result, vulnerability_scan)
        return result

    async def run_compose_export(
        self,
        compose_path: Path | str,
        output_dir: Path | str = DEFAULT_COMPOSE_OUTPUT_DIR,
        build_if_needed: bool = False,
        scan_vulnerabilities: bool = True,
    ) -> ComposeOfflineExportResult:
        """Export the images of a compose manifest for offline use.

        Args:
            compose_path: Path to the compose file
            output_dir: Export directory
            build_if_needed: Build all build-based services first (one batch)
            scan_vulnerabilities: Run the Trivy stage

        Returns:
            ComposeOfflineExportResult; partial failures are listed on it

        Raises:
            ExportError: manifest invalid, build failed, no images, or a required tool is missing
        """
        output_dir = Path(output_dir)
        total_steps = 5 if scan_vulnerabilities else 4
        self.logger.info("=== Starting Docker Compose Offline Export ===")
        self.logger.info(f"Compose File: {compose_path}")

        self.logger.info(f"Step 1/{total_steps}: Parsing docker-compose file...")
        compose_export = await self.compose_resolver.export_images(
            compose_path, build_if_needed=build_if_needed
        )
        if compose_export.total_images == 0:
            raise NoImagesFoundError("No images found in docker-compose file")

        self.logger.info(
            f"Found {compose_export.total_images} images from "
            f"{compose_export.total_services} services"
        )
        if compose_export.services_built > 0:
            self.logger.info(f"Built {compose_export.services_built} services")

        writer = ArtifactWriter(output_dir, logger=self.logger)
        writer.write_image_list(compose_export.images, COMPOSE_IMAGE_LIST_FILE)

        transfer_result, vulnerability_scan = await self._transfer_and_scan(
            compose_export.images, output_dir, scan_vulnerabilities, total_steps
        )

        self.logger.info(
            f"Step {total_steps}/{total_steps}: Creating helper scripts and documentation..."
        )
        writer.write_load_script()
        writer.write_readme(
            transfer_result,
            compose_file=str(compose_path),
            services_built=compose_export.services_built,
        )

        result = ComposeOfflineExportResult(
            **dict(transfer_result),
            image_list_file=COMPOSE_IMAGE_LIST_FILE,
            compose_file=str(compose_path),
            total_services=compose_export.total_services,
            services_built=compose_export.services_built,
            vulnerability_scan=vulnerability_scan,
        )

        self.logger.info("=== Docker Compose Offline Export Complete ===")
        self.logger.info(f"Compose File: {result.compose_file}")
        self.logger.info(f"Total Services: {result.total_services}")
        self.logger.info(f"Services Built: {result.services_built}")
        self._log_transfer_summary(result, vulnerability_scan)
        return result
