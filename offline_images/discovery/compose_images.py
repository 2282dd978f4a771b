"""Resolve container image references from a compose manifest."""

import logging
import shlex
from collections.abc import Awaitable, Callable
from pathlib import Path

from offline_images.consts import COMPOSE_COMMAND, COMPOSE_IMAGE_LIST_FILE, DOCKER_PATH
from offline_images.discovery.compose_file import load_compose_manifest
from offline_images.errors import BuildError, ResolutionError
from offline_images.models.model_compose import ComposeImageExport, ComposeManifest, ServiceKind
from offline_images.storage.artifact_writer import write_image_list
from offline_images.utils.command import CommandRunner

ImageExistsCheck = Callable[[str], Awaitable[bool]]


def project_name_for(compose_path: Path | str) -> str:
    """Base name of the directory holding the manifest."""
    return Path(compose_path).resolve().parent.name


def built_image_candidates(project_name: str, service: str) -> list[str]:
    """Names compose may have given a locally built image, in lookup order."""
    return [
        f"{project_name}_{service}",
        f"{project_name.lower()}_{service}",
        service,
    ]


class ComposeImageResolver:
    """Turns compose services into image references.

    Image-based services contribute their `image`; build-based services
    contribute the first locally existing candidate name, or nothing.
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        docker_path: str = DOCKER_PATH,
        compose_command: str = COMPOSE_COMMAND,
        image_exists: ImageExistsCheck | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize ComposeImageResolver.

        Args:
            runner: Command runner for docker/docker-compose
            docker_path: docker executable
            compose_command: compose invocation, e.g. "docker-compose" or "docker compose"
            image_exists: Local image existence check (default: `docker image inspect`)
            logger: Logger to report progress on (default: module logger)
        """
        self.runner = runner or CommandRunner()
        self.docker_path = docker_path
        self.compose_command = shlex.split(compose_command)
        self._image_exists = image_exists or self.image_exists
        self.logger = logger or logging.getLogger(__name__)

    async def image_exists(self, image: str) -> bool:
        """Check whether an image is present in the local image store."""
        result = await self.runner.run([self.docker_path, "image", "inspect", image])
        return result.success

    def parse_compose_file(self, compose_path: Path | str) -> ComposeManifest:
        """Load the manifest and log how each service provides its image."""
        self.logger.info(f"Parsing docker-compose file: {compose_path}")
        manifest = load_compose_manifest(compose_path)

        for name, service in manifest.services.items():
            if service.kind == ServiceKind.IMAGE:
                self.logger.info(f"  {name}: {service.image}")
            elif service.kind == ServiceKind.BUILD:
                self.logger.info(f"  {name}: [needs build]")
            else:
                self.logger.debug(f"  {name}: no image or build, skipped")

        self.logger.info(
            f"Found {manifest.total_services} services: "
            f"{len(manifest.images_from_registry)} with images, "
            f"{len(manifest.services_with_build)} need build"
        )
        return manifest

    async def build_services(self, compose_path: Path | str, services: list[str]) -> None:
        """Build all given services in one compose call.

        Raises:
            BuildError: the batch build failed
        """
        cmd = [*self.compose_command, "-f", str(compose_path), "build", *services]
        if services:
            self.logger.info(f"Building services: {', '.join(services)}")
        else:
            self.logger.info("Building all services...")

        result = await self.runner.run(cmd)
        if not result.success:
            self.logger.error(f"Failed to build compose services: {result.error_text}")
            raise BuildError(f"Failed to build services: {result.error_text}")
        self.logger.info("Build completed successfully")

    async def resolve_built_image(self, project_name: str, service: str) -> str | None:
        """First candidate name present locally, or None."""
        for candidate in built_image_candidates(project_name, service):
            if await self._image_exists(candidate):
                self.logger.info(f"  Found built image: {candidate}")
                return candidate
        self.logger.debug(f"  No built image found for service {service}")
        return None

    async def get_all_compose_images(self, manifest: ComposeManifest) -> list[str]:
        """Registry images plus resolved built images, de-duplicated in insertion order."""
        images = list(manifest.images_from_registry)

        if manifest.services_with_build:
            project_name = project_name_for(manifest.compose_file)
            for service in manifest.services_with_build:
                built = await self.resolve_built_image(project_name, service)
                if built:
                    images.append(built)

        return list(dict.fromkeys(images))

    async def get_images_from_running_compose(
        self,
        project_name: str | None = None,
        compose_path: Path | str | None = None,
    ) -> list[str]:
        """Images of the containers of a running compose project.

        Raises:
            ResolutionError: compose or docker inspect failed
        """
        cmd = list(self.compose_command)
        if compose_path:
            cmd += ["-f", str(compose_path)]
        elif project_name:
            cmd += ["-p", project_name]
        cmd += ["ps", "-q"]

        self.logger.info("Getting running containers from docker-compose...")
        result = await self.runner.run(cmd)
        if not result.success:
            raise ResolutionError(f"Failed to get running compose images: {result.error_text}")

        container_ids = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not container_ids:
            self.logger.warning("No running containers found")
            return []

        images: list[str] = []
        for container_id in container_ids:
            inspect = await self.runner.run(
                [self.docker_path, "inspect", "-f", "{{.Config.Image}}", container_id]
            )
            if not inspect.success:
                raise ResolutionError(
                    f"Failed to get running compose images: {inspect.error_text}"
                )
            image = inspect.stdout.strip().replace("'", "")
            if image:
                images.append(image)

        unique = list(dict.fromkeys(images))
        self.logger.info(f"Found {len(unique)} unique images from running containers")
        return unique

    async def export_images(
        self,
        compose_path: Path | str,
        build_if_needed: bool = False,
        output_dir: Path | str | None = None,
        filename: str = COMPOSE_IMAGE_LIST_FILE,
    ) -> ComposeImageExport:
        """Parse, optionally build, and resolve the compose image set.

        Args:
            compose_path: Path to the compose file
            build_if_needed: Build all build-based services first (one batch)
            output_dir: Directory for the image list; nothing is written when None
            filename: Image list file name

        Returns:
            ComposeImageExport with service and image counts
        """
        self.logger.info("Starting docker-compose images export...")
        manifest = self.parse_compose_file(compose_path)

        services_built = 0
        if build_if_needed and manifest.services_with_build:
            self.logger.info(f"Building {len(manifest.services_with_build)} services...")
            await self.build_services(compose_path, manifest.services_with_build)
            services_built = len(manifest.services_with_build)

        images = await self.get_all_compose_images(manifest)

        if output_dir is not None:
            write_image_list(images, Path(output_dir) / filename, logger=self.logger)

        self.logger.info(
            f"Export completed: {manifest.total_services} services, {len(images)} images"
        )

        return ComposeImageExport(
            compose_file=str(compose_path),
            total_services=manifest.total_services,
            total_images=len(images),
            images=images,
            services_with_build=manifest.services_with_build,
            services_built=services_built,
        )
