"""Pull images into the local Docker store and archive them as tar.gz files."""

import logging
import re
import shlex
import time
from pathlib import Path

from offline_images.consts import ARCHIVE_SUFFIX, DOCKER_PATH
from offline_images.errors import ToolUnavailableError
from offline_images.models.model_transfer import PullOutcome, SaveOutcome, TransferResult
from offline_images.utils.command import CommandRunner

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9.-]")


def archive_filename(image: str) -> str:
    """Archive name for an image: unsafe characters become '_', plus .tar.gz.

    Distinct references can map to the same name (e.g. `a:b` and `a_b`).
    """
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', image)}{ARCHIVE_SUFFIX}"


class DockerTransfer:
    """Sequential pull-then-save engine over a list of image references."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        docker_path: str = DOCKER_PATH,
        show_progress: bool = False,
        logger: logging.Logger | None = None,
    ):
        """Initialize DockerTransfer.

        Args:
            runner: Command runner for docker/gzip
            docker_path: docker executable
            show_progress: Stream pull progress line by line (default: quiet pulls)
            logger: Logger to report progress on (default: module logger)
        """
        self.runner = runner or CommandRunner()
        self.docker_path = docker_path
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger(__name__)

    async def check_docker_available(self) -> bool:
        """Check that the docker CLI answers."""
        result = await self.runner.run([self.docker_path, "--version"])
        if not result.success:
            self.logger.error(f"Docker is not available: {result.error_text}")
        return result.success

    def _progress(self, show_progress: bool | None) -> bool:
        return self.show_progress if show_progress is None else show_progress

    async def pull_image(self, image: str, show_progress: bool | None = None) -> PullOutcome:
        """Pull one image; failures are returned, not raised.

        Args:
            image: Image reference
            show_progress: Stream docker's status lines (default: instance setting)

        Returns:
            PullOutcome with the raw error text on failure
        """
        self.logger.info(f"Pulling image: {image}")

        if self._progress(show_progress):

            def on_error_line(line: str) -> None:
                if "Pull complete" not in line:
                    self.logger.warning(f"  {line}")

            result = await self.runner.stream(
                [self.docker_path, "pull", image],
                on_line=lambda line: self.logger.info(f"  {line}"),
                on_error_line=on_error_line,
            )
        else:
            result = await self.runner.run([self.docker_path, "pull", image])

        if not result.success:
            self.logger.warning(f"✗ Failed to pull {image}: {result.error_text}")
            return PullOutcome(image=image, success=False, error=result.error_text)

        self.logger.info(f"✓ Successfully pulled: {image}")
        return PullOutcome(image=image, success=True)

    async def pull_images(
        self, images: list[str], show_progress: bool | None = None
    ) -> list[PullOutcome]:
        """Pull each image in order, one at a time."""
        self.logger.info(f"Pulling {len(images)} images...")
        progress = self._progress(show_progress)
        results: list[PullOutcome] = []

        for i, image in enumerate(images, start=1):
            if progress:
                self.logger.info(f"[{i}/{len(images)}] Processing: {image}")
            results.append(await self.pull_image(image, progress))

        successful = sum(1 for r in results if r.success)
        self.logger.info(f"Pull completed: {successful}/{len(images)} successful")
        return results

    async def save_image(
        self, image: str, output_dir: Path | str, show_progress: bool | None = None
    ) -> SaveOutcome:
        """Archive one local image as `docker save | gzip` into output_dir.

        A failed save removes its partial archive.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        filename = archive_filename(image)
        filepath = output_dir / filename
        progress = self._progress(show_progress)

        self.logger.info(f"Saving image {image}...")
        if progress:
            self.logger.info(f"  Output: {filepath}")
            self.logger.info(f"  Running: docker save {image} | gzip > file")

        script = (
            f"{shlex.quote(self.docker_path)} save {shlex.quote(image)} "
            f"| gzip > {shlex.quote(str(filepath))}"
        )
        start_time = time.time()
        result = await self.runner.run_pipeline(script)
        duration = time.time() - start_time

        if not result.success:
            filepath.unlink(missing_ok=True)
            self.logger.warning(f"✗ Failed to save {image}: {result.error_text}")
            return SaveOutcome(image=image, filename=filename, success=False, error=result.error_text)

        size_bytes = filepath.stat().st_size if filepath.exists() else 0
        size_mb = size_bytes / (1024 * 1024)
        if progress:
            self.logger.info(f"  ✓ Saved: {filename} ({size_mb:.2f} MB in {duration:.2f}s)")
        else:
            self.logger.info(f"Successfully saved: {filename} ({size_mb:.2f} MB)")

        return SaveOutcome(
            image=image,
            filename=filename,
            success=True,
            size_bytes=size_bytes,
            duration_seconds=duration,
        )

    def _warn_on_collisions(self, images: list[str]) -> None:
        """Warn when references share an archive name; the last save decides the file."""
        seen: dict[str, str] = {}
        for image in images:
            name = archive_filename(image)
            if name in seen and seen[name] != image:
                self.logger.warning(
                    f"{image} and {seen[name]} both archive to {name}; "
                    "the later save overwrites the earlier one, and a failed later save removes it"
                )
            seen[name] = image

    async def save_images(
        self, images: list[str], output_dir: Path | str, show_progress: bool | None = None
    ) -> list[SaveOutcome]:
        """Save each image in order; one failure does not stop the rest."""
        self.logger.info(f"Saving {len(images)} images to {output_dir}...")
        self._warn_on_collisions(images)
        progress = self._progress(show_progress)
        results: list[SaveOutcome] = []

        for i, image in enumerate(images, start=1):
            if progress:
                self.logger.info(f"[{i}/{len(images)}] {image}")
            results.append(await self.save_image(image, output_dir, progress))

        successful = sum(1 for r in results if r.success)
        self.logger.info(f"Save completed: {successful}/{len(images)} successful")
        return results

    async def offline_export(
        self,
        images: list[str],
        output_dir: Path | str,
        show_progress: bool | None = None,
    ) -> TransferResult:
        """Pull every image, then save every successfully pulled one.

        Raises:
            ToolUnavailableError: docker is not reachable; nothing is pulled
        """
        self.logger.info(f"Starting offline export for {len(images)} images to {output_dir}")

        if not await self.check_docker_available():
            raise ToolUnavailableError(
                "docker",
                "Docker is not available. Please ensure Docker is installed and running.",
            )

        pull_results = await self.pull_images(images, show_progress)
        to_save = [r.image for r in pull_results if r.success]
        save_results = await self.save_images(to_save, output_dir, show_progress)

        result = TransferResult.from_outcomes(
            images,
            pull_results,
            save_results,
            output_directory=str(Path(output_dir).resolve()),
        )
        self.logger.info(
            f"Offline export completed: {result.saved_images}/{result.total_images} images saved"
        )
        return result
