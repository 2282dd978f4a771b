"""Tests for ArtifactWriter."""

import os
import stat
from pathlib import Path

from offline_images.models.model_transfer import TransferResult
from offline_images.storage.artifact_writer import ArtifactWriter, write_image_list


def _result(**overrides) -> TransferResult:
    values = {
        "total_images": 3,
        "pulled_images": 2,
        "saved_images": 1,
        "failed_pulls": ["bad:1"],
        "failed_saves": ["broken:2"],
        "output_directory": "/tmp/export",
    }
    values.update(overrides)
    return TransferResult(**values)


class TestImageList:
    """Tests for the image list file."""

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Missing parent directories are created."""
        path = write_image_list(["a:1", "b:2"], tmp_path / "nested" / "images.txt")

        assert path.read_text() == "a:1\nb:2"

    def test_no_trailing_newline(self, tmp_path: Path) -> None:
        """References are newline-separated without a trailing newline."""
        ArtifactWriter(tmp_path).write_image_list(["only:1"], "images.txt")

        assert (tmp_path / "images.txt").read_text() == "only:1"


class TestLoadScript:
    """Tests for load-images.sh."""

    def test_script_is_executable(self, tmp_path: Path) -> None:
        """The script is written with execute permission."""
        path = ArtifactWriter(tmp_path).write_load_script()

        mode = os.stat(path).st_mode
        assert mode & stat.S_IXUSR
        assert path.name == "load-images.sh"

    def test_script_content(self, tmp_path: Path) -> None:
        """The script loads every archive and prints totals."""
        content = ArtifactWriter(tmp_path).write_load_script().read_text()

        assert content.startswith("#!/bin/bash")
        assert f'echo "Loading Docker images from {tmp_path}..."' in content
        assert 'gunzip -c "$file" | docker load' in content
        assert 'echo "Loaded: $loaded"' in content
        assert 'echo "Failed: $failed"' in content
        assert 'echo "Total: $((loaded + failed))"' in content


class TestReadme:
    """Tests for README.md."""

    def test_cluster_readme(self, tmp_path: Path) -> None:
        """Totals, failure sections and load options are present."""
        readme = ArtifactWriter(tmp_path).render_readme(_result())

        assert readme.startswith("# Kubernetes Images - Offline Export")
        assert "- **Total Images**: 3" in readme
        assert "- **Successfully Pulled**: 2" in readme
        assert "- **Successfully Saved**: 1" in readme
        assert "## Failed Pulls" in readme
        assert "- bad:1" in readme
        assert "## Failed Saves" in readme
        assert "- broken:2" in readme
        assert "### Option 1: Use the provided script (Linux/Mac)" in readme
        assert "### Option 3: Windows (PowerShell)" in readme
        assert "## Verification" in readme
        assert "Compose File" not in readme

    def test_failure_sections_omitted_when_empty(self, tmp_path: Path) -> None:
        """Sections for failures appear only when there are failures."""
        readme = ArtifactWriter(tmp_path).render_readme(
            _result(failed_pulls=[], failed_saves=[], pulled_images=3, saved_images=3)
        )

        assert "Failed Pulls" not in readme
        assert "Failed Saves" not in readme

    def test_compose_readme(self, tmp_path: Path) -> None:
        """Compose exports name the manifest and the number of services built."""
        path = ArtifactWriter(tmp_path).write_readme(
            _result(), compose_file="docker-compose.yml", services_built=2
        )

        readme = path.read_text()
        assert readme.startswith("# Docker Compose Images - Offline Export")
        assert "- **Compose File**: docker-compose.yml" in readme
        assert "- **Services Built**: 2" in readme
