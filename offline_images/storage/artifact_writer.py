"""Writes the helper artifacts of an offline bundle.

Directory structure produced by an export:
    <output_dir>/
    ├── images.txt | docker-compose-images.txt   # Resolved image references
    ├── <sanitized-image>.tar.gz                 # One archive per saved image
    ├── load-images.sh                           # Loads every archive
    ├── README.md                                # Totals and load instructions
    ├── vulnerability_scan.txt                   # Detailed report (scan only)
    └── vulnerability_summary.json               # Scan summary (scan only)

Each file is written with a single call once its content is fully built.
"""

import logging
from pathlib import Path

from offline_images.consts import LOAD_SCRIPT_FILE, README_FILE
from offline_images.models.common import _utc_now
from offline_images.models.model_transfer import TransferResult

LOAD_SCRIPT_TEMPLATE = """#!/bin/bash
# Script to load all Docker images from tar.gz files

echo "Loading Docker images from {output_dir}..."

SCRIPT_DIR="$( cd "$( dirname "${BASH_SOURCE[0]}" )" && pwd )"
cd "$SCRIPT_DIR"

loaded=0
failed=0

for file in *.tar.gz; do
  if [ -f "$file" ]; then
    echo "Loading $file..."
    if gunzip -c "$file" | docker load; then
      echo "✓ Successfully loaded $file"
      ((loaded++))
    else
      echo "✗ Failed to load $file"
      ((failed++))
    fi
  fi
done

echo ""
echo "=== Summary ==="
echo "Loaded: $loaded"
echo "Failed: $failed"
echo "Total: $((loaded + failed))"
"""

LOAD_INSTRUCTIONS = """## How to Load Images

### Option 1: Use the provided script (Linux/Mac)

```bash
chmod +x load-images.sh
./load-images.sh
```

### Option 2: Load manually

Load individual images:

```bash
gunzip -c image-name.tar.gz | docker load
```

Load all images:

```bash
for file in *.tar.gz; do gunzip -c "$file" | docker load; done
```

### Option 3: Windows (PowerShell)

```powershell
Get-ChildItem -Filter *.tar.gz | ForEach-Object {
    Write-Host "Loading $($_.Name)..."
    & docker load -i $_.FullName
}
```

## Files

Each `.tar.gz` file contains a complete Docker image that can be loaded with `docker load`.

## Verification

After loading, verify images are available:

```bash
docker images
```
"""


def write_image_list(
    images: list[str], path: Path | str, logger: logging.Logger | None = None
) -> Path:
    """Write newline-separated image references, creating the parent directory."""
    log = logger or logging.getLogger(__name__)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(images), encoding="utf-8")
    log.info(f"Successfully saved {len(images)} images to {path.resolve()}")
    return path


def _image_section(title: str, verb: str, images: list[str]) -> str:
    if not images:
        return ""
    lines = "\n".join(f"- {image}" for image in images)
    return f"\n## {title}\n\nThe following images failed to {verb}:\n{lines}\n"


class ArtifactWriter:
    """Writes the load script and README into an export directory."""

    def __init__(self, output_dir: Path | str, logger: logging.Logger | None = None):
        """Initialize ArtifactWriter.

        Args:
            output_dir: Export directory
            logger: Logger to report written files on (default: module logger)
        """
        self.output_dir = Path(output_dir)
        self.logger = logger or logging.getLogger(__name__)

    def _ensure_dir(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write_image_list(self, images: list[str], filename: str) -> Path:
        return write_image_list(images, self.output_dir / filename, logger=self.logger)

    def write_load_script(self) -> Path:
        """Write an executable load-images.sh."""
        self._ensure_dir()
        script_path = self.output_dir / LOAD_SCRIPT_FILE
        script_path.write_text(
            LOAD_SCRIPT_TEMPLATE.replace("{output_dir}", str(self.output_dir)),
            encoding="utf-8",
        )
        script_path.chmod(0o755)
        self.logger.info(f"Created load script: {script_path}")
        return script_path

    def render_readme(
        self,
        result: TransferResult,
        compose_file: str | None = None,
        services_built: int | None = None,
    ) -> str:
        """Build README content for an export.

        Args:
            result: Transfer totals and failed lists
            compose_file: Source manifest, for compose-sourced exports
            services_built: Services built before export, for compose-sourced exports
        """
        title = "Docker Compose Images" if compose_file else "Kubernetes Images"
        info = [
            f"- **Total Images**: {result.total_images}",
            f"- **Successfully Pulled**: {result.pulled_images}",
            f"- **Successfully Saved**: {result.saved_images}",
        ]
        if compose_file:
            info.append(f"- **Compose File**: {compose_file}")
            info.append(f"- **Services Built**: {services_built or 0}")
        info.append(f"- **Export Date**: {_utc_now().isoformat()}")

        return (
            f"# {title} - Offline Export\n\n"
            "This directory contains Docker images exported for offline use.\n\n"
            "## Export Information\n\n"
            + "\n".join(info)
            + "\n\n"
            + _image_section("Failed Pulls", "pull", result.failed_pulls)
            + _image_section("Failed Saves", "save", result.failed_saves)
            + "\n"
            + LOAD_INSTRUCTIONS
        )

    def write_readme(
        self,
        result: TransferResult,
        compose_file: str | None = None,
        services_built: int | None = None,
    ) -> Path:
        """Write README.md describing the export."""
        self._ensure_dir()
        readme_path = self.output_dir / README_FILE
        readme_path.write_text(
            self.render_readme(result, compose_file, services_built), encoding="utf-8"
        )
        self.logger.info(f"Created README: {readme_path}")
        return readme_path
