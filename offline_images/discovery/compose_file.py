"""Load a compose manifest into a service map."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from offline_images.errors import ResolutionError
from offline_images.models.model_compose import ComposeManifest, ServiceSpec

logger = logging.getLogger(__name__)


def parse_services(raw_services: dict[str, Any]) -> dict[str, ServiceSpec]:
    """Convert the raw `services` mapping into ServiceSpecs.

    Non-mapping service bodies (e.g. `web:` with nothing under it) become
    services with neither image nor build, which are skipped downstream.

    Raises:
        ResolutionError: a service has an invalid `build` value
    """
    services: dict[str, ServiceSpec] = {}
    for name, config in raw_services.items():
        config = config if isinstance(config, dict) else {}
        image = config.get("image")
        try:
            services[str(name)] = ServiceSpec(
                service_name=str(name),
                image=str(image) if image else None,
                build=config.get("build") or None,
            )
        except ValidationError as e:
            raise ResolutionError(f"Invalid definition for service {name}: {e}") from e
    return services


def load_compose_manifest(compose_path: Path | str) -> ComposeManifest:
    """Read and parse a compose YAML file.

    Args:
        compose_path: Path to docker-compose.yml

    Returns:
        ComposeManifest with every declared service

    Raises:
        ResolutionError: file unreadable, invalid YAML, or no `services` section
    """
    path = Path(compose_path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ResolutionError(f"Failed to read compose file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ResolutionError(f"Failed to parse compose file {path}: {e}") from e

    raw_services = data.get("services") if isinstance(data, dict) else None
    if not isinstance(raw_services, dict) or not raw_services:
        raise ResolutionError("No services found in docker-compose file")

    manifest = ComposeManifest(compose_file=str(path), services=parse_services(raw_services))
    logger.debug(f"Loaded {manifest.total_services} services from {path}")
    return manifest


def load_compose_services(compose_path: Path | str) -> dict[str, ServiceSpec]:
    """Service map of a compose file, keyed by service name."""
    return load_compose_manifest(compose_path).services
