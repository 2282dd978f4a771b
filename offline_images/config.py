"""Runtime settings loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings

from offline_images import consts


class Settings(BaseSettings):
    """offline-images settings.

    All values can be overridden via environment variables with the
    OFFLINE_IMAGES_ prefix. Example: OFFLINE_IMAGES_TRIVY_TIMEOUT=600
    """

    docker_path: str = consts.DOCKER_PATH
    kubectl_path: str = consts.KUBECTL_PATH
    helm_path: str = consts.HELM_PATH
    trivy_path: str = consts.TRIVY_PATH
    compose_command: str = consts.COMPOSE_COMMAND
    trivy_timeout: int | None = None  # forwarded to trivy's own --timeout
    default_output_dir: Path = consts.DEFAULT_OUTPUT_DIR
    default_compose_output_dir: Path = consts.DEFAULT_COMPOSE_OUTPUT_DIR
    show_progress: bool = True
    api_prefix: str = ""

    model_config = {"env_prefix": "OFFLINE_IMAGES_"}
