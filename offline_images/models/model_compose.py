"""Compose manifest models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from offline_images.models.common import CamelModel


class ServiceKind(str, Enum):
    """How a compose service contributes an image."""

    IMAGE = "image"
    BUILD = "build"
    SKIPPED = "skipped"


class ServiceSpec(BaseModel):
    """One compose service; `image` takes precedence over `build`."""

    service_name: str
    image: str | None = None
    build: str | dict[str, Any] | None = Field(
        default=None, description="Build directive (context path or mapping)"
    )

    @property
    def kind(self) -> ServiceKind:
        if self.image:
            return ServiceKind.IMAGE
        if self.build:
            return ServiceKind.BUILD
        return ServiceKind.SKIPPED


class ComposeManifest(BaseModel):
    """Services of a compose file, classified by how they provide an image."""

    compose_file: str
    services: dict[str, ServiceSpec] = Field(default_factory=dict)

    @property
    def total_services(self) -> int:
        return len(self.services)

    @property
    def images_from_registry(self) -> list[str]:
        return [s.image for s in self.services.values() if s.kind == ServiceKind.IMAGE]

    @property
    def services_with_build(self) -> list[str]:
        return [name for name, s in self.services.items() if s.kind == ServiceKind.BUILD]


class ComposeImageExport(CamelModel):
    """Result of resolving images from a compose manifest."""

    compose_file: str
    total_services: int = Field(default=0, ge=0)
    total_images: int = Field(default=0, ge=0)
    images: list[str] = Field(default_factory=list)
    services_with_build: list[str] = Field(default_factory=list)
    services_built: int = Field(default=0, ge=0)
