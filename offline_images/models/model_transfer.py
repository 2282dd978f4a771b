"""Data models for pull/save operations."""

from dataclasses import dataclass

from pydantic import Field

from offline_images.models.common import CamelModel


@dataclass(frozen=True)
class PullOutcome:
    """Result of one pull attempt."""

    image: str
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class SaveOutcome:
    """Result of one archive attempt."""

    image: str
    filename: str
    success: bool
    error: str | None = None
    size_bytes: int = 0
    duration_seconds: float = 0.0


class TransferResult(CamelModel):
    """Aggregate of a pull-then-save run over a set of image references."""

    total_images: int = Field(default=0, ge=0)
    pulled_images: int = Field(default=0, ge=0)
    saved_images: int = Field(default=0, ge=0)
    failed_pulls: list[str] = Field(default_factory=list)
    failed_saves: list[str] = Field(default_factory=list)
    output_directory: str = ""
    pull_results: list[PullOutcome] = Field(default_factory=list, exclude=True)
    save_results: list[SaveOutcome] = Field(default_factory=list, exclude=True)

    @classmethod
    def from_outcomes(
        cls,
        images: list[str],
        pull_results: list[PullOutcome],
        save_results: list[SaveOutcome],
        output_directory: str,
    ) -> "TransferResult":
        """Build the aggregate, keeping failed lists in encounter order."""
        return cls(
            total_images=len(images),
            pulled_images=sum(1 for r in pull_results if r.success),
            saved_images=sum(1 for r in save_results if r.success),
            failed_pulls=[r.image for r in pull_results if not r.success],
            failed_saves=[r.image for r in save_results if not r.success],
            output_directory=output_directory,
            pull_results=pull_results,
            save_results=save_results,
        )
