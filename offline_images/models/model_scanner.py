"""Data models for vulnerability scanning."""

from pydantic import Field

from offline_images.models.common import CamelModel


class VulnerabilityOutcome(CamelModel):
    """Result of scanning a single image."""

    image: str
    success: bool
    critical_count: int = Field(default=0, ge=0)
    high_count: int = Field(default=0, ge=0)
    medium_count: int = Field(default=0, ge=0)
    low_count: int = Field(default=0, ge=0)
    error: str | None = None


class ScanSummary(CamelModel):
    """Summary written to vulnerability_summary.json."""

    total_images_scanned: int = Field(default=0, ge=0)
    successful_scans: int = Field(default=0, ge=0)
    failed_scans: int = Field(default=0, ge=0)
    total_critical: int = Field(default=0, ge=0)
    total_high: int = Field(default=0, ge=0)
    total_medium: int = Field(default=0, ge=0)
    total_low: int = Field(default=0, ge=0)
    report_file: str = ""
    scan_results: list[VulnerabilityOutcome] = Field(default_factory=list)

    @classmethod
    def from_outcomes(
        cls, images: list[str], outcomes: list[VulnerabilityOutcome], report_file: str
    ) -> "ScanSummary":
        """Aggregate per-image outcomes; failed scans contribute zero counts."""
        return cls(
            total_images_scanned=len(images),
            successful_scans=sum(1 for o in outcomes if o.success),
            failed_scans=sum(1 for o in outcomes if not o.success),
            total_critical=sum(o.critical_count for o in outcomes),
            total_high=sum(o.high_count for o in outcomes),
            total_medium=sum(o.medium_count for o in outcomes),
            total_low=sum(o.low_count for o in outcomes),
            report_file=report_file,
            scan_results=outcomes,
        )
