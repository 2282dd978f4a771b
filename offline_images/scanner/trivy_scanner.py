"""Trivy CLI wrapper for Docker image vulnerability scanning."""

import json
import logging
from pathlib import Path

from offline_images.consts import (
    REPORT_BANNER_WIDTH,
    REPORT_SECTION_WIDTH,
    TRIVY_INSTALL_URL,
    TRIVY_PATH,
    TRIVY_SEVERITIES,
    TRIVY_SEVERITY_FILTER,
    VULNERABILITY_REPORT_FILE,
    VULNERABILITY_SUMMARY_FILE,
)
from offline_images.errors import ToolUnavailableError
from offline_images.models.common import _utc_now
from offline_images.models.model_scanner import ScanSummary, VulnerabilityOutcome
from offline_images.utils.command import CommandRunner


def parse_trivy_output(json_output: str) -> dict[str, int]:
    """Count vulnerabilities by severity across every result in a Trivy JSON report.

    An image yields one result per scan target (OS packages, language
    packages, ...); counts are summed over all of them.

    Raises:
        ValueError: output is not a Trivy JSON report
    """
    data = json.loads(json_output)
    if not isinstance(data, dict):
        raise ValueError("Unexpected Trivy output: top-level value is not an object")

    counts = {severity: 0 for severity in TRIVY_SEVERITIES}
    # Trivy output structure: {"Results": [{"Vulnerabilities": [...]}]}
    results = data.get("Results") or []
    if not isinstance(results, list):
        raise ValueError("Unexpected Trivy output: Results is not a list")
    for result in results:
        if not isinstance(result, dict):
            raise ValueError("Unexpected Trivy output: result entry is not an object")
        vulns = result.get("Vulnerabilities") or []
        if not isinstance(vulns, list):
            raise ValueError("Unexpected Trivy output: Vulnerabilities is not a list")
        for vuln in vulns:
            if not isinstance(vuln, dict):
                raise ValueError("Unexpected Trivy output: malformed vulnerability entry")
            severity = vuln.get("Severity", "UNKNOWN")
            if severity in counts:
                counts[severity] += 1
    return counts


class TrivyScanner:
    """Wraps Trivy CLI for scanning Docker images."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        trivy_path: str = TRIVY_PATH,
        severity: str = TRIVY_SEVERITY_FILTER,
        timeout: int | None = None,
        show_progress: bool = False,
        logger: logging.Logger | None = None,
    ):
        """Initialize TrivyScanner.

        Args:
            runner: Command runner for trivy
            trivy_path: Path to trivy executable (default: "trivy")
            severity: Severity filter passed to trivy (default: "CRITICAL,HIGH")
            timeout: Scan timeout in seconds, enforced by trivy itself (default: trivy's own)
            show_progress: Log per-image progress
            logger: Logger to report progress on (default: module logger)
        """
        self.runner = runner or CommandRunner()
        self.trivy_path = trivy_path
        self.severity = severity
        self.timeout = timeout
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger(__name__)

    async def check_trivy_available(self) -> bool:
        """Check that the trivy CLI answers."""
        result = await self.runner.run([self.trivy_path, "--version"])
        if not result.success:
            self.logger.error(f"Trivy is not available: {result.error_text}")
        return result.success

    def _scan_cmd(self, image: str, output_format: str) -> list[str]:
        cmd = [
            self.trivy_path,
            "image",
            "--format",
            output_format,
            "--quiet",
            "--severity",
            self.severity,
        ]
        if self.timeout:
            cmd += ["--timeout", f"{self.timeout}s"]
        cmd.append(image)
        return cmd

    async def scan_image(self, image: str, show_progress: bool | None = None) -> VulnerabilityOutcome:
        """Scan one image and count findings; failures are returned, not raised.

        Args:
            image: Image reference
            show_progress: Log per-image progress (default: instance setting)

        Returns:
            VulnerabilityOutcome; zero counts and the error text on failure
        """
        progress = self.show_progress if show_progress is None else show_progress
        if progress:
            self.logger.info(f"Scanning image: {image}")

        result = await self.runner.run(self._scan_cmd(image, "json"))
        if not result.success:
            self.logger.warning(f"Failed to scan {image}: {result.error_text}")
            return VulnerabilityOutcome(image=image, success=False, error=result.error_text)

        try:
            counts = parse_trivy_output(result.stdout)
        except ValueError as e:
            self.logger.warning(f"Failed to parse Trivy output for {image}: {e}")
            return VulnerabilityOutcome(
                image=image, success=False, error=f"Failed to parse Trivy output: {e}"
            )

        outcome = VulnerabilityOutcome(
            image=image,
            success=True,
            critical_count=counts["CRITICAL"],
            high_count=counts["HIGH"],
            medium_count=counts["MEDIUM"],
            low_count=counts["LOW"],
        )
        if progress:
            self.logger.info(
                f"  ✓ Scan complete: {outcome.critical_count} critical, "
                f"{outcome.high_count} high, {outcome.medium_count} medium, "
                f"{outcome.low_count} low"
            )
        return outcome

    async def scan_images(
        self, images: list[str], show_progress: bool | None = None
    ) -> list[VulnerabilityOutcome]:
        """Scan each image in order, one at a time."""
        self.logger.info(f"Scanning {len(images)} images with Trivy...")
        progress = self.show_progress if show_progress is None else show_progress
        results: list[VulnerabilityOutcome] = []

        for i, image in enumerate(images, start=1):
            if progress:
                self.logger.info(f"[{i}/{len(images)}] {image}")
            results.append(await self.scan_image(image, progress))

        return results

    async def render_detailed_report(self, images: list[str]) -> str:
        """Build the human-readable report with one table section per image.

        Each section comes from a separate table-format run; a failed run
        becomes an inline error block for that image only.
        """
        banner = "═" * REPORT_BANNER_WIDTH
        rule = "─" * REPORT_SECTION_WIDTH
        severities = ", ".join(self.severity.split(","))

        parts = [
            f"{banner}\n",
            "           VULNERABILITY SCAN REPORT (Trivy)\n",
            f"{banner}\n\n",
            f"Scan Date: {_utc_now().isoformat()}\n",
            f"Severity Filter: {severities}\n",
            f"Total Images Scanned: {len(images)}\n\n",
        ]

        for i, image in enumerate(images, start=1):
            parts.append(f"\n{rule}\n[{i}/{len(images)}] Image: {image}\n{rule}\n\n")
            result = await self.runner.run(self._scan_cmd(image, "table"))
            if result.success:
                parts.append(result.stdout + "\n")
            else:
                parts.append("ERROR: Failed to scan image\n")
                parts.append(f"{result.error_text}\n\n")

        parts += [
            f"\n{banner}\n",
            "                      END OF REPORT\n",
            f"{banner}\n",
        ]
        return "".join(parts)

    async def generate_detailed_report(self, images: list[str], output_file: Path | str) -> Path:
        """Render the detailed report and write it in one call."""
        self.logger.info("Generating detailed vulnerability report...")
        output_file = Path(output_file)
        report = await self.render_detailed_report(images)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(report, encoding="utf-8")
        self.logger.info(f"Detailed report saved to: {output_file}")
        return output_file

    async def perform_vulnerability_scan(
        self,
        images: list[str],
        output_dir: Path | str = ".",
        show_progress: bool | None = None,
    ) -> ScanSummary:
        """Scan all images, then write the detailed report and the JSON summary.

        Raises:
            ToolUnavailableError: trivy is not reachable; nothing is scanned
        """
        if not await self.check_trivy_available():
            raise ToolUnavailableError(
                "trivy", f"Trivy is not available. Please install Trivy: {TRIVY_INSTALL_URL}"
            )

        outcomes = await self.scan_images(images, show_progress)

        output_dir = Path(output_dir)
        report_file = output_dir / VULNERABILITY_REPORT_FILE
        await self.generate_detailed_report(images, report_file)

        summary = ScanSummary.from_outcomes(images, outcomes, report_file=str(report_file))
        summary_file = output_dir / VULNERABILITY_SUMMARY_FILE
        summary_file.write_text(summary.to_json(), encoding="utf-8")
        self.logger.info(f"Summary saved to: {summary_file}")

        self.logger.info("=== Vulnerability Scan Summary (CRITICAL & HIGH) ===")
        self.logger.info(f"Total Images: {summary.total_images_scanned}")
        self.logger.info(f"Successful Scans: {summary.successful_scans}")
        self.logger.info(f"Failed Scans: {summary.failed_scans}")
        self.logger.info(f"Total CRITICAL: {summary.total_critical}")
        self.logger.info(f"Total HIGH: {summary.total_high}")

        return summary
