"""Vulnerability scanning with Trivy."""

from offline_images.scanner.trivy_scanner import TrivyScanner, parse_trivy_output

__all__ = [
    "TrivyScanner",
    "parse_trivy_output",
]
