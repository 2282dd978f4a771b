"""CLI interface for offline-images."""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from offline_images.config import Settings
from offline_images.consts import (
    COMPOSE_IMAGE_LIST_FILE,
    DEFAULT_COMPOSE_FILE,
    K8S_IMAGE_LIST_FILE,
    LOAD_SCRIPT_FILE,
    README_FILE,
    VULNERABILITY_REPORT_FILE,
    VULNERABILITY_SUMMARY_FILE,
)
from offline_images.models.model_scanner import ScanSummary
from offline_images.models.model_transfer import TransferResult
from offline_images.pipeline import OfflineExportPipeline

app = typer.Typer(
    name="offline-images",
    help="Export Kubernetes and Docker Compose images for offline environments",
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _build_pipeline(settings: Settings, quiet: bool = False) -> OfflineExportPipeline:
    if quiet:
        settings.show_progress = False
    return OfflineExportPipeline.from_settings(settings, logger=logging.getLogger("offline_images"))


def _fail(e: Exception, hints: list[str] | None = None) -> None:
    console.print(f"\n[red]Error:[/red] {e}")
    if hints:
        console.print("\nPlease ensure:")
        for hint in hints:
            console.print(f"  • {hint}")
    raise typer.Exit(1)


def _print_transfer_details(result: TransferResult) -> None:
    if result.failed_pulls:
        console.print(f"\n[yellow]Failed Pulls ({len(result.failed_pulls)}):[/yellow]")
        for image in result.failed_pulls:
            console.print(f"   • {image}")

    if result.failed_saves:
        console.print(f"\n[yellow]Failed Saves ({len(result.failed_saves)}):[/yellow]")
        for image in result.failed_saves:
            console.print(f"   • {image}")


def _print_scan_summary(scan: ScanSummary | None) -> None:
    if not scan:
        return
    vuln_table = Table(title="Vulnerability Scan (CRITICAL & HIGH)")
    vuln_table.add_column("Metric", style="cyan")
    vuln_table.add_column("Count", justify="right", style="magenta")
    vuln_table.add_row("Images Scanned", str(scan.total_images_scanned))
    vuln_table.add_row("Failed Scans", str(scan.failed_scans))
    vuln_table.add_row("[red]CRITICAL[/red]", str(scan.total_critical))
    vuln_table.add_row("[yellow]HIGH[/yellow]", str(scan.total_high))
    console.print()
    console.print(vuln_table)


def _print_files(image_list_file: str, scanned: bool, output_dir: Path) -> None:
    console.print("\n[bold]Files Created:[/bold]")
    console.print("   • *.tar.gz - Docker image archives")
    console.print(f"   • {LOAD_SCRIPT_FILE} - Script to load all images")
    console.print(f"   • {README_FILE} - Detailed instructions")
    console.print(f"   • {image_list_file} - List of all images")
    if scanned:
        console.print(f"   • {VULNERABILITY_REPORT_FILE} - Detailed vulnerability report")
        console.print(f"   • {VULNERABILITY_SUMMARY_FILE} - Vulnerability scan summary")

    console.print("\n[bold]Next Steps:[/bold]")
    console.print("   1. Copy the directory to your offline environment")
    console.print(f"   2. Run: cd {output_dir}")
    console.print(f"   3. Run: ./{LOAD_SCRIPT_FILE}")
    console.print("\n[bold green]All images are ready for offline use![/bold green]")


@app.command()
def export(
    release_arg: str = typer.Argument(None, metavar="[RELEASE]", help="Helm release name"),
    release: str = typer.Option(None, "--release", "-r", help="Filter by Helm release name"),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Filter by namespace"),
    filename: str = typer.Option(K8S_IMAGE_LIST_FILE, "--file", "-f", help="Output filename"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Export Kubernetes container images to a file."""
    _configure_logging(verbose)
    helm_release = release or release_arg
    pipeline = _build_pipeline(Settings())

    if helm_release:
        console.print(f"Filtering by Helm release: {helm_release}")
    if namespace:
        console.print(f"Filtering by namespace: {namespace}")

    try:
        result = asyncio.run(
            pipeline.k8s_resolver.export_images(
                helm_release=helm_release,
                namespace=namespace,
                output_dir=Path(filename).parent,
                filename=Path(filename).name,
            )
        )
    except Exception as e:
        _fail(e)

    table = Table(title="Export Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="magenta")
    if result.helm_release:
        table.add_row("Helm Release", result.helm_release)
    table.add_row("Total Pods", str(result.total_pods))
    table.add_row("Total Containers", str(result.total_containers))
    table.add_row("Unique Images", str(result.unique_images))
    console.print(table)

    console.print("\n[bold]Images:[/bold]")
    for image in result.images:
        console.print(image)
    console.print(f"\n[green]Images have been saved to {filename}[/green]")


@app.command()
def releases(
    namespace: str = typer.Option(None, "--namespace", "-n", help="Filter by namespace"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """List Helm releases."""
    _configure_logging(verbose)
    pipeline = _build_pipeline(Settings())

    try:
        helm_releases = asyncio.run(pipeline.k8s_resolver.get_helm_releases(namespace))
    except Exception as e:
        _fail(e)

    if not helm_releases:
        console.print("[yellow]No Helm releases found.[/yellow]")
        return

    table = Table(title=f"Helm Releases ({len(helm_releases)})")
    table.add_column("Name", style="cyan")
    table.add_column("Namespace", style="blue")
    table.add_column("Revision", justify="right")
    table.add_column("Status", style="green")
    table.add_column("Chart", style="magenta")
    table.add_column("App Version", style="dim")
    for rel in helm_releases:
        table.add_row(rel.name, rel.namespace, rel.revision, rel.status, rel.chart, rel.app_version)
    console.print(table)


@app.command("export-offline")
def export_offline(
    release_arg: str = typer.Argument(None, metavar="[RELEASE]", help="Helm release name"),
    release: str = typer.Option(None, "--release", "-r", help="Filter by Helm release name"),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Filter by namespace"),
    output: Path = typer.Option(None, "--output", "-o", help="Output directory"),
    scan: bool = typer.Option(
        True, "--scan/--no-scan", help="Scan for CRITICAL & HIGH vulnerabilities"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not stream pull progress"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Export Kubernetes images as tar.gz archives for offline use."""
    _configure_logging(verbose)
    settings = Settings()
    helm_release = release or release_arg
    output_dir = output or settings.default_output_dir
    pipeline = _build_pipeline(settings, quiet)

    console.print("[bold]Kubernetes Images - Offline Export Tool[/bold]\n")
    if helm_release:
        console.print(f"Helm Release: {helm_release}")
    if namespace:
        console.print(f"Namespace: {namespace}")
    console.print(f"Output Directory: {output_dir}\n")

    try:
        result = asyncio.run(
            pipeline.run_k8s_export(
                helm_release=helm_release,
                namespace=namespace,
                output_dir=output_dir,
                scan_vulnerabilities=scan,
            )
        )
    except Exception as e:
        _fail(
            e,
            [
                "kubectl is installed and configured",
                "Docker is installed and running",
                "You have sufficient disk space",
                "You have network access to pull images",
            ],
        )

    console.print("\n[bold green]Export Complete![/bold green]")
    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="magenta")
    table.add_row("Kubernetes Pods", str(result.total_pods))
    table.add_row("Containers", str(result.total_containers))
    table.add_row("Unique Images", str(result.total_images))
    table.add_row("Successfully Pulled", str(result.pulled_images))
    table.add_row("Successfully Saved", str(result.saved_images))
    console.print(table)

    _print_transfer_details(result)
    _print_scan_summary(result.vulnerability_scan)
    console.print(f"\n[bold]Output Location:[/bold]\n   {result.output_directory}")
    _print_files(result.image_list_file, result.vulnerability_scan is not None, output_dir)


@app.command("export-compose")
def export_compose(
    compose_arg: Path = typer.Argument(None, metavar="[COMPOSE_FILE]", help="Compose file"),
    compose_file: Path = typer.Option(None, "--file", "-f", help="Path to docker-compose.yml"),
    filename: str = typer.Option(
        COMPOSE_IMAGE_LIST_FILE, "--output-file", help="Output filename"
    ),
    build: bool = typer.Option(False, "--build", "-b", help="Build services before exporting"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Export Docker Compose images to a file."""
    _configure_logging(verbose)
    compose_path = compose_file or compose_arg or DEFAULT_COMPOSE_FILE
    pipeline = _build_pipeline(Settings())

    try:
        result = asyncio.run(
            pipeline.compose_resolver.export_images(
                compose_path,
                build_if_needed=build,
                output_dir=Path(filename).parent,
                filename=Path(filename).name,
            )
        )
    except Exception as e:
        _fail(e)

    table = Table(title="Export Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="magenta")
    table.add_row("Total Services", str(result.total_services))
    table.add_row("Total Images", str(result.total_images))
    table.add_row("Services Built", str(result.services_built))
    console.print(table)

    for image in result.images:
        console.print(image)
    console.print(f"\n[green]Images have been saved to {filename}[/green]")


@app.command("export-compose-offline")
def export_compose_offline(
    compose_arg: Path = typer.Argument(None, metavar="[COMPOSE_FILE]", help="Compose file"),
    compose_file: Path = typer.Option(None, "--file", "-f", help="Path to docker-compose.yml"),
    output: Path = typer.Option(None, "--output", "-o", help="Output directory"),
    build: bool = typer.Option(False, "--build", "-b", help="Build services before exporting"),
    scan: bool = typer.Option(
        True, "--scan/--no-scan", help="Scan for CRITICAL & HIGH vulnerabilities"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not stream pull progress"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Export Docker Compose images as tar.gz archives for offline use."""
    _configure_logging(verbose)
    settings = Settings()
    compose_path = compose_file or compose_arg or DEFAULT_COMPOSE_FILE
    output_dir = output or settings.default_compose_output_dir
    pipeline = _build_pipeline(settings, quiet)

    console.print("[bold]Docker Compose Images - Offline Export Tool[/bold]\n")
    console.print(f"Compose File: {compose_path}")
    console.print(f"Output Directory: {output_dir}\n")

    try:
        result = asyncio.run(
            pipeline.run_compose_export(
                compose_path,
                output_dir=output_dir,
                build_if_needed=build,
                scan_vulnerabilities=scan,
            )
        )
    except Exception as e:
        _fail(
            e,
            [
                "The compose file exists and declares services",
                "Docker is installed and running",
                "You have sufficient disk space",
                "You have network access to pull images",
            ],
        )

    console.print("\n[bold green]Export Complete![/bold green]")
    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="magenta")
    table.add_row("Total Services", str(result.total_services))
    table.add_row("Services Built", str(result.services_built))
    table.add_row("Unique Images", str(result.total_images))
    table.add_row("Successfully Pulled", str(result.pulled_images))
    table.add_row("Successfully Saved", str(result.saved_images))
    console.print(table)

    _print_transfer_details(result)
    _print_scan_summary(result.vulnerability_scan)
    console.print(f"\n[bold]Output Location:[/bold]\n   {result.output_directory}")
    _print_files(result.image_list_file, result.vulnerability_scan is not None, output_dir)


if __name__ == "__main__":
    app()
