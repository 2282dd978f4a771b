from pathlib import Path

# Output locations
DEFAULT_OUTPUT_DIR = Path("./k8s-images-offline")
DEFAULT_COMPOSE_OUTPUT_DIR = Path("./docker-compose-images-offline")
DEFAULT_COMPOSE_FILE = Path("./docker-compose.yml")

# Artifact file names
K8S_IMAGE_LIST_FILE = "images.txt"
COMPOSE_IMAGE_LIST_FILE = "docker-compose-images.txt"
LOAD_SCRIPT_FILE = "load-images.sh"
README_FILE = "README.md"
VULNERABILITY_REPORT_FILE = "vulnerability_scan.txt"
VULNERABILITY_SUMMARY_FILE = "vulnerability_summary.json"
ARCHIVE_SUFFIX = ".tar.gz"

# External executables
DOCKER_PATH = "docker"
KUBECTL_PATH = "kubectl"
HELM_PATH = "helm"
TRIVY_PATH = "trivy"
COMPOSE_COMMAND = "docker-compose"

# Trivy scanner constants
TRIVY_SEVERITY_FILTER = "CRITICAL,HIGH"  # Only CRITICAL and HIGH are tallied
TRIVY_SEVERITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")
TRIVY_INSTALL_URL = "https://github.com/aquasecurity/trivy#installation"

# Helm release label precedence (first present label wins)
HELM_RELEASE_LABELS = (
    "app.kubernetes.io/instance",
    "release",
    "helm.sh/chart",
)

# Report layout
REPORT_BANNER_WIDTH = 63
REPORT_SECTION_WIDTH = 65
