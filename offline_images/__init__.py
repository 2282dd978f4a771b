"""offline-images: export container images for air-gapped environments.

Resolves image references from Kubernetes pods or a Docker Compose manifest,
pulls and archives every image, optionally scans them with Trivy, and writes
a self-contained directory that can be loaded on an offline host.
"""

__version__ = "0.1.0"
