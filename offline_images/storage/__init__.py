"""Artifact writing for offline bundles."""

from offline_images.storage.artifact_writer import ArtifactWriter, write_image_list

__all__ = [
    "ArtifactWriter",
    "write_image_list",
]
