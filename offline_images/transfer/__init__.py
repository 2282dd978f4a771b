"""Pull/save transfer engine."""

from offline_images.transfer.docker_transfer import DockerTransfer, archive_filename

__all__ = [
    "DockerTransfer",
    "archive_filename",
]
