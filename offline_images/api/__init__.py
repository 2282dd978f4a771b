"""HTTP front end for offline-images."""

from offline_images.api.app import create_app

__all__ = ["create_app"]
