"""Collaborators the workers hand their results to."""

from typing import Protocol

from chart_tracker.models import PackageKey, PackageRecord


class PackageManager(Protocol):
    """Owns package persistence.

    ``register`` must overwrite an existing package with the same
    (name, version, repository) key.
    """

    def register(self, record: PackageRecord) -> None: ...

    def unregister(self, key: PackageKey) -> None: ...


class ImageStore(Protocol):
    def save_image(self, data: bytes) -> str:
        """Store an image and return its id.

        Raises:
            UnrecognizedImageFormatError: If the data is not a known image format
        """
