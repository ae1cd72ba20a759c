"""
Static asset store for files the renderer embeds (the logo).

Retrieval is treated as fallible: callers catch AssetNotFoundError and
degrade instead of aborting.

Design Decisions:
- Abstract store interface so tests can supply in-memory assets
- Paths are resolved relative to a base directory, no traversal allowed
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from licenseshop.config import get_settings

logger = logging.getLogger(__name__)


class AssetNotFoundError(FileNotFoundError):
    """Requested asset does not exist or cannot be read."""


class AssetStore(ABC):
    """Abstract interface for static asset retrieval."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return asset bytes. Raises AssetNotFoundError when unavailable."""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if an asset exists."""
        pass


class LocalAssetStore(AssetStore):
    """
    Filesystem-backed asset store.

    Layout:
    asset_path/
        nk2it-logo.png
    """

    def __init__(self, base_path: Path | None = None) -> None:
        """
        Initialize local asset store.

        Args:
            base_path: Base directory for assets. Uses config if None.
        """
        settings = get_settings()
        self.base_path = (base_path or settings.asset_path).resolve()
        logger.debug(f"Local asset store at {self.base_path}")

    def _resolve(self, path: str) -> Path:
        file_path = (self.base_path / path).resolve()
        if not file_path.is_relative_to(self.base_path):
            raise ValueError("Path traversal not allowed")
        return file_path

    def read(self, path: str) -> bytes:
        """Read asset bytes from disk."""
        file_path = self._resolve(path)
        try:
            return file_path.read_bytes()
        except OSError as e:
            raise AssetNotFoundError(f"Asset not available: {path} ({e})") from e

    def exists(self, path: str) -> bool:
        """Check if asset exists."""
        try:
            return self._resolve(path).is_file()
        except ValueError:
            return False


class MemoryAssetStore(AssetStore):
    """Dictionary-backed store, used by tests and previews."""

    def __init__(self, assets: dict[str, bytes] | None = None) -> None:
        self.assets = dict(assets or {})

    def read(self, path: str) -> bytes:
        try:
            return self.assets[path]
        except KeyError:
            raise AssetNotFoundError(f"Asset not available: {path}") from None

    def exists(self, path: str) -> bool:
        return path in self.assets
