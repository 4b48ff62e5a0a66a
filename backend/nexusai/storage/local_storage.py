"""
Local Filesystem Storage Implementation.
This implementation stores all data on the server's local filesystem.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import List, Optional

import aiofiles

from .interface import StorageInterface

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """
    Local filesystem storage implementation.
    Stores all data in a base directory on the server. Writes go to a
    temporary sibling file first and are moved into place, so a reader never
    sees a half-written document.
    """

    def __init__(self, base_dir: str = "./data"):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all stored files
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, path: str) -> Path:
        """Convert relative path to full absolute path within base directory."""
        full_path = (self.base_dir / path).resolve()

        # Security check: ensure path is within base_dir
        if full_path != self.base_dir and self.base_dir not in full_path.parents:
            raise ValueError(f"Invalid path: {path} - path traversal detected")

        return full_path

    async def save(self, path: str, content: bytes | str) -> bool:
        """Save content to local filesystem."""
        tmp_path = None
        try:
            full_path = self._get_full_path(path)
            full_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = full_path.with_name(f".{full_path.name}.{uuid.uuid4().hex}.tmp")

            data = content.encode("utf-8") if isinstance(content, str) else content
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(data)
            os.replace(tmp_path, full_path)

            return True
        except (OSError, ValueError) as e:
            logger.error(f"Error saving file {path}: {e}")
            if tmp_path is not None:
                try:
                    tmp_path.unlink(missing_ok=True)
                except OSError as cleanup_error:
                    logger.warning(f"Could not remove temporary file {tmp_path}: {cleanup_error}")
            return False

    async def load(self, path: str) -> Optional[bytes]:
        """Load content from local filesystem."""
        try:
            full_path = self._get_full_path(path)
            if not full_path.exists():
                return None

            async with aiofiles.open(full_path, "rb") as f:
                return await f.read()
        except (OSError, ValueError) as e:
            logger.error(f"Error loading file {path}: {e}")
            return None

    async def delete(self, path: str) -> bool:
        """Delete file from local filesystem."""
        try:
            full_path = self._get_full_path(path)
            if full_path.is_file():
                full_path.unlink()
                return True
            return False
        except (OSError, ValueError) as e:
            logger.error(f"Error deleting file {path}: {e}")
            return False

    async def list(
        self,
        path: str,
        pattern: Optional[str] = None,
        recursive: bool = False
    ) -> List[str]:
        """List files in directory."""
        try:
            full_path = self._get_full_path(path)
            if not full_path.is_dir():
                return []

            glob_pattern = pattern or "*"
            if recursive:
                files = full_path.rglob(glob_pattern)
            else:
                files = full_path.glob(glob_pattern)

            # Relative paths, skipping in-flight temporary files
            return sorted(
                str(p.relative_to(self.base_dir))
                for p in files
                if p.is_file() and not p.name.endswith(".tmp")
            )
        except (OSError, ValueError) as e:
            logger.error(f"Error listing files in {path}: {e}")
            return []
