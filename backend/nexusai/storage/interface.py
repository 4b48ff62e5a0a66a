"""
Storage Interface - Abstract base class for all storage implementations.
Document stores (chats, users) are written against this interface so the
backing medium (local disk today, object storage later) can be swapped.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class StorageInterface(ABC):
    """
    Abstract storage interface that defines the contract for all storage implementations.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path, replacing what was there.

        Args:
            path: Relative path (e.g., "chats/anonymous/session_1700000000000.json")
            content: Content to save (bytes, or str written as UTF-8)

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Args:
            path: Relative path to load from

        Returns:
            Optional[bytes]: File content as bytes, or None if file doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete file at the specified path.

        Args:
            path: Relative path to delete

        Returns:
            bool: True if a file existed and was deleted, False otherwise
        """
        pass

    @abstractmethod
    async def list(
        self,
        path: str,
        pattern: Optional[str] = None,
        recursive: bool = False
    ) -> List[str]:
        """
        List files in the specified directory.

        Args:
            path: Directory path to list
            pattern: Optional glob pattern to filter files (e.g., "*.json")
            recursive: Whether to list files recursively

        Returns:
            List[str]: Sorted relative file paths
        """
        pass
