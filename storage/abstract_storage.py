"""Storage abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO


class AbstractStorage(ABC):
    """Interface for image storage backends."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], directory: str, filename: str) -> str:
        """Persist a file under ``directory`` and return its stored reference.

        The reference is either a path relative to the backend root or an
        absolute public URL.
        """

    @abstractmethod
    def delete(self, reference: str) -> None:
        """Remove a stored file. Missing files are ignored."""

    @abstractmethod
    def delete_directory(self, directory: str) -> None:
        """Remove every file stored under ``directory``."""

    @abstractmethod
    def exists(self, reference: str) -> bool:
        """Return whether the given reference exists in storage."""
