"""Local filesystem storage implementation."""

from __future__ import annotations

import os
import shutil
from pathlib import Path, PurePosixPath
from typing import IO, BinaryIO

from werkzeug.utils import secure_filename

from config import Config

from .abstract_storage import AbstractStorage


class LocalStorage(AbstractStorage):
    """Persist files to the local filesystem under the configured upload directory."""

    def __init__(self, upload_dir: str | None = None):
        self.base_directory = Path(upload_dir or Config.UPLOAD_DIR)
        os.makedirs(self.base_directory, exist_ok=True)

    def _resolve(self, relative: str) -> Path:
        candidate = (self.base_directory / relative).resolve()
        if not candidate.is_relative_to(self.base_directory.resolve()):
            raise ValueError("Path escapes the upload directory.")
        return candidate

    def save(self, file_obj: IO[bytes], directory: str, filename: str) -> str:
        """Save a file and return the relative path within the upload directory."""

        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        relative = PurePosixPath(directory) / safe_name
        destination = self._resolve(str(relative))
        destination.parent.mkdir(parents=True, exist_ok=True)
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())

        return str(relative)

    def delete(self, reference: str) -> None:
        path = self._resolve(reference)
        if path.is_file():
            path.unlink()

    def delete_directory(self, directory: str) -> None:
        path = self._resolve(directory)
        if path.is_dir():
            shutil.rmtree(path)

    def exists(self, reference: str) -> bool:
        """Return True if the given relative path exists within the upload directory."""

        return self._resolve(reference).exists()

    def open(self, reference: str, mode: str = "rb") -> BinaryIO:
        """Open a stored file using the provided mode."""

        return open(self._resolve(reference), mode)
