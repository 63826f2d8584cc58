"""File store interface and implementations.

A file store holds named blobs inside a single flat directory. Names are
plain file names; anything that could escape the directory is rejected.
"""

from __future__ import annotations

import contextlib
import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath, PureWindowsPath

import aiofiles
import aiofiles.os
from loguru import logger

_TEMP_PREFIX = ".tmp-"
_TEMP_SUFFIX = ".part"


def _is_temp_name(name: str) -> bool:
    return name.startswith(_TEMP_PREFIX) and name.endswith(_TEMP_SUFFIX)


class UnsafeFileNameError(ValueError):
    """Raised when a file name could resolve outside the store directory."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unsafe file name: {name!r}")
        self.name = name


def validate_file_name(name: str) -> str:
    """Return ``name`` unchanged if it is a plain file name.

    Rejects empty names, ``.``/``..``, absolute paths, drive letters, NUL
    bytes and any name containing a path separator.
    """
    if not name or name in (".", "..") or "\x00" in name:
        raise UnsafeFileNameError(name)
    if ".." in PurePosixPath(name).parts or ".." in name.split("\\"):
        raise UnsafeFileNameError(name)
    if "/" in name or "\\" in name:
        raise UnsafeFileNameError(name)
    if PurePosixPath(name).is_absolute() or PureWindowsPath(name).drive:
        raise UnsafeFileNameError(name)
    return name


class FileStore(ABC):
    """Abstract interface for image file storage backends."""

    @abstractmethod
    async def write(self, name: str, data: bytes) -> None:
        """Store ``data`` under ``name``, replacing any previous content.

        Raises:
            UnsafeFileNameError: If ``name`` is not a plain file name
            OSError: If the underlying write fails
        """

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove the file stored under ``name``.

        Raises:
            UnsafeFileNameError: If ``name`` is not a plain file name
            FileNotFoundError: If nothing is stored under ``name``
        """

    @abstractmethod
    def resolve(self, name: str) -> Path:
        """Return a readable path for serving ``name``.

        Raises:
            UnsafeFileNameError: If ``name`` is not a plain file name
            FileNotFoundError: If nothing is stored under ``name``
        """

    @abstractmethod
    def list_names(self) -> list[str]:
        """List the names of all stored files."""

    @abstractmethod
    async def modified_at(self, name: str) -> datetime:
        """Return when ``name`` was last written, in UTC.

        Raises:
            UnsafeFileNameError: If ``name`` is not a plain file name
            FileNotFoundError: If nothing is stored under ``name``
        """


class LocalFileStore(FileStore):
    """File store backed by a directory on the local filesystem."""

    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        logger.debug("Local file store rooted at {}", self._root)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, name: str) -> Path:
        path = (self._root / validate_file_name(name)).resolve()
        if path.parent != self._root:
            raise UnsafeFileNameError(name)
        return path

    async def write(self, name: str, data: bytes) -> None:
        path = self._path_for(name)
        # Readers and concurrent writers only ever see a complete file
        temp_path = path.with_name(f"{_TEMP_PREFIX}{path.name}.{uuid.uuid4().hex}{_TEMP_SUFFIX}")
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(temp_path, path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                await aiofiles.os.remove(temp_path)
        logger.debug("Wrote {} bytes to {}", len(data), path)

    async def delete(self, name: str) -> None:
        path = self._path_for(name)
        await aiofiles.os.remove(path)
        logger.debug("Deleted {}", path)

    def resolve(self, name: str) -> Path:
        path = self._path_for(name)
        if not path.is_file():
            raise FileNotFoundError(name)
        return path

    def list_names(self) -> list[str]:
        return sorted(
            entry.name
            for entry in self._root.iterdir()
            if entry.is_file() and not _is_temp_name(entry.name)
        )

    async def modified_at(self, name: str) -> datetime:
        stat = await aiofiles.os.stat(self._path_for(name))
        return datetime.fromtimestamp(stat.st_mtime, UTC)


class InMemoryFileStore(FileStore):
    """Dictionary-backed file store for tests and ephemeral deployments.

    ``resolve`` is not supported since nothing exists on disk.
    """

    def __init__(self):
        self._files: dict[str, bytes] = {}
        self._modified: dict[str, datetime] = {}

    async def write(self, name: str, data: bytes) -> None:
        self._files[validate_file_name(name)] = data
        self._modified[name] = datetime.now(UTC)

    async def delete(self, name: str) -> None:
        try:
            del self._files[validate_file_name(name)]
        except KeyError:
            raise FileNotFoundError(name) from None
        self._modified.pop(name, None)

    def resolve(self, name: str) -> Path:
        validate_file_name(name)
        raise FileNotFoundError(name)

    def read(self, name: str) -> bytes:
        try:
            return self._files[validate_file_name(name)]
        except KeyError:
            raise FileNotFoundError(name) from None

    async def modified_at(self, name: str) -> datetime:
        try:
            return self._modified[validate_file_name(name)]
        except KeyError:
            raise FileNotFoundError(name) from None

    def set_modified_at(self, name: str, when: datetime) -> None:
        if name not in self._files:
            raise FileNotFoundError(name)
        self._modified[name] = when

    def list_names(self) -> list[str]:
        return sorted(self._files)
