from .file_store import (
    FileStore,
    InMemoryFileStore,
    LocalFileStore,
    UnsafeFileNameError,
    validate_file_name,
)

__all__ = [
    "FileStore",
    "InMemoryFileStore",
    "LocalFileStore",
    "UnsafeFileNameError",
    "validate_file_name",
]
