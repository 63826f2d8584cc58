"""Core services exports."""

from .database.db_session import DbSessionService
from .files import FileStore, InMemoryFileStore, LocalFileStore, UnsafeFileNameError
from .images import (
    ErrorReporter,
    ImageAssetManager,
    InvalidDataUriError,
    LoggingErrorReporter,
)
from .tasks import BackgroundTaskRunner

__all__ = [
    # Database Service
    "DbSessionService",
    # File storage
    "FileStore",
    "InMemoryFileStore",
    "LocalFileStore",
    "UnsafeFileNameError",
    # Preview images
    "ErrorReporter",
    "ImageAssetManager",
    "InvalidDataUriError",
    "LoggingErrorReporter",
    # Background tasks
    "BackgroundTaskRunner",
]
