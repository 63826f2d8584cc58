from .background import BackgroundTaskRunner

__all__ = ["BackgroundTaskRunner"]
