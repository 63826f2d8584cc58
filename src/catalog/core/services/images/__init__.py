from .data_uri import (
    DATA_URI_IMAGE_PREFIX,
    ImageDataUri,
    InvalidDataUriError,
    extension_for,
    is_image_data_uri,
    parse_image_data_uri,
)
from .error_reporter import ErrorReporter, LoggingErrorReporter
from .image_asset_manager import ImageAssetManager, file_name_from_url

__all__ = [
    "DATA_URI_IMAGE_PREFIX",
    "ErrorReporter",
    "ImageAssetManager",
    "ImageDataUri",
    "InvalidDataUriError",
    "LoggingErrorReporter",
    "extension_for",
    "file_name_from_url",
    "is_image_data_uri",
    "parse_image_data_uri",
]
