"""Parsing of inline base64 image data URIs."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

DATA_URI_IMAGE_PREFIX = "data:image"

# Only these subtypes map onto a file extension; anything else yields "".
_EXTENSION_PATTERN = re.compile(r"jpeg|png|jpg")
_DATA_URI_PATTERN = re.compile(r"^data:image/([\w.+-]+);base64,(.*)$", re.DOTALL)


class InvalidDataUriError(ValueError):
    """Raised for a ``data:image`` value that is not a decodable base64 image."""


@dataclass(frozen=True)
class ImageDataUri:
    subtype: str
    extension: str
    data: bytes


def is_image_data_uri(value: str | None) -> bool:
    return bool(value) and value.startswith(DATA_URI_IMAGE_PREFIX)


def extension_for(data_uri: str) -> str:
    """Extension derived from the MIME portion of a data URI.

    ``data:image/png;base64,...`` gives ``png``; an unsupported subtype such
    as ``gif`` gives an empty string.
    """
    mime_part = data_uri.split(";", 1)[0]
    match = _EXTENSION_PATTERN.search(mime_part)
    return match.group(0) if match else ""


def parse_image_data_uri(value: str) -> ImageDataUri:
    """Decode ``data:image/<subtype>;base64,<payload>``.

    Raises:
        InvalidDataUriError: If the value is not of that form or the payload
            is not valid base64.
    """
    match = _DATA_URI_PATTERN.match(value)
    if match is None:
        raise InvalidDataUriError(
            "previewImage must look like data:image/<subtype>;base64,<payload>"
        )
    subtype, payload = match.groups()
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidDataUriError(f"previewImage payload is not valid base64: {e}") from e
    return ImageDataUri(subtype=subtype, extension=extension_for(value), data=data)
