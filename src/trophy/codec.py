"""
Text encoding for the documents embedded in trophy metadata.

Payloads are base64 encoded (RFC 4648: every 3 bytes become 4 symbols, '=' pads a short final group)
and wrapped in `data:` URIs so a document carries its own content type.
"""

import base64
import binascii

JSON_MEDIA_TYPE = "application/json"
SVG_MEDIA_TYPE = "image/svg+xml"

_DATA_PREFIX = "data:"
_BASE64_MARKER = ";base64,"


def encode(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


def decode(text: str) -> bytes:
    """Strict inverse of encode(): characters outside the alphabet are rejected."""
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Not a valid base64 payload: {e}") from e


def to_data_uri(media_type: str, payload: bytes) -> str:
    return f"{_DATA_PREFIX}{media_type}{_BASE64_MARKER}{encode(payload)}"


def from_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (media type, decoded payload)."""
    if not uri.startswith(_DATA_PREFIX) or _BASE64_MARKER not in uri:
        raise ValueError(f"Not a base64 data URI: {uri[:40]!r}")
    media_type, _, encoded = uri[len(_DATA_PREFIX) :].partition(_BASE64_MARKER)
    return media_type, decode(encoded)
