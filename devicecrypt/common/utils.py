"""Small encoding helpers shared by the envelope code and the CLI."""

import base64
import binascii
import hashlib


def b64e(data):
    """Encode bytes as a base64 ASCII string."""
    return base64.b64encode(data).decode("ascii")


def b64d(text):
    """Decode a base64 string; raises ValueError on malformed input."""
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64: {e}") from e


def sha256_hex(data):
    """Hex SHA256 of data."""
    return hashlib.sha256(data).hexdigest()
