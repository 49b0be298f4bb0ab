"""Unpadded base64url codec used by every compact token segment."""

import base64
import binascii
import re
from typing import Union

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


class Base64DecodeError(ValueError):
    """Input is not valid base64url."""


def encode(data: bytes) -> str:
    """Encode bytes as base64url without ``=`` padding.

    ``encode(b"") == ""``.
    """
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(data: Union[str, bytes]) -> bytes:
    """Decode padded or unpadded base64url.

    Unlike ``base64.urlsafe_b64decode`` this never discards characters
    outside the alphabet: they raise ``Base64DecodeError``.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("ascii")
        except UnicodeDecodeError as e:
            raise Base64DecodeError("Input contains non-ASCII bytes") from e
    if not isinstance(data, str):
        raise Base64DecodeError(f"Expected str or bytes, got {type(data).__name__}")

    stripped = data.rstrip("=")
    if len(data) - len(stripped) > 2:
        raise Base64DecodeError("Too much padding")
    if not _ALPHABET.fullmatch(stripped):
        raise Base64DecodeError("Input contains characters outside the base64url alphabet")
    # A single leftover character cannot encode a whole byte.
    if len(stripped) % 4 == 1:
        raise Base64DecodeError("Invalid base64url length")

    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except binascii.Error as e:
        raise Base64DecodeError(str(e)) from e
