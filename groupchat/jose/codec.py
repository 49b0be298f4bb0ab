"""Split and join the three-segment compact serialization.

``decode`` never re-serializes: the signing input it returns is the exact
substring of the received token that precedes the last ``.``.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..exceptions import MalformedTokenError
from . import base64url


@dataclass(frozen=True)
class DecodedToken:
    """Unverified view of a compact token."""

    header: Dict[str, Any]
    payload: Dict[str, Any]
    signature: bytes
    signing_input: str

    @property
    def algorithm(self) -> str:
        return self.header["alg"]


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant: {name}")


def _decode_json_segment(segment: str, label: str) -> Dict[str, Any]:
    try:
        raw = base64url.decode(segment)
    except base64url.Base64DecodeError as e:
        raise MalformedTokenError(f"Invalid base64url in {label}") from e

    try:
        value = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise MalformedTokenError(f"Invalid JSON in {label}") from e

    if not isinstance(value, dict):
        raise MalformedTokenError(f"Token {label} must be a JSON object")
    return value


def decode(token: Any) -> DecodedToken:
    """Parse a compact token without checking its signature.

    Raises:
        MalformedTokenError: on any structural problem.
    """
    if not isinstance(token, str):
        raise MalformedTokenError("Token must be a string")

    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(
            "Token must have exactly three segments", details={"segments": len(parts)}
        )

    header = _decode_json_segment(parts[0], "header")
    if not isinstance(header.get("alg"), str):
        raise MalformedTokenError("Token header is missing a string 'alg'")
    payload = _decode_json_segment(parts[1], "payload")

    try:
        signature = base64url.decode(parts[2])
    except base64url.Base64DecodeError as e:
        raise MalformedTokenError("Invalid base64url in signature") from e

    return DecodedToken(
        header=header,
        payload=payload,
        signature=signature,
        signing_input=token[: token.rindex(".")],
    )


def _compact_json(value: Mapping[str, Any]) -> bytes:
    return json.dumps(dict(value), separators=(",", ":"), allow_nan=False).encode("utf-8")


def encode(header: Mapping[str, Any], payload: Mapping[str, Any]) -> str:
    """Return the signing input ``b64(header) + "." + b64(payload)``.

    Keys keep their insertion order; no canonicalization is applied.
    """
    return f"{base64url.encode(_compact_json(header))}.{base64url.encode(_compact_json(payload))}"
