"""Token Service: create and verify compact tokens.

Two surfaces are offered:

* ``create`` / ``verify`` module functions raise a ``TokenError`` subclass
  on failure.
* ``TokenService`` wraps a ``TokenServiceConfig`` (key, clock, leeway) and
  returns a ``VerifyResult`` instead of raising, so callers handle failure
  explicitly.

Verification order matters: structure, then algorithm pinning against the
caller's key, then the signature over the original bytes, then claims.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from ..exceptions import (
    AlgorithmMismatchError,
    ErrorCode,
    SignatureMismatchError,
    TokenError,
    UnsupportedAlgorithmError,
)
from . import base64url, codec, signing
from .algorithms import Family, is_compatible, resolve
from .claims import DEFAULT_LEEWAY_SECONDS, Claims, validate_claims
from .keys import Key

Clock = Callable[[], float]


def create(header: Mapping[str, Any], payload: Mapping[str, Any], key: Key) -> str:
    """Sign *payload* and return the compact token.

    Raises:
        UnsupportedAlgorithmError: ``alg`` missing, unknown, or ``none``.
        AlgorithmKeyMismatchError: *key* cannot sign ``alg``.
    """
    algorithm = header.get("alg")
    if algorithm is None:
        raise UnsupportedAlgorithmError("Header is missing 'alg'")
    spec = resolve(algorithm)
    if spec.family is Family.NONE:
        raise UnsupportedAlgorithmError("Unsigned tokens are refused", details={"alg": "none"})

    signing_input = codec.encode(header, payload)
    signature = signing.sign(algorithm, key, signing_input)
    return f"{signing_input}.{base64url.encode(signature)}"


def verify(
    token: Any,
    key: Key,
    leeway: float = DEFAULT_LEEWAY_SECONDS,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """Verify *token* with *key* and return its payload.

    The token's ``alg`` is never trusted on its own: it must be compatible
    with the algorithm *key* is bound to, and this is checked before any
    signature computation.

    Raises:
        MalformedTokenError, UnsupportedAlgorithmError, AlgorithmMismatchError,
        SignatureMismatchError, InvalidClaimsError, TokenExpiredError,
        TokenNotYetValidError
    """
    decoded = codec.decode(token)
    algorithm = decoded.algorithm

    spec = resolve(algorithm)
    if spec.family is Family.NONE or not is_compatible(algorithm, key):
        raise AlgorithmMismatchError(
            f"Token algorithm {algorithm} does not match the verification key",
            details={"alg": algorithm, "expected": getattr(key, "algorithm", None)},
        )

    if not signing.verify(algorithm, key, decoded.signature, decoded.signing_input):
        raise SignatureMismatchError("Token signature is invalid")

    validate_claims(decoded.payload, leeway=leeway, now=now)
    return decoded.payload


@dataclass(frozen=True)
class TokenServiceConfig:
    """Everything the service needs, built once at process start."""

    key: Key
    clock: Clock = time.time
    leeway_seconds: float = DEFAULT_LEEWAY_SECONDS
    header_extra: Mapping[str, Any] = field(default_factory=lambda: {"typ": "JWT"})


@dataclass(frozen=True)
class VerifyResult:
    """Either a verified payload or the reason verification failed."""

    payload: Optional[Dict[str, Any]] = None
    error: Optional[TokenError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.error_code if self.error is not None else None

    @property
    def claims(self) -> Claims:
        return Claims.from_dict(self.unwrap())

    def unwrap(self) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        return self.payload


class TokenService:
    """Stateless create/verify bound to one key, clock and leeway."""

    def __init__(self, config: TokenServiceConfig):
        self.config = config

    @property
    def algorithm(self) -> str:
        return self.config.key.algorithm

    def now(self) -> float:
        return self.config.clock()

    def create(self, payload: Mapping[str, Any], header: Optional[Mapping[str, Any]] = None) -> str:
        """Sign *payload*. The header defaults to the key's algorithm plus ``typ``."""
        if header is None:
            header = {"alg": self.algorithm, **self.config.header_extra}
        return create(header, payload, self.config.key)

    def verify(self, token: Any) -> VerifyResult:
        try:
            payload = verify(
                token,
                self.config.key,
                leeway=self.config.leeway_seconds,
                now=self.now(),
            )
        except TokenError as e:
            return VerifyResult(error=e)
        return VerifyResult(payload=payload)
