"""Closed registry of signing algorithms.

Maps a symbolic identifier such as ``"HS256"`` to the parameters the signer
needs, and decides whether a key may be used with a given identifier.

Supported families:
    HMAC        HS256, HS384, HS512
    RSA PKCS#1  RS256, RS384, RS512 (modulus >= 2048 bits)
    RSA-PSS     PS256, PS384, PS512 (modulus >= 2048 bits)
    ECDSA       ES256 (P-256), ES384 (P-384), ES512 (P-521)
    none        unsigned; compatible only with the absence of a key
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from ..exceptions import UnsupportedAlgorithmError

if TYPE_CHECKING:
    from .keys import Key


class Family(str, Enum):
    HMAC = "HMAC"
    RSA_PKCS1 = "RSASSA-PKCS1-v1_5"
    RSA_PSS = "RSASSA-PSS"
    ECDSA = "ECDSA"
    NONE = "none"


MIN_RSA_KEY_BITS = 2048


@dataclass(frozen=True)
class AlgorithmSpec:
    """Concrete parameters behind a symbolic algorithm identifier."""

    name: str
    family: Family
    hash_name: Optional[str] = None   # hashlib name, e.g. "sha256"
    curve: Optional[str] = None       # cryptography curve name for ECDSA
    min_key_bits: Optional[int] = None

    @property
    def is_asymmetric(self) -> bool:
        return self.family in (Family.RSA_PKCS1, Family.RSA_PSS, Family.ECDSA)


def _build_registry() -> Dict[str, AlgorithmSpec]:
    registry = {"none": AlgorithmSpec("none", Family.NONE)}
    for bits in (256, 384, 512):
        hash_name = f"sha{bits}"
        registry[f"HS{bits}"] = AlgorithmSpec(f"HS{bits}", Family.HMAC, hash_name)
        registry[f"RS{bits}"] = AlgorithmSpec(
            f"RS{bits}", Family.RSA_PKCS1, hash_name, min_key_bits=MIN_RSA_KEY_BITS
        )
        registry[f"PS{bits}"] = AlgorithmSpec(
            f"PS{bits}", Family.RSA_PSS, hash_name, min_key_bits=MIN_RSA_KEY_BITS
        )
    registry["ES256"] = AlgorithmSpec("ES256", Family.ECDSA, "sha256", curve="secp256r1")
    registry["ES384"] = AlgorithmSpec("ES384", Family.ECDSA, "sha384", curve="secp384r1")
    registry["ES512"] = AlgorithmSpec("ES512", Family.ECDSA, "sha512", curve="secp521r1")
    return registry


_REGISTRY: Dict[str, AlgorithmSpec] = _build_registry()


def supported_algorithms() -> list[str]:
    return sorted(_REGISTRY)


def resolve(algorithm: Any) -> AlgorithmSpec:
    """Look up an algorithm identifier.

    Raises:
        UnsupportedAlgorithmError: if the identifier is unknown or not a string.
    """
    spec = _REGISTRY.get(algorithm) if isinstance(algorithm, str) else None
    if spec is None:
        raise UnsupportedAlgorithmError(
            f"Unsupported algorithm: {algorithm!r}",
            details={"alg": str(algorithm)},
        )
    return spec


def is_compatible(algorithm: str, key: "Optional[Key]") -> bool:
    """True iff *key* may sign or verify tokens declaring *algorithm*.

    The key's own bound algorithm must resolve to the same family and hash,
    and its material must fit the family (size for RSA, curve for ECDSA).
    ``none`` is compatible only with ``key is None``.
    """
    spec = resolve(algorithm)
    if spec.family is Family.NONE:
        return key is None
    if key is None:
        return False

    try:
        key_spec = resolve(key.algorithm)
    except UnsupportedAlgorithmError:
        return False
    if key_spec.family is not spec.family or key_spec.hash_name != spec.hash_name:
        return False

    return material_fits(spec, key.material)


def material_fits(spec: AlgorithmSpec, material: Any) -> bool:
    """Check raw key material against an algorithm's family constraints."""
    if spec.family is Family.HMAC:
        return isinstance(material, bytes) and len(material) > 0
    if spec.family in (Family.RSA_PKCS1, Family.RSA_PSS):
        if not isinstance(material, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
            return False
        return material.key_size >= (spec.min_key_bits or 0)
    if spec.family is Family.ECDSA:
        if not isinstance(material, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
            return False
        return material.curve.name == spec.curve
    return False
