"""Key handles bound to a single algorithm identifier.

A ``Key`` never changes after construction and is safe to share across
threads. The bound algorithm is what pins verification: a token is only
checked with the algorithm the key was created for.
"""

import secrets
from dataclasses import dataclass
from typing import Any, Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from ..exceptions import AlgorithmKeyMismatchError
from .algorithms import Family, material_fits, resolve

_CURVES = {
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
}

_PRIVATE_TYPES = (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)


@dataclass(frozen=True)
class Key:
    """Opaque key material plus the algorithm it is bound to."""

    algorithm: str
    material: Any

    def __post_init__(self):
        spec = resolve(self.algorithm)
        if spec.family is Family.NONE:
            raise AlgorithmKeyMismatchError("The 'none' algorithm takes no key")
        if not material_fits(spec, self.material):
            raise AlgorithmKeyMismatchError(
                f"Key material does not fit {self.algorithm}",
                details={"alg": self.algorithm},
            )

    def __repr__(self) -> str:
        # Never print secret material.
        return f"Key(algorithm={self.algorithm!r}, can_sign={self.can_sign})"

    @property
    def family(self) -> Family:
        return resolve(self.algorithm).family

    @property
    def can_sign(self) -> bool:
        if self.family is Family.HMAC:
            return True
        return isinstance(self.material, _PRIVATE_TYPES)

    def public_key(self) -> "Key":
        """Return a verify-only key. HMAC keys are returned unchanged."""
        if isinstance(self.material, _PRIVATE_TYPES):
            return Key(self.algorithm, self.material.public_key())
        return self

    @classmethod
    def hmac(cls, secret: Union[str, bytes], algorithm: str = "HS256") -> "Key":
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        return cls(algorithm, secret)

    @classmethod
    def from_pem(
        cls,
        pem: Union[str, bytes],
        algorithm: str,
        password: Optional[bytes] = None,
    ) -> "Key":
        """Load a PEM private key, or a public key if no private key is found."""
        if isinstance(pem, str):
            pem = pem.encode("utf-8")
        if b"PRIVATE KEY" in pem:
            material = serialization.load_pem_private_key(pem, password=password)
        else:
            material = serialization.load_pem_public_key(pem)
        return cls(algorithm, material)

    @classmethod
    def generate(cls, algorithm: str) -> "Key":
        """Generate fresh signing material for *algorithm*."""
        spec = resolve(algorithm)
        if spec.family is Family.HMAC:
            # Secret as long as the digest, per RFC 7518 section 3.2.
            return cls(algorithm, secrets.token_bytes(int(spec.hash_name[3:]) // 8))
        if spec.family in (Family.RSA_PKCS1, Family.RSA_PSS):
            material = rsa.generate_private_key(public_exponent=65537, key_size=spec.min_key_bits)
            return cls(algorithm, material)
        if spec.family is Family.ECDSA:
            return cls(algorithm, ec.generate_private_key(_CURVES[spec.curve]()))
        raise AlgorithmKeyMismatchError(f"Cannot generate a key for {algorithm}")
