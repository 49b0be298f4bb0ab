"""Compute and check signatures over an exact signing input.

HMAC comparisons go through ``hmac.compare_digest``. Asymmetric families use
the ``cryptography`` primitives; ECDSA signatures are converted between DER
and the fixed-width ``r || s`` form JOSE requires.
"""

import hashlib
import hmac
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from ..exceptions import AlgorithmKeyMismatchError
from .algorithms import AlgorithmSpec, Family, is_compatible, resolve
from .keys import Key

_HASHES = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


def _to_bytes(signing_input: Union[str, bytes]) -> bytes:
    if isinstance(signing_input, str):
        return signing_input.encode("utf-8")
    return signing_input


def _pss_padding(spec: AlgorithmSpec) -> padding.PSS:
    hash_cls = _HASHES[spec.hash_name]
    return padding.PSS(mgf=padding.MGF1(hash_cls()), salt_length=hash_cls.digest_size)


def _coordinate_size(curve: ec.EllipticCurve) -> int:
    return (curve.key_size + 7) // 8


def sign(algorithm: str, key: Key, signing_input: Union[str, bytes]) -> bytes:
    """Sign *signing_input* with *key* under *algorithm*.

    Raises:
        UnsupportedAlgorithmError: unknown *algorithm*.
        AlgorithmKeyMismatchError: key is incompatible or verify-only.
    """
    spec = resolve(algorithm)
    if not is_compatible(algorithm, key) or spec.family is Family.NONE:
        raise AlgorithmKeyMismatchError(
            f"Key bound to {getattr(key, 'algorithm', None)!r} cannot sign {algorithm}",
            details={"alg": algorithm},
        )
    if not key.can_sign:
        raise AlgorithmKeyMismatchError(
            "A public key cannot produce signatures", details={"alg": algorithm}
        )

    data = _to_bytes(signing_input)

    if spec.family is Family.HMAC:
        return hmac.new(key.material, data, getattr(hashlib, spec.hash_name)).digest()

    hash_alg = _HASHES[spec.hash_name]()
    if spec.family is Family.RSA_PKCS1:
        return key.material.sign(data, padding.PKCS1v15(), hash_alg)
    if spec.family is Family.RSA_PSS:
        return key.material.sign(data, _pss_padding(spec), hash_alg)

    der = key.material.sign(data, ec.ECDSA(hash_alg))
    r, s = decode_dss_signature(der)
    size = _coordinate_size(key.material.curve)
    return r.to_bytes(size, "big") + s.to_bytes(size, "big")


def verify(
    algorithm: str,
    key: Key,
    signature: bytes,
    signing_input: Union[str, bytes],
) -> bool:
    """Return True iff *signature* is valid for *signing_input*.

    Compatibility is checked first; an incompatible key raises
    ``AlgorithmKeyMismatchError`` rather than returning False.
    """
    spec = resolve(algorithm)
    if not is_compatible(algorithm, key) or spec.family is Family.NONE:
        raise AlgorithmKeyMismatchError(
            f"Key bound to {getattr(key, 'algorithm', None)!r} cannot verify {algorithm}",
            details={"alg": algorithm},
        )

    data = _to_bytes(signing_input)

    if spec.family is Family.HMAC:
        expected = hmac.new(key.material, data, getattr(hashlib, spec.hash_name)).digest()
        return hmac.compare_digest(expected, signature)

    public = key.public_key().material
    hash_alg = _HASHES[spec.hash_name]()
    try:
        if spec.family is Family.RSA_PKCS1:
            public.verify(signature, data, padding.PKCS1v15(), hash_alg)
        elif spec.family is Family.RSA_PSS:
            public.verify(signature, data, _pss_padding(spec), hash_alg)
        else:
            size = _coordinate_size(public.curve)
            if len(signature) != 2 * size:
                return False
            r = int.from_bytes(signature[:size], "big")
            s = int.from_bytes(signature[size:], "big")
            public.verify(encode_dss_signature(r, s), data, ec.ECDSA(hash_alg))
    except InvalidSignature:
        return False
    return True
