"""Compact JSON Web Token issuance and verification."""

from .algorithms import AlgorithmSpec, Family, is_compatible, resolve, supported_algorithms
from .claims import Claims, numeric_date, validate_claims
from .codec import DecodedToken
from .keys import Key
from .service import TokenService, TokenServiceConfig, VerifyResult, create, verify

__all__ = [
    "AlgorithmSpec",
    "Claims",
    "DecodedToken",
    "Family",
    "Key",
    "TokenService",
    "TokenServiceConfig",
    "VerifyResult",
    "create",
    "is_compatible",
    "numeric_date",
    "resolve",
    "supported_algorithms",
    "validate_claims",
    "verify",
]
