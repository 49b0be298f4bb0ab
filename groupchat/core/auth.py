"""Authentication module: token issuance and bearer-token checks.

Public interface:
    ``build_token_service``: construct the process-wide TokenService from settings.
    ``issue_token``: mint a token for a username at login.
    ``authenticate``: resolve a bearer token to a username or an AuthFailure.
    ``require_user``: FastAPI dependency returning the username or raising 401.

Every verification failure reaches the client as the same 401 response.
The specific failure kind is only logged.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import ConfigurationError, Settings
from ..exceptions import AuthenticationError, ErrorCode, TokenError
from ..jose import Family, Key, TokenService, TokenServiceConfig, numeric_date, resolve

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthFailure:
    """Why a bearer token was not accepted. Never sent to the client."""

    reason: ErrorCode
    detail: str = ""


def build_token_service(settings: Settings) -> TokenService:
    """Create the TokenService from configuration.

    Raises:
        ConfigurationError: if ``JWT_ALGORITHM`` is unknown or not HMAC, or
            the secret is empty.
    """
    try:
        spec = resolve(settings.jwt_algorithm)
    except TokenError as e:
        raise ConfigurationError(f"JWT_ALGORITHM: {e.message}") from e
    if spec.family is not Family.HMAC:
        raise ConfigurationError(
            f"JWT_ALGORITHM must be an HMAC algorithm (HS256/HS384/HS512), got {spec.name}"
        )
    if not settings.jwt_secret_key:
        raise ConfigurationError("JWT_SECRET_KEY must not be empty")

    key = Key.hmac(settings.jwt_secret_key, spec.name)
    return TokenService(
        TokenServiceConfig(key=key, leeway_seconds=settings.jwt_leeway_seconds)
    )


def issue_token(service: TokenService, subject_id: str, ttl_seconds: float) -> str:
    """Mint a token whose ``iss`` is *subject_id*, valid for *ttl_seconds*."""
    payload = {
        "iss": subject_id,
        "exp": numeric_date(ttl_seconds, now=service.now()),
    }
    return service.create(payload)


def authenticate(
    service: TokenService, bearer_token: Optional[str]
) -> Union[str, AuthFailure]:
    """Return the token's subject, or an AuthFailure explaining the rejection."""
    if not bearer_token:
        return AuthFailure(ErrorCode.UNAUTHORIZED, "missing token")

    result = service.verify(bearer_token)
    if not result.ok:
        return AuthFailure(result.error_code, result.error.message)

    subject = result.payload.get("iss")
    if not isinstance(subject, str) or not subject:
        return AuthFailure(ErrorCode.INVALID_CLAIMS, "token has no subject")
    return subject


def get_token_service(request: Request) -> TokenService:
    """The TokenService built at startup and stored on ``app.state``."""
    return request.app.state.token_service


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    service: TokenService = Depends(get_token_service),
) -> str:
    """Require a valid bearer token and return the authenticated username."""
    token = credentials.credentials if credentials is not None else None
    outcome = authenticate(service, token)
    if isinstance(outcome, AuthFailure):
        logger.info(
            "Token rejected",
            extra={"reason": outcome.reason.value, "detail": outcome.detail},
        )
        raise AuthenticationError()
    return outcome
