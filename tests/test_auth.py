"""Tests for the auth module: service construction, issuing and authenticating."""

import pytest

from groupchat.core.auth import AuthFailure, authenticate, build_token_service, issue_token
from groupchat.core.config import ConfigurationError, Settings
from groupchat.exceptions import ErrorCode
from groupchat.jose import Key, TokenService, TokenServiceConfig, codec


def _service(now: float = 1_700_000_000.0, secret: str = "auth-test-secret") -> TokenService:
    return TokenService(TokenServiceConfig(key=Key.hmac(secret), clock=lambda: now))


class TestBuildTokenService:

    def test_builds_hmac_service(self):
        service = build_token_service(Settings(jwt_secret_key="k" * 32, jwt_algorithm="HS384"))
        assert service.algorithm == "HS384"
        assert service.config.leeway_seconds == 1.0

    def test_unknown_algorithm_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            build_token_service(Settings(jwt_algorithm="HS999"))

    def test_asymmetric_algorithm_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            build_token_service(Settings(jwt_algorithm="RS256"))

    def test_none_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            build_token_service(Settings(jwt_algorithm="none"))

    def test_empty_secret_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            build_token_service(Settings(jwt_secret_key=""))


class TestIssueToken:

    def test_claims(self):
        service = _service(now=1_700_000_000.0)
        decoded = codec.decode(issue_token(service, "ada", 3600))
        assert decoded.header == {"alg": "HS256", "typ": "JWT"}
        assert decoded.payload == {"iss": "ada", "exp": 1_700_003_600}


class TestAuthenticate:

    def test_valid_token_returns_subject(self):
        service = _service()
        assert authenticate(service, issue_token(service, "ada", 60)) == "ada"

    @pytest.mark.parametrize("missing", [None, ""])
    def test_missing_token(self, missing):
        outcome = authenticate(_service(), missing)
        assert isinstance(outcome, AuthFailure)
        assert outcome.reason is ErrorCode.UNAUTHORIZED

    def test_expired_token(self):
        issuer = _service(now=1_700_000_000.0)
        token = issue_token(issuer, "ada", 60)
        later = _service(now=1_700_000_000.0 + 120)
        outcome = authenticate(later, token)
        assert isinstance(outcome, AuthFailure)
        assert outcome.reason is ErrorCode.TOKEN_EXPIRED

    def test_foreign_signature(self):
        token = issue_token(_service(secret="someone-else"), "ada", 60)
        outcome = authenticate(_service(), token)
        assert outcome.reason is ErrorCode.SIGNATURE_MISMATCH

    def test_malformed(self):
        assert authenticate(_service(), "onlyonepart").reason is ErrorCode.MALFORMED_TOKEN

    def test_token_without_subject(self):
        service = _service()
        token = service.create({"exp": 1_700_000_060})
        assert authenticate(service, token).reason is ErrorCode.INVALID_CLAIMS

    def test_non_string_subject(self):
        service = _service()
        token = service.create({"iss": 42})
        assert authenticate(service, token).reason is ErrorCode.INVALID_CLAIMS
