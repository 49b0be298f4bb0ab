"""Tests for splitting and joining compact tokens."""

import pytest

from groupchat.exceptions import MalformedTokenError
from groupchat.jose import base64url, codec


def _segment(raw: bytes) -> str:
    return base64url.encode(raw)


HEADER = _segment(b'{"alg":"HS256","typ":"JWT"}')
PAYLOAD = _segment(b'{"iss":"ada"}')
SIGNATURE = _segment(b"\x01\x02\x03")
NOT_UTF8 = _segment(b"\xff\xfe")
NAN_PAYLOAD = _segment(b'{"exp":NaN}')
NOT_JSON = _segment(b"{not json")


class TestEncode:

    def test_compact_json(self):
        signing_input = codec.encode({"alg": "HS256", "typ": "JWT"}, {"iss": "ada"})
        assert signing_input == f"{HEADER}.{PAYLOAD}"

    def test_preserves_key_order(self):
        first = codec.encode({"alg": "HS256"}, {"b": 1, "a": 2})
        second = codec.encode({"alg": "HS256"}, {"a": 2, "b": 1})
        assert first != second

    def test_rejects_nan(self):
        with pytest.raises(ValueError):
            codec.encode({"alg": "HS256"}, {"exp": float("nan")})


class TestDecode:

    def test_splits_segments(self):
        decoded = codec.decode(f"{HEADER}.{PAYLOAD}.{SIGNATURE}")
        assert decoded.header == {"alg": "HS256", "typ": "JWT"}
        assert decoded.payload == {"iss": "ada"}
        assert decoded.signature == b"\x01\x02\x03"
        assert decoded.algorithm == "HS256"

    def test_signing_input_is_original_substring(self):
        # Whitespace in the JSON would be lost by re-serialization.
        spaced = _segment(b'{ "iss" : "ada" }')
        token = f"{HEADER}.{spaced}.{SIGNATURE}"
        assert codec.decode(token).signing_input == f"{HEADER}.{spaced}"

    def test_empty_signature_segment(self):
        assert codec.decode(f"{HEADER}.{PAYLOAD}.").signature == b""

    @pytest.mark.parametrize(
        "token",
        [
            "onlyonepart",
            "two.parts",
            "not.a.jwt.four.parts",
            "",
            "...",
        ],
    )
    def test_wrong_segment_count_or_empty(self, token):
        with pytest.raises(MalformedTokenError):
            codec.decode(token)

    def test_non_string_token(self):
        with pytest.raises(MalformedTokenError):
            codec.decode(b"a.b.c")

    def test_invalid_base64(self):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{HEADER}.pay+load.{SIGNATURE}")

    def test_invalid_signature_base64(self):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{HEADER}.{PAYLOAD}.sig/nature")

    def test_invalid_json(self):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{HEADER}.{NOT_JSON}.{SIGNATURE}")

    def test_invalid_utf8(self):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{HEADER}.{NOT_UTF8}.{SIGNATURE}")

    @pytest.mark.parametrize("raw", [b"[1,2]", b'"ada"', b"42", b"null", b"true"])
    def test_payload_must_be_object(self, raw):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{HEADER}.{_segment(raw)}.{SIGNATURE}")

    def test_header_must_be_object(self):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{_segment(b'[]')}.{PAYLOAD}.{SIGNATURE}")

    @pytest.mark.parametrize("raw", [b"{}", b'{"alg":256}', b'{"alg":null}'])
    def test_header_needs_string_alg(self, raw):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{_segment(raw)}.{PAYLOAD}.{SIGNATURE}")

    def test_rejects_non_standard_constants(self):
        with pytest.raises(MalformedTokenError):
            codec.decode(f"{HEADER}.{NAN_PAYLOAD}.{SIGNATURE}")
