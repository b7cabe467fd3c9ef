"""Tests for the compact token codec."""
import base64
import json
from urllib.parse import unquote

import pytest

from tokenauth.domain.codec import (
    TokenClaims,
    TokenHeader,
    assemble,
    decode_token,
    encode_segments,
    split_token,
    to_json,
)
from tokenauth.domain.errors import CorruptedInputError, ErrorKind, MalformedTokenError


def _b64(obj) -> str:
    return base64.b64encode(json.dumps(obj, separators=(",", ":")).encode()).decode()


def test_to_json_is_compact_and_keeps_insertion_order():
    assert to_json({"id": "x", "createdAt": 1000}) == '{"id":"x","createdAt":1000}'


def test_to_json_dumps_pydantic_models():
    claims = TokenClaims(iss="d", gen=1, exp=2, data={"a": 1})
    assert to_json(claims) == '{"iss":"d","gen":1,"exp":2,"data":{"a":1}}'


def test_to_json_rejects_unserializable_values():
    with pytest.raises(CorruptedInputError):
        to_json({"when": object()})


def test_encode_segments_joins_base64_json():
    prefix = encode_segments(TokenHeader(), {"a": 1})
    assert prefix == f'{_b64({"alg": "SHA256"})}.{_b64({"a": 1})}'


def test_encode_segments_handles_non_ascii():
    prefix = encode_segments(TokenHeader(), {"name": "Ёжик"})
    body = base64.b64decode(prefix.split(".")[1]).decode("utf-8")
    assert json.loads(body) == {"name": "Ёжик"}


def test_assemble_percent_encodes_base64_characters():
    token = assemble("aGk=.eyJ9", "ab+/=")
    assert token == "aGk%3D.eyJ9.ab%2B%2F%3D"
    assert unquote(token) == "aGk=.eyJ9.ab+/="


def test_decode_token_returns_header_body_and_signature():
    token = assemble(encode_segments({"alg": "SHA256"}, {"iss": "d", "data": [1, 2]}), "sig")
    decoded = decode_token(token)
    assert decoded.header == {"alg": "SHA256"}
    assert decoded.body == {"iss": "d", "data": [1, 2]}
    assert decoded.signature == "sig"


@pytest.mark.parametrize("token", ["", None, "abc", "a.b", 42])
def test_split_token_rejects_short_or_empty_input(token):
    with pytest.raises(MalformedTokenError) as exc:
        split_token(token)
    assert exc.value.code is ErrorKind.malformed_token


def test_decode_token_rejects_invalid_base64():
    with pytest.raises(CorruptedInputError):
        decode_token("!!!.???.sig")


def test_decode_token_rejects_invalid_json():
    not_json = base64.b64encode(b"{not json").decode()
    with pytest.raises(CorruptedInputError):
        decode_token(f"{not_json}.{not_json}.sig")


def test_decode_token_rejects_non_object_header():
    with pytest.raises(CorruptedInputError):
        decode_token(f"{_b64([1])}.{_b64({})}.sig")


def test_decode_token_rejects_bad_percent_encoding():
    with pytest.raises(CorruptedInputError):
        decode_token("%ff%fe.x.y")
