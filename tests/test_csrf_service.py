import hashlib
import hmac

import pytest

from tokenauth.domain.results import CsrfToken, ErrorKind, Failure
from tokenauth.service.csrf_service import CsrfService

from .conftest import NOW_MS


def _hex(key: str, message: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha512).hexdigest()


def test_generate_signs_id_and_creation_time(csrf_service):
    token = csrf_service.generate_csrf("session-1", "ck")

    assert isinstance(token, CsrfToken)
    assert token.id == "session-1"
    assert token.created_at == NOW_MS
    assert token.csrf_token == _hex("ck", f'{{"id":"session-1","createdAt":{NOW_MS}}}')


def test_generated_token_verifies(csrf_service):
    token = csrf_service.generate_csrf("session-1", "ck")
    data = {"id": token.id, "createdAt": token.created_at}

    assert csrf_service.verify_csrf("ck", data, token.csrf_token) is True
    assert csrf_service.verify_csrf("ck", token, token.csrf_token) is True


def test_verify_known_digest():
    sig = _hex("key", '{"id":"x","createdAt":1000}')
    service = CsrfService()
    assert service.verify_csrf("key", {"id": "x", "createdAt": 1000}, sig) is True
    assert service.verify_csrf("other", {"id": "x", "createdAt": 1000}, sig) is False


@pytest.mark.parametrize(
    "data",
    [{"id": "y", "createdAt": 1000}, {"id": "x", "createdAt": 1001}],
)
def test_verify_rejects_changed_context(csrf_service, data):
    sig = _hex("key", '{"id":"x","createdAt":1000}')
    assert csrf_service.verify_csrf("key", data, sig) is False


def test_verify_rejects_non_string_token(csrf_service):
    assert csrf_service.verify_csrf("key", {"id": "x", "createdAt": 1}, None) is False


def test_verify_rejects_non_mapping_data(csrf_service, reported):
    assert csrf_service.verify_csrf("key", "x", "sig") is False
    assert reported[-1][1].code is ErrorKind.corrupted_input


def test_missing_key(csrf_service, reported):
    result = csrf_service.generate_csrf("session-1", "")

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.missing_key
    assert reported[-1][0] == "CsrfService.generate_csrf"
    assert csrf_service.verify_csrf(None, {"id": "x", "createdAt": 1}, "sig") is False


def test_mismatch_is_reported(csrf_service, reported):
    csrf_service.verify_csrf("key", {"id": "x", "createdAt": 1}, "deadbeef")
    assert reported[-1][0] == "CsrfService.verify_csrf"
    assert reported[-1][1].code is ErrorKind.signature_mismatch


@pytest.mark.parametrize("bad_id", [1.5, None, True, ["x"]], ids=["float", "none", "bool", "list"])
def test_generate_rejects_non_string_non_integer_id(csrf_service, reported, bad_id):
    result = csrf_service.generate_csrf(bad_id, "ck")

    assert not result
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.corrupted_input
    assert reported[-1][0] == "CsrfService.generate_csrf"


def test_generate_accepts_integer_id(csrf_service):
    token = csrf_service.generate_csrf(7, "ck")

    assert isinstance(token, CsrfToken)
    assert token.id == 7
    assert token.csrf_token == _hex("ck", f'{{"id":7,"createdAt":{NOW_MS}}}')
