from urllib.parse import unquote

from runner.cli import parse_args
from runner.client import tamper_signature


def test_tamper_signature_only_touches_signature():
    token = "aGVhZA%3D%3D.Ym9keQ%3D%3D.AbC%2B"
    tampered = tamper_signature(token)

    assert tampered != token
    assert tampered.rsplit(".", 1)[0] == token.rsplit(".", 1)[0]
    assert unquote(tampered).split(".")[2] == "BbC+"


def test_tamper_signature_changes_leading_a():
    assert tamper_signature("h.p.Xyz").endswith(".Ayz")
    assert tamper_signature("h.p.Ayz").endswith(".Byz")


def test_parse_args_defaults(monkeypatch):
    monkeypatch.delenv("BASE_URL", raising=False)
    args = parse_args([])
    assert args.base_url == "http://127.0.0.1:8000"
    assert args.user_id == "smoke-user"
    assert args.timeout == 20.0
