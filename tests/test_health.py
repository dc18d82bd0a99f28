"""
Password, token and error helper tests.
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from travelcrm.auth.jwt import create_access_token, get_token_from_request, verify_token
from travelcrm.errors import InvalidArgument, NotFound, Unavailable
from travelcrm.utils.audit import get_client_ip
from travelcrm.utils.password import hash_password, validate_password, verify_password


def test_password_hashing():
    """Test password hashing utility."""
    password = "test_password_123"
    hashed = hash_password(password)

    # Hash should be different from the plain text
    assert hashed != password

    # Verification should work
    assert verify_password(password, hashed)

    # Wrong password should fail
    assert not verify_password("wrong_password", hashed)


def test_verify_against_garbage_hash():
    assert not verify_password("secret123", "not-a-hash")


@pytest.mark.parametrize("password", ["", "12345", None])
def test_short_password_rejected(password):
    with pytest.raises(InvalidArgument) as exc_info:
        validate_password(password)
    assert exc_info.value.message == "كلمة المرور يجب أن تكون 6 أحرف على الأقل"


def test_six_characters_accepted():
    validate_password("123456")


def test_token_roundtrip():
    token = create_access_token(7, "sales")
    assert verify_token(token) == {"user_id": 7, "role": "sales"}


def test_expired_token():
    token = create_access_token(7, "sales", expires_delta=timedelta(seconds=-1))
    assert verify_token(token) is None


def test_tampered_token():
    token = create_access_token(7, "sales")
    assert verify_token(token[:-2] + "xx") is None


def _request(cookies=None, headers=None):
    return SimpleNamespace(cookies=cookies or {}, headers=headers or {})


def test_token_from_cookie_first():
    request = _request({"access_token": "cookie"}, {"Authorization": "Bearer header"})
    assert get_token_from_request(request) == "cookie"


def test_token_from_bearer_header():
    assert get_token_from_request(_request(headers={"Authorization": "Bearer abc"})) == "abc"
    assert get_token_from_request(_request(headers={"Authorization": "Basic abc"})) is None
    assert get_token_from_request(_request()) is None


def test_error_payloads():
    assert NotFound().to_dict() == {"detail": "العنصر غير موجود", "code": "not_found"}
    assert NotFound().status_code == 404
    assert Unavailable().status_code == 503
    assert InvalidArgument("x", field="salary").context == {"field": "salary"}


def test_database_url_normalised():
    from travelcrm.config import Settings

    config = Settings(database_url="postgres://user:pass@db:5432/travelcrm")
    assert config.database_url == "postgresql+asyncpg://user:pass@db:5432/travelcrm"
    assert config.database_url_sync == "postgresql+psycopg2://user:pass@db:5432/travelcrm"


def test_client_ip_prefers_forwarded_header():
    client = SimpleNamespace(host="10.0.0.5")
    forwarded = SimpleNamespace(headers={"X-Forwarded-For": "41.33.1.2, 10.0.0.1"}, client=client)
    direct = SimpleNamespace(headers={}, client=client)
    unknown = SimpleNamespace(headers={}, client=None)

    assert get_client_ip(forwarded) == "41.33.1.2"
    assert get_client_ip(direct) == "10.0.0.5"
    assert get_client_ip(unknown) is None
