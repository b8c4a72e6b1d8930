import jwt
import pytest
from fastapi import HTTPException

from portfolio.core.auth import CurrentUser, get_current_user, require_roles
from portfolio.core.config import get_settings


def _make_token(secret: str, *, aud: str | None = None, role: str | None = "ADMIN", app_role: str | None = None) -> str:
    payload = {"sub": "00000000-0000-0000-0000-000000000123", "email": "admin@test.local"}
    if role is not None:
        payload["role"] = role
    if app_role is not None:
        payload["app_metadata"] = {"role": app_role}
    if aud is not None:
        payload["aud"] = aud
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def jwt_env(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.delenv("JWT_AUDIENCE", raising=False)
    get_settings.cache_clear()


def test_missing_header_is_401():
    with pytest.raises(HTTPException) as exc:
        get_current_user(authorization=None)
    assert exc.value.status_code == 401


def test_top_level_role_is_accepted(jwt_env):
    user = get_current_user(authorization=f"Bearer {_make_token('test-secret')}")

    assert user.role == "ADMIN"
    assert user.email == "admin@test.local"


def test_app_metadata_role_is_accepted(jwt_env):
    token = _make_token("test-secret", role=None, app_role="admin")

    assert get_current_user(authorization=f"Bearer {token}").role == "ADMIN"


def test_wrong_secret_is_401(jwt_env):
    with pytest.raises(HTTPException) as exc:
        get_current_user(authorization=f"Bearer {_make_token('other-secret')}")
    assert exc.value.status_code == 401


def test_missing_role_is_403(jwt_env):
    with pytest.raises(HTTPException) as exc:
        get_current_user(authorization=f"Bearer {_make_token('test-secret', role=None)}")
    assert exc.value.status_code == 403


def test_audience_is_enforced_when_configured(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("JWT_AUDIENCE", "portfolio-admin")
    get_settings.cache_clear()

    ok = _make_token("test-secret", aud="portfolio-admin")
    assert get_current_user(authorization=f"Bearer {ok}").role == "ADMIN"

    with pytest.raises(HTTPException) as exc:
        get_current_user(authorization=f"Bearer {_make_token('test-secret', aud='other')}")
    assert exc.value.status_code == 401


def test_require_roles_rejects_other_roles():
    guard = require_roles("ADMIN")

    assert guard(CurrentUser(id="1", role="ADMIN")).role == "ADMIN"
    with pytest.raises(HTTPException) as exc:
        guard(CurrentUser(id="2", role="USER"))
    assert exc.value.status_code == 403
