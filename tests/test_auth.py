from datetime import timedelta

from models import storage
from models.base_model import utcnow
from models.refresh_token import RefreshToken
from models.user import User
from utils.security import REFRESH, Principal, encode_token
from tests.conftest import PASSWORD, bearer, login, make_company, make_user

COOKIE = "refreshToken"


def _register(client, **overrides):
    body = {
        "email": "ann@example.com",
        "username": "ann",
        "password": PASSWORD,
        "name": "Ann Candidate",
        "role": "candidate",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def _session_rows():
    return storage.get_session().query(RefreshToken).count()


def test_register_opens_a_session(client):
    resp = _register(client, email="  Ann@Example.com ")
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["accessToken"]
    assert body["user"]["email"] == "ann@example.com"
    assert body["user"]["role"] == "candidate"
    assert "password" not in body["user"]
    assert "passwordHash" not in body["user"] and "password_hash" not in body["user"]

    set_cookie = resp.headers["Set-Cookie"]
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "HttpOnly" in set_cookie
    assert "SameSite=Strict" in set_cookie
    assert "Max-Age=604800" in set_cookie
    assert _session_rows() == 1


def test_register_duplicate_email_conflicts_without_new_row(client):
    assert _register(client).status_code == 201
    resp = _register(client, username="someone-else")
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "CONFLICT"
    assert storage.count(User) == 1


def test_register_duplicate_username_conflicts(client):
    _register(client)
    resp = _register(client, email="other@example.com")
    assert resp.status_code == 409
    assert resp.get_json()["message"] == "Username is already taken"


def test_register_validates_input(client):
    resp = _register(client, password="short", email="not-an-email")
    assert resp.status_code == 400
    details = resp.get_json()["details"]
    assert "password" in details and "email" in details


def test_register_cannot_self_assign_admin(client):
    resp = _register(client, role="admin")
    assert resp.status_code == 400
    assert storage.count(User) == 0


def test_register_cannot_self_assign_recruiter(client):
    company = make_company()
    resp = _register(client, role="recruiter", companyId=company.id)
    assert resp.status_code == 400
    assert "role" in resp.get_json()["details"]
    assert storage.count(User) == 0


def test_register_ignores_company_link(client):
    company = make_company()
    resp = _register(client, companyId=company.id)
    assert resp.status_code == 201
    user = resp.get_json()["user"]
    assert user["role"] == "candidate"
    assert user["companyId"] is None
    assert "companySlug" not in user


def test_self_registered_account_cannot_manage_a_company(client):
    company = make_company()
    token = _register(client, companyId=company.id).get_json()["accessToken"]

    resp = client.patch("/api/companies/acme", json={"name": "Pwned"}, headers=bearer(token))
    assert resp.status_code == 403
    assert client.get("/api/companies/acme").get_json()["company"]["name"] == "Acme Corp"


def test_login_checks_a_hash_even_for_unknown_email(client, monkeypatch):
    import careers_api.auth as auth_routes

    checked = []

    def recording_verify(password, password_hash):
        checked.append(password_hash)
        return False

    monkeypatch.setattr(auth_routes, "verify_password", recording_verify)
    resp = login(client, "nobody@example.com")
    assert resp.status_code == 401
    assert len(checked) == 1
    assert checked[0].startswith("$argon2")


def test_login_failure_does_not_reveal_which_field(client):
    make_user("bob@example.com")
    wrong_password = login(client, "bob@example.com", "not-the-password")
    unknown_email = login(client, "nobody@example.com")
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json()["message"] == unknown_email.get_json()["message"] == "Invalid email or password"
    assert _session_rows() == 0


def test_login_then_me_returns_same_candidate(client):
    user = make_user("cand@example.com")
    resp = login(client, "CAND@example.com")
    assert resp.status_code == 200
    token = resp.get_json()["accessToken"]

    me = client.get("/api/auth/me", headers=bearer(token))
    assert me.status_code == 200
    data = me.get_json()["user"]
    assert data["id"] == user.id == resp.get_json()["user"]["id"]
    assert data["role"] == "candidate"
    assert "companySlug" not in data


def test_recruiter_me_carries_company_slug(client):
    company = make_company(slug="globex", name="Globex")
    make_user("rec@example.com", role="recruiter", company=company)
    resp = login(client, "rec@example.com")
    assert resp.get_json()["user"]["companySlug"] == "globex"

    me = client.get("/api/auth/me", headers=bearer(resp.get_json()["accessToken"]))
    assert me.get_json()["user"]["companySlug"] == "globex"
    assert me.get_json()["user"]["companyId"] == company.id


def test_sessions_accumulate_per_login(client):
    make_user("multi@example.com")
    login(client, "multi@example.com")
    login(client, "multi@example.com")
    assert _session_rows() == 2


def test_refresh_is_repeatable_and_does_not_rotate(client):
    make_user("r@example.com")
    login(client, "r@example.com")
    cookie = client.get_cookie(COOKIE).value

    for _ in range(3):
        resp = client.post("/api/auth/refresh")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["accessToken"]
        assert body["user"]["email"] == "r@example.com"
        assert "Set-Cookie" not in resp.headers

    assert client.get_cookie(COOKIE).value == cookie
    assert _session_rows() == 1

    me = client.get("/api/auth/me", headers=bearer(body["accessToken"]))
    assert me.status_code == 200


def test_refresh_requires_cookie(client):
    resp = client.post("/api/auth/refresh")
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_refresh_ignores_token_in_body(client):
    make_user("body@example.com")
    login(client, "body@example.com")
    token = client.get_cookie(COOKIE).value
    client.delete_cookie(COOKIE)
    resp = client.post("/api/auth/refresh", json={"refreshToken": token})
    assert resp.status_code == 401


def test_refresh_rejects_wrong_secret(client):
    user = make_user("forge@example.com")
    forged = encode_token(Principal.from_user(user), "not-the-refresh-secret", timedelta(days=7), REFRESH)
    RefreshToken.issue(user.id, forged, utcnow() + timedelta(days=7))
    client.set_cookie(COOKIE, forged)
    assert client.post("/api/auth/refresh").status_code == 401


def test_refresh_rejects_access_token_in_cookie(client):
    make_user("swap@example.com")
    access = login(client, "swap@example.com").get_json()["accessToken"]
    client.set_cookie(COOKIE, access)
    assert client.post("/api/auth/refresh").status_code == 401


def test_refresh_rejects_valid_token_without_row(client, app):
    user = make_user("orphan@example.com")
    with app.app_context():
        token = encode_token(
            Principal.from_user(user), app.config["REFRESH_TOKEN_SECRET"], timedelta(days=7), REFRESH,
            issuer=app.config["JWT_ISSUER"],
        )
    client.set_cookie(COOKIE, token)
    assert client.post("/api/auth/refresh").status_code == 401


def test_expired_row_is_rejected_and_purged(client):
    make_user("old@example.com")
    login(client, "old@example.com")
    token = client.get_cookie(COOKIE).value
    assert client.post("/api/auth/refresh").status_code == 200

    row = RefreshToken.find(token)
    row.expires_at = utcnow() - timedelta(seconds=1)
    storage.save()

    first = client.post("/api/auth/refresh")
    assert first.status_code == 401
    assert first.get_json()["message"] == "Refresh token expired"
    assert RefreshToken.find(token) is None

    second = client.post("/api/auth/refresh")
    assert second.status_code == 401
    assert RefreshToken.find(token) is None


def test_expired_signature_purges_row(client, app):
    user = make_user("sig@example.com")
    with app.app_context():
        token = encode_token(
            Principal.from_user(user), app.config["REFRESH_TOKEN_SECRET"], timedelta(seconds=-5), REFRESH,
            issuer=app.config["JWT_ISSUER"],
        )
    RefreshToken.issue(user.id, token, utcnow() + timedelta(days=1))
    client.set_cookie(COOKIE, token)

    assert client.post("/api/auth/refresh").status_code == 401
    assert RefreshToken.find(token) is None


def test_refresh_after_account_deleted(client):
    user = make_user("gone@example.com")
    login(client, "gone@example.com")
    storage.delete(storage.get(User, user.id))
    storage.save()
    assert client.post("/api/auth/refresh").status_code == 401


def test_refresh_picks_up_role_change(client, app):
    user = make_user("promo@example.com")
    login(client, "promo@example.com")
    stored = storage.get(User, user.id)
    stored.role = "admin"
    storage.save()

    body = client.post("/api/auth/refresh").get_json()
    assert body["user"]["role"] == "admin"
    users = client.get("/api/users", headers=bearer(body["accessToken"]))
    assert users.status_code == 200


def test_logout_revokes_session_and_clears_cookie(client):
    make_user("out@example.com")
    token = login(client, "out@example.com").get_json()["accessToken"]
    cookie = client.get_cookie(COOKIE).value

    resp = client.post("/api/auth/logout", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Logout successful"
    assert client.get_cookie(COOKIE) is None
    assert RefreshToken.find(cookie) is None

    # Replaying the old cookie value does not revive the session
    client.set_cookie(COOKIE, cookie)
    assert client.post("/api/auth/refresh").status_code == 401


def test_logout_is_idempotent(client):
    make_user("twice@example.com")
    token = login(client, "twice@example.com").get_json()["accessToken"]
    assert client.post("/api/auth/logout", headers=bearer(token)).status_code == 200
    assert client.post("/api/auth/logout", headers=bearer(token)).status_code == 200


def test_logout_only_ends_its_own_session(client):
    make_user("two@example.com")
    login(client, "two@example.com")
    other_cookie = client.get_cookie(COOKIE).value
    token = login(client, "two@example.com").get_json()["accessToken"]

    client.post("/api/auth/logout", headers=bearer(token))
    assert _session_rows() == 1
    assert RefreshToken.find(other_cookie) is not None


def test_logout_requires_access_token(client):
    make_user("anon@example.com")
    login(client, "anon@example.com")
    assert client.post("/api/auth/logout").status_code == 401
    assert _session_rows() == 1


def test_me_requires_valid_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers=bearer("garbage")).status_code == 401


def test_me_after_account_deleted_is_not_found(client):
    user = make_user("ghost@example.com")
    token = login(client, "ghost@example.com").get_json()["accessToken"]
    storage.delete(storage.get(User, user.id))
    storage.save()

    resp = client.get("/api/auth/me", headers=bearer(token))
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"
