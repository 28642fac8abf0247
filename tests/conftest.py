import os

# Must be set before `models` builds its engine: shared in-memory SQLite
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = ""

import pytest

from careers_api import create_app
from models import storage
from models.company import Company
from models.user import User
from utils.security import hash_password

PASSWORD = "correct-horse-9"


@pytest.fixture
def app():
    storage.reset()
    app = create_app("test")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


def make_company(slug="acme", name="Acme Corp", status="active"):
    company = Company(name=name, slug=slug, status=status)
    storage.new(company)
    storage.save()
    return company


def make_user(email, role="candidate", company=None, username=None, password=PASSWORD, name="Test User"):
    user = User(
        email=email,
        username=username or email.split("@")[0],
        password_hash=hash_password(password),
        name=name,
        role=role,
        company_id=company.id if company is not None else None,
    )
    storage.new(user)
    storage.save()
    return user


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def token_for(client, email, password=PASSWORD):
    resp = login(client, email, password)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["accessToken"]


@pytest.fixture
def admin_token(client):
    make_user("admin@example.com", role="admin", username="admin")
    return token_for(client, "admin@example.com")
