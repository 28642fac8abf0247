import logging
import runpy
import sys
from pathlib import Path

import pytest

from careers_api import create_app
from models import storage
from models.user import User
from tests.conftest import PASSWORD, make_company

CREATE_USER = Path(__file__).resolve().parents[1] / "scripts" / "create_user.py"


def test_factory_leaves_root_logging_alone(monkeypatch):
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: pytest.fail("create_app configured root logging"))
    app = create_app("test")
    assert app.logger.level == getattr(logging, app.config["LOG_LEVEL"].upper())


@pytest.fixture
def create_user_main(app, monkeypatch):
    main = runpy.run_path(str(CREATE_USER))["main"]

    def run(*args):
        monkeypatch.setattr(sys, "argv", ["create_user.py", *args])
        return main()

    return run


def _admin_args(email="root@example.com", username="root"):
    return ["--email", email, "--username", username, "--name", "Platform Admin", "--password", PASSWORD,
            "--role", "admin"]


def test_create_user_script_bootstraps_admin(create_user_main, capsys, client):
    assert create_user_main(*_admin_args()) == 0
    assert "Created user" in capsys.readouterr().out

    stored = storage.first(User, email="root@example.com")
    assert stored.role == "admin"
    resp = client.post("/api/auth/login", json={"email": "root@example.com", "password": PASSWORD})
    assert resp.status_code == 200


def test_create_user_script_links_recruiter_to_company(create_user_main):
    company = make_company()
    args = ["--email", "rec@example.com", "--username", "rec", "--name", "Rec", "--password", PASSWORD,
            "--role", "recruiter", "--company-id", company.id]
    assert create_user_main(*args) == 0
    assert storage.first(User, email="rec@example.com").company_id == company.id


def test_create_user_script_reports_invalid_input(create_user_main, capsys):
    args = ["--email", "rec@example.com", "--username", "rec", "--name", "Rec", "--password", PASSWORD,
            "--role", "recruiter"]
    assert create_user_main(*args) == 1
    assert "Invalid input" in capsys.readouterr().err
    assert storage.count(User) == 0


def test_create_user_script_reports_conflict(create_user_main, capsys):
    assert create_user_main(*_admin_args()) == 0
    assert create_user_main(*_admin_args(username="other")) == 1
    assert "User with this email already exists" in capsys.readouterr().err
