from __future__ import annotations

from pathlib import Path

import pytest

from channel_accounts.api import create_app
from channel_accounts.models import storage
from channel_accounts.models.account import Account
from channel_accounts.utils.security import hash_password

ALICE = {
    "username": "alice",
    "email": "alice@x.com",
    "display_name": "Alice Liddell",
    "password": "secret123",
}


@pytest.fixture()
def app(tmp_path: Path):
    # A file database so worker threads in the concurrency tests share state
    app = create_app("testing", overrides={"DATABASE_URL": f"sqlite:///{tmp_path / 'accounts.db'}"})
    yield app
    storage.close()


@pytest.fixture()
def client(app):
    # No cookie jar: tests choose explicitly between header and cookie transport
    return app.test_client(use_cookies=False)


@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture()
def make_account(app):
    def _make(username="alice", email="alice@x.com", password="secret123", display_name="Alice Liddell"):
        with app.app_context():
            account = Account(
                username=username,
                email=email,
                display_name=display_name,
                password_hash=hash_password(password),
            )
            storage.create(account)
            return account.id

    return _make


@pytest.fixture()
def alice_id(make_account) -> str:
    return make_account(**ALICE)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
