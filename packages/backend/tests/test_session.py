"""
Tests for SessionManager and CredentialStore.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from repogallery.core import config
from repogallery.core.errors import UnauthorizedError
from repogallery.models.session import Credential
from repogallery.services.session import CredentialStore, SessionManager


@pytest.fixture
def store(tmp_path):
    return CredentialStore(tmp_path / "credential.json")


def make_session(store, backend, **kwargs):
    return SessionManager(store, client_factory=lambda cred: backend, **kwargs)


class TestCredentialStore:
    def test_round_trip(self, store):
        cred = Credential(
            token="t",
            repo="me/pics",
            mode="proxy",
            expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )
        store.save(cred)
        assert store.load() == cred

    def test_missing_and_corrupt(self, store):
        assert store.load() is None
        store.path.write_text("{not json", encoding="utf-8")
        assert store.load() is None

    def test_clear_is_idempotent(self, store):
        store.clear()
        store.save(Credential(token="t", repo="r"))
        store.clear()
        assert not store.path.exists()


class TestSignIn:
    def test_token_sign_in_verifies_and_loads(self, store, backend):
        sm = make_session(store, backend)
        gallery = asyncio.run(sm.sign_in_with_token("tok", "me/pics"))
        assert sm.state == "authenticated"
        assert backend.calls[0] == ("verify", "")
        assert gallery.index.folders == ["empty", "photos"]
        assert store.load().token == "tok"

    def test_rejected_token_is_not_trusted(self, store, backend):
        backend.fail("verify", "", UnauthorizedError("Bad credentials"))
        sm = make_session(store, backend)
        with pytest.raises(UnauthorizedError):
            asyncio.run(sm.sign_in_with_token("bad", "me/pics"))
        assert sm.state == "unauthenticated"
        assert sm.gallery is None
        assert store.load() is None

    def test_password_sign_in_uses_proxy_session(self, store, backend, monkeypatch):
        monkeypatch.setattr(config, "PROXY_URL", "https://proxy.test/api")
        monkeypatch.setattr(config, "PROXY_LOGIN_URL", "https://proxy.test/login")
        seen = {}

        async def fake_login(url, user, password):
            seen["args"] = (url, user, password)
            return "jwt-token"

        sm = make_session(store, backend, login=fake_login)
        asyncio.run(sm.sign_in_with_password("ann", "pw"))
        assert seen["args"] == ("https://proxy.test/login", "ann", "pw")
        assert sm.credential.mode == "proxy"
        assert sm.credential.token == "jwt-token"
        assert sm.credential.expires_at > datetime.now(timezone.utc)


class TestRestore:
    def test_valid_stored_credential_is_verified(self, store, backend):
        store.save(Credential(token="tok", repo="me/pics"))
        sm = make_session(store, backend)
        assert asyncio.run(sm.restore()) is True
        assert sm.state == "authenticated"
        assert backend.count("verify") == 1

    def test_failed_verification_discards_credential(self, store, backend):
        backend.fail("verify", "", UnauthorizedError("Bad credentials"))
        store.save(Credential(token="old", repo="me/pics"))
        sm = make_session(store, backend)
        assert asyncio.run(sm.restore()) is False
        assert sm.state == "unauthenticated"
        assert not store.path.exists()

    def test_expired_credential_skips_verification(self, store, backend):
        store.save(
            Credential(
                token="old",
                repo="me/pics",
                expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
            )
        )
        sm = make_session(store, backend)
        assert asyncio.run(sm.restore()) is False
        assert backend.calls == []
        assert not store.path.exists()

    def test_nothing_stored(self, store, backend):
        sm = make_session(store, backend)
        assert asyncio.run(sm.restore()) is False
        assert sm.state == "unauthenticated"


class TestInvalidation:
    def test_unauthorized_during_operation_forces_logout(self, store, backend):
        backend.fail("write", "trip/.keep", UnauthorizedError("token revoked"))
        sm = make_session(store, backend)

        async def scenario():
            gallery = await sm.sign_in_with_token("tok", "me/pics")
            with pytest.raises(UnauthorizedError):
                await gallery.folders.create("trip")

        asyncio.run(scenario())
        assert sm.state == "unauthenticated"
        assert sm.reason == "rejected"
        assert sm.gallery is None
        assert not store.path.exists()
        with pytest.raises(UnauthorizedError):
            sm.require_gallery()

    def test_session_expiry_is_noticed_on_access(self, store, backend):
        sm = make_session(store, backend)

        async def scenario():
            await sm.authenticate(
                Credential(
                    token="jwt",
                    mode="proxy",
                    expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
                )
            )

        asyncio.run(scenario())
        sm.credential.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert sm.gallery is None
        assert sm.reason == "expired"

    def test_logout_closes_client(self, store, backend):
        sm = make_session(store, backend)

        async def scenario():
            await sm.sign_in_with_token("tok", "me/pics")
            await sm.logout()

        asyncio.run(scenario())
        assert backend.closed
        assert sm.state == "unauthenticated"
        assert sm.reason == "logout"
        assert not store.path.exists()
