from datetime import timedelta

import pytest

from auth import AuthService, hash_password, sign_token, verify_password, verify_token
from conftest import run
from errors import AuthenticationError, ConflictError
from models import UserRegister

SECRET = "test-secret"


class TestPasswords:

    def test_hash_round_trip(self):
        hashed = hash_password("admin123")
        assert hashed != "admin123"
        assert verify_password("admin123", hashed)
        assert not verify_password("admin124", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_garbage_hash_never_matches(self):
        assert not verify_password("x", "")
        assert not verify_password("x", "nodollar")


class TestTokens:

    def test_sign_and_verify(self):
        token = sign_token({"id": "u1", "role": "customer", "name": "Alice"}, SECRET, timedelta(hours=1))
        payload = verify_token(token, SECRET)
        assert payload["id"] == "u1"
        assert payload["role"] == "customer"

    def test_expired_token(self):
        token = sign_token({"id": "u1"}, SECRET, timedelta(seconds=-5))
        with pytest.raises(AuthenticationError, match="expired"):
            verify_token(token, SECRET)

    def test_wrong_secret(self):
        token = sign_token({"id": "u1"}, SECRET, timedelta(hours=1))
        with pytest.raises(AuthenticationError):
            verify_token(token, "other-secret")

    def test_tampered_payload(self):
        token = sign_token({"id": "u1", "role": "customer"}, SECRET, timedelta(hours=1))
        forged = sign_token({"id": "u1", "role": "admin"}, "guess", timedelta(hours=1))
        tampered = forged.split(".")[0] + "." + token.split(".")[1]
        with pytest.raises(AuthenticationError):
            verify_token(tampered, SECRET)

    def test_malformed(self):
        with pytest.raises(AuthenticationError):
            verify_token("not-a-token", SECRET)


class TestAuthService:

    def test_register_and_login(self, db):
        auth = AuthService(db, SECRET)
        run(auth.register_customer(UserRegister(name="Alice", email="alice@mystore.com", password="pw")))

        response = run(auth.login_customer("alice@mystore.com", "pw"))
        identity = auth.identify(response["token"])

        assert identity.role == "customer"
        assert identity.name == "Alice"
        assert "password" not in response["user"]

    def test_duplicate_email(self, db):
        auth = AuthService(db, SECRET)
        data = UserRegister(name="Alice", email="alice@mystore.com", password="pw")
        run(auth.register_customer(data))
        with pytest.raises(ConflictError):
            run(auth.register_customer(data))

    def test_bad_credentials(self, db):
        auth = AuthService(db, SECRET)
        run(auth.register_customer(UserRegister(name="Alice", email="alice@mystore.com", password="pw")))
        with pytest.raises(AuthenticationError):
            run(auth.login_customer("alice@mystore.com", "wrong"))
        with pytest.raises(AuthenticationError):
            run(auth.login_customer("bob@mystore.com", "pw"))

    def test_create_admin_is_idempotent(self, db):
        auth = AuthService(db, SECRET)
        assert run(auth.create_admin("store_manager", "admin@mystore.com", "admin123"))
        assert not run(auth.create_admin("store_manager", "admin@mystore.com", "admin123"))

        response = run(auth.login_admin("admin@mystore.com", "admin123"))
        assert auth.identify(response["token"]).role == "admin"

    def test_customer_cannot_log_in_as_admin(self, db):
        auth = AuthService(db, SECRET)
        run(auth.register_customer(UserRegister(name="Alice", email="alice@mystore.com", password="pw")))
        with pytest.raises(AuthenticationError):
            run(auth.login_admin("alice@mystore.com", "pw"))
