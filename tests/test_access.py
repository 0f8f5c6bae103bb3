from datetime import timedelta

import pytest

from storefront.errors import DuplicateEmail, InvalidCredential, InvalidInput, NotFound, PermissionDenied, Unauthorized
from storefront.services.access import AccessGuard
from storefront.services.identity import IdentityResolver
from storefront.utils.tokenJWT import create_access_token


@pytest.fixture()
def identity(db):
    return IdentityResolver(db)


@pytest.fixture()
def guard(db, settings):
    return AccessGuard(db, settings)


class TestIdentityResolver:
    def test_resolve_is_case_insensitive(self, identity):
        user = identity.register("Asha", "9000000001", "Asha@Example.com", "pw")

        assert user.email == "asha@example.com"
        assert identity.resolve("  ASHA@example.com ") == user.id

    def test_resolve_unknown(self, identity):
        with pytest.raises(NotFound):
            identity.resolve("nobody@example.com")

    def test_duplicate_email(self, identity):
        identity.register("Asha", "9000000001", "asha@example.com", "pw")
        with pytest.raises(DuplicateEmail):
            identity.register("Asha Two", "9000000002", "ASHA@example.com", "pw2")

    @pytest.mark.parametrize("field", ["name", "mobile", "email", "password"])
    def test_all_fields_required(self, identity, field):
        values = {"name": "Asha", "mobile": "9000000001", "email": "asha@example.com", "password": "pw"}
        values[field] = " "
        with pytest.raises(InvalidInput):
            identity.register(**values)

    def test_password_is_hashed(self, identity):
        user = identity.register("Asha", "9000000001", "asha@example.com", "pw")
        assert user.password_hash != "pw"

    def test_authenticate(self, identity):
        identity.register("Asha", "9000000001", "asha@example.com", "pw")

        assert identity.authenticate("asha@example.com", "pw").email == "asha@example.com"
        with pytest.raises(InvalidCredential):
            identity.authenticate("asha@example.com", "wrong")
        with pytest.raises(NotFound):
            identity.authenticate("nobody@example.com", "pw")


class TestAccessGuard:
    def test_require_admin(self, identity, guard):
        admin = identity.register("Admin", "9000000000", "admin@example.com", "pw", is_admin=True)
        identity.register("Asha", "9000000001", "asha@example.com", "pw")

        assert guard.require_admin("admin@example.com") == admin.id
        with pytest.raises(PermissionDenied):
            guard.require_admin("asha@example.com")
        with pytest.raises(PermissionDenied):
            guard.require_admin("ghost@example.com")

    def test_require_authenticated(self, guard, settings):
        token = create_access_token({"sub": "asha@example.com"}, settings)
        assert guard.require_authenticated(token) == "asha@example.com"

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    def test_require_authenticated_rejects_garbage(self, guard, token):
        with pytest.raises(Unauthorized):
            guard.require_authenticated(token)

    def test_expired_token(self, guard, settings):
        token = create_access_token({"sub": "asha@example.com"}, settings, expires_delta=timedelta(seconds=-5))
        with pytest.raises(Unauthorized):
            guard.require_authenticated(token)

    def test_token_signed_with_other_key(self, guard, settings):
        forged = create_access_token({"sub": "asha@example.com"}, settings.model_copy(update={"SECRET_KEY": "other"}))
        with pytest.raises(Unauthorized):
            guard.require_authenticated(forged)

    def test_token_without_subject(self, guard, settings):
        token = create_access_token({"role": "admin"}, settings)
        with pytest.raises(Unauthorized):
            guard.require_authenticated(token)

    def test_current_user_for_unknown_email(self, guard, settings):
        token = create_access_token({"sub": "ghost@example.com"}, settings)
        with pytest.raises(Unauthorized):
            guard.current_user(token)
