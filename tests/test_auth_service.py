"""
Unit tests for authentication, role resolution and account management.
"""
import logging
import pytest

from app.core.exceptions import InvalidCredentials, NotFoundError, ValidationError
from app.core.permissions import Capability, RoleName
from app.services import auth_service
from app.services.cast_service import create_cast


class TestAuthenticate:
    """Every failure looks the same to the caller; the log keeps the reason."""

    def test_valid_credentials_return_user(self, db, make_user):
        user = make_user("observer", username="alice", password="pw-alice-1")
        assert auth_service.authenticate(db, "alice", "pw-alice-1").user_id == user.user_id

    @pytest.mark.parametrize(
        "username, password, reason",
        [
            ("nobody", "whatever1", "user not found"),
            ("alice", "not-her-password", "wrong password"),
        ],
    )
    def test_failures_raise_same_error(self, db, make_user, caplog, username, password, reason):
        make_user("observer", username="alice", password="pw-alice-1")
        with pytest.raises(InvalidCredentials) as excinfo:
            auth_service.authenticate(db, username, password)
        assert excinfo.value.message == "Invalid username or password."
        assert reason in caplog.text

    def test_unknown_user_still_runs_password_check(self, db, monkeypatch):
        calls = []

        def fake_verify(password, stored):
            calls.append((password, stored))
            return False

        monkeypatch.setattr(auth_service, "verify_password", fake_verify)
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate(db, "nobody", "whatever1")
        assert calls == [("whatever1", auth_service._DUMMY_HASH)]

    def test_inactive_account_is_indistinguishable(self, db, make_user, caplog):
        user = make_user("observer", username="alice", password="pw-alice-1")
        auth_service.set_user_active(db, user.user_id, False)

        with pytest.raises(InvalidCredentials) as excinfo:
            auth_service.authenticate(db, "alice", "pw-alice-1")
        assert excinfo.value.message == "Invalid username or password."
        assert "account inactive" in caplog.text

    def test_successful_login_is_logged(self, db, make_user, caplog):
        caplog.set_level(logging.INFO, logger="app.activity")
        make_user("observer", username="alice", password="pw-alice-1")
        auth_service.authenticate(db, "alice", "pw-alice-1")
        assert "User: alice | Action: Successful login" in caplog.text


class TestRoles:

    def test_roles_of_returns_assigned_roles(self, db, make_user):
        user = make_user("observer", "sampler")
        assert auth_service.roles_of(db, user.user_id) == {RoleName.OBSERVER, RoleName.SAMPLER}

    def test_user_without_roles_has_empty_set(self, db, make_user):
        user = make_user()
        assert auth_service.roles_of(db, user.user_id) == set()

    def test_build_context_resolves_permissions(self, db, make_user):
        user = make_user("bottlecop")
        ctx = auth_service.build_context(db, user.user_id)
        assert ctx.username == user.username
        assert ctx.full_name == user.full_name
        assert ctx.can(Capability.MANAGE_SAMPLING_SESSIONS)
        assert not ctx.can(Capability.LOG_CASTS)

    def test_build_context_rejects_inactive_user(self, db, make_user):
        user = make_user("observer")
        auth_service.set_user_active(db, user.user_id, False)
        with pytest.raises(InvalidCredentials):
            auth_service.build_context(db, user.user_id)

    def test_set_user_roles_replaces_the_set(self, db, make_user):
        user = make_user("observer", "sampler")
        roles = auth_service.set_user_roles(db, user.user_id, [RoleName.ANALYST])
        assert roles == {RoleName.ANALYST}
        assert auth_service.roles_of(db, user.user_id) == {RoleName.ANALYST}

    def test_assign_role_twice_is_noop(self, db, make_user):
        user = make_user("observer")
        auth_service.assign_role(db, user.user_id, RoleName.OBSERVER)
        assert auth_service.roles_of(db, user.user_id) == {RoleName.OBSERVER}


class TestAccounts:

    def test_duplicate_username_rejected(self, db, make_user):
        make_user(username="alice")
        with pytest.raises(ValidationError) as excinfo:
            make_user(username="alice")
        assert excinfo.value.fields == ["username"]

    def test_short_password_rejected(self, db):
        with pytest.raises(ValidationError) as excinfo:
            auth_service.create_user(
                db, {"username": "bob", "password": "short", "first_name": "Bob", "last_name": "B"}
            )
        assert "password" in excinfo.value.fields

    def test_list_users_includes_role_names(self, db, make_user):
        make_user("observer", "console", username="alice")
        users = auth_service.list_users(db)
        assert users[0]["username"] == "alice"
        assert users[0]["roles"] == ["console", "observer"]
        assert "password" not in users[0]

    def test_change_password(self, db, make_user):
        user = make_user("observer", username="alice", password="old-password")
        auth_service.change_password(db, user.user_id, "old-password", "new-password")
        assert auth_service.authenticate(db, "alice", "new-password").user_id == user.user_id

    def test_change_password_requires_current(self, db, make_user):
        user = make_user("observer", password="old-password")
        with pytest.raises(InvalidCredentials):
            auth_service.change_password(db, user.user_id, "not-it", "new-password")

    def test_cannot_delete_self(self, db, admin, context_for):
        with pytest.raises(ValidationError):
            auth_service.delete_user(db, admin.user_id, context_for(admin))

    def test_delete_user(self, db, admin, make_user, context_for):
        victim = make_user("sampler")
        auth_service.delete_user(db, victim.user_id, context_for(admin))
        with pytest.raises(NotFoundError):
            auth_service.set_user_active(db, victim.user_id, True)

    def test_cannot_delete_user_who_observed_casts(self, db, admin, observer, reference, context_for):
        create_cast(
            db,
            {
                "ship_id": reference["ship_id"],
                "station_id": reference["station_id"],
                "cruise_id": reference["cruise_id"],
                "cast_number": 3,
            },
            context_for(observer),
        )
        with pytest.raises(ValidationError):
            auth_service.delete_user(db, observer.user_id, context_for(admin))


class TestDefaultAdmin:

    def test_creates_admin_when_none_exists(self, db):
        assert auth_service.create_default_admin(db, "admin", "admin-password")
        user = auth_service.authenticate(db, "admin", "admin-password")
        assert auth_service.roles_of(db, user.user_id) == {RoleName.ADMIN}

    def test_existing_admin_is_left_alone(self, db, admin):
        assert auth_service.create_default_admin(db, "admin", "admin-password")
        assert [u["username"] for u in auth_service.list_users(db)] == ["chief"]
