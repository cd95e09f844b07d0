from __future__ import annotations

import dataclasses

import pytest

from src.marketplace_backend.marketplace_backend.core.enums import UserRole, UserStatus
from src.marketplace_backend.marketplace_backend.core.exceptions import (
    AccountInactiveError,
    AlreadyExistsError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    OperationCancelledError,
    PersistenceError,
    QueryTimeoutError,
)
from src.marketplace_backend.marketplace_backend.users.model import CreateUserRequest, UpdateUserRequest
from src.marketplace_backend.marketplace_backend.users.service import hash_password, verify_password


def _create_req(email="gamer@example.com", password="s3cret-pass", role=UserRole.GAMER, phone=None):
    return CreateUserRequest(
        email=email,
        password=password,
        first_name="Ada",
        last_name="Lovelace",
        role=role,
        phone=phone,
    )


def test_create_user_is_active_and_password_is_hashed(user_service):
    user = user_service.create_user(_create_req())

    assert user.status == UserStatus.ACTIVE
    assert user.password_hash
    assert user.password_hash != "s3cret-pass"
    assert user.password_hash.startswith("scrypt:32768:8:1$")
    assert verify_password(user.password_hash, "s3cret-pass")


def test_create_then_get_by_id_round_trips_request_fields(user_service):
    created = user_service.create_user(_create_req(role=UserRole.ADMIN))
    fetched = user_service.get_user_by_id(created.user_id)

    assert fetched.email == "gamer@example.com"
    assert fetched.first_name == "Ada"
    assert fetched.last_name == "Lovelace"
    assert fetched.role == UserRole.ADMIN
    assert fetched.status == UserStatus.ACTIVE


def test_create_user_with_same_email_twice_fails(user_service):
    user_service.create_user(_create_req())

    with pytest.raises(AlreadyExistsError):
        user_service.create_user(_create_req(password="another-pass"))


def test_unique_constraint_violation_is_reported_as_already_exists(monkeypatch, user_service, users_repo, make_user):
    # Simulates the concurrent case: the pre-check saw nothing, the insert hit the unique key.
    existing = make_user("race@example.com")
    monkeypatch.setattr(users_repo, "get_by_email", lambda email: None)

    with pytest.raises(AlreadyExistsError):
        user_service.create_user(_create_req(email=existing.email))


def test_create_user_blank_phone_is_stored_as_absent(user_service):
    user = user_service.create_user(_create_req(phone=""))
    assert user.phone is None

    other = user_service.create_user(_create_req(email="p@example.com", phone="+15551234567"))
    assert other.phone == "+15551234567"


def test_get_user_not_found(user_service):
    with pytest.raises(NotFoundError):
        user_service.get_user_by_id("2f1c0c8e-7a5d-4a57-9d62-3f3a2a9f0b11")

    with pytest.raises(NotFoundError):
        user_service.get_user_by_email("nobody@example.com")


def test_get_user_by_email(user_service, make_user):
    u = make_user("find.me@example.com")
    assert user_service.get_user_by_email("find.me@example.com").user_id == u.user_id


def test_update_user_keeps_phone_and_avatar_when_not_supplied(user_service, make_user):
    u = make_user("upd@example.com", phone="+15550000000", avatar_url="https://cdn.example.com/a.png")

    updated = user_service.update_user(u.user_id, UpdateUserRequest(first_name="New", last_name="Name", phone=""))

    assert updated.first_name == "New"
    assert updated.last_name == "Name"
    assert updated.phone == "+15550000000"
    assert updated.avatar_url == "https://cdn.example.com/a.png"


def test_update_user_overwrites_phone_when_supplied(user_service, make_user):
    u = make_user("upd2@example.com", phone="+15550000000")

    updated = user_service.update_user(
        u.user_id,
        UpdateUserRequest(first_name="Ada", last_name="King", phone="+15559999999", avatar_url="https://x.io/b.png"),
    )

    assert updated.phone == "+15559999999"
    assert updated.avatar_url == "https://x.io/b.png"


def test_update_user_never_touches_role_status_email_password(user_service, make_user):
    u = make_user("fixed@example.com", role=UserRole.ADMIN, status=UserStatus.SUSPENDED, password_hash="h$a$sh")

    updated = user_service.update_user(u.user_id, UpdateUserRequest(first_name="Zed", last_name="Zulu"))

    assert (updated.email, updated.role, updated.status, updated.password_hash) == (
        "fixed@example.com",
        UserRole.ADMIN,
        UserStatus.SUSPENDED,
        "h$a$sh",
    )


def test_update_user_not_found(user_service):
    with pytest.raises(NotFoundError):
        user_service.update_user("missing", UpdateUserRequest(first_name="Ab", last_name="Cd"))


def test_update_user_status_changes_only_status(user_service, users_repo, make_user):
    u = make_user("status@example.com", phone="+15551112222")

    user_service.update_user_status(u.user_id, UserStatus.INACTIVE)

    after = users_repo.by_id[u.user_id]
    assert after.status == UserStatus.INACTIVE
    assert after == dataclasses.replace(u, status=UserStatus.INACTIVE)


def test_update_user_status_allows_any_transition(user_service, users_repo, make_user):
    u = make_user("any@example.com", status=UserStatus.INACTIVE)

    user_service.update_user_status(u.user_id, UserStatus.SUSPENDED)
    user_service.update_user_status(u.user_id, UserStatus.ACTIVE)

    assert users_repo.by_id[u.user_id].status == UserStatus.ACTIVE


def test_update_user_status_not_found(user_service, users_repo):
    with pytest.raises(NotFoundError):
        user_service.update_user_status("missing", UserStatus.INACTIVE)
    assert "update_status" not in users_repo.calls


def test_list_users_second_page_returns_ranks_11_to_20(user_service, make_user):
    created = [make_user(f"u{i:02d}@example.com") for i in range(25)]
    newest_first = list(reversed(created))

    page = user_service.list_users(page=2, limit=10)

    assert [u.user_id for u in page] == [u.user_id for u in newest_first[10:20]]


def test_list_users_role_filter_ignores_status(user_service, make_user):
    make_user("g@example.com", role=UserRole.GAMER)
    a1 = make_user("a1@example.com", role=UserRole.ADMIN)
    a2 = make_user("a2@example.com", role=UserRole.ADMIN, status=UserStatus.INACTIVE)
    make_user("s@example.com", role=UserRole.SUPER_ADMIN)

    admins = user_service.list_users(role=UserRole.ADMIN, page=1, limit=10)

    assert {u.user_id for u in admins} == {a1.user_id, a2.user_id}
    assert user_service.count_users(role=UserRole.ADMIN) == 2


def test_list_users_empty_is_not_an_error(user_service):
    assert user_service.list_users(status=UserStatus.SUSPENDED, page=3, limit=10) == []
    assert user_service.count_users() == 0


def test_login_success(user_service):
    created = user_service.create_user(_create_req())

    user = user_service.login("gamer@example.com", "s3cret-pass")

    assert user.user_id == created.user_id


def test_login_wrong_password_and_unknown_email_are_the_same_error(user_service):
    user_service.create_user(_create_req())

    with pytest.raises(InvalidCredentialsError) as wrong_pw:
        user_service.login("gamer@example.com", "not-the-password")
    with pytest.raises(InvalidCredentialsError) as unknown:
        user_service.login("ghost@example.com", "s3cret-pass")

    assert type(wrong_pw.value) is type(unknown.value)
    assert str(wrong_pw.value) == str(unknown.value)


def test_login_inactive_account_with_correct_password(user_service):
    created = user_service.create_user(_create_req())
    user_service.update_user_status(created.user_id, UserStatus.INACTIVE)

    with pytest.raises(AccountInactiveError):
        user_service.login("gamer@example.com", "s3cret-pass")


def test_login_inactive_account_with_wrong_password_reports_credentials(user_service, make_user):
    make_user("sus@example.com", status=UserStatus.SUSPENDED, password_hash=hash_password("right-password"))

    with pytest.raises(InvalidCredentialsError):
        user_service.login("sus@example.com", "wrong-password")


def test_login_with_malformed_stored_hash_is_invalid_credentials(user_service, make_user):
    make_user("legacy@example.com", password_hash="CHANGE_ME")

    with pytest.raises(InvalidCredentialsError):
        user_service.login("legacy@example.com", "CHANGE_ME")


def test_persistence_failure_surfaces_as_internal(user_service, users_repo):
    users_repo.fail_with = PersistenceError("connection refused to db:3306")

    with pytest.raises(InternalError) as exc:
        user_service.get_user_by_id("any")

    assert "connection refused" not in str(exc.value)
    assert isinstance(exc.value.__cause__, PersistenceError)


def test_create_user_lookup_failure_is_internal(user_service, users_repo):
    users_repo.fail_with = PersistenceError("boom")

    with pytest.raises(InternalError):
        user_service.create_user(_create_req())


def test_login_lookup_failure_is_internal_not_credentials(user_service, users_repo):
    users_repo.fail_with = PersistenceError("boom")

    with pytest.raises(InternalError):
        user_service.login("gamer@example.com", "s3cret-pass")


def test_statement_timeout_surfaces_as_cancelled(user_service, users_repo):
    users_repo.fail_with = QueryTimeoutError("maximum statement execution time exceeded")

    with pytest.raises(OperationCancelledError):
        user_service.list_users(page=1, limit=10)
