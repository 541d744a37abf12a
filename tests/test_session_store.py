import pytest

from models.db_storage import ClearTokens, ReplaceTokens, RotateToken, SetFields
from models.user import User


@pytest.fixture
def make_user(storage, vault):
    def _make(username="alice", email="alice@x.com"):
        user = User(username=username, email=email, full_name="Test User", password="pw123456", vault=vault)
        return storage.create_user(user)

    return _make


def test_append_makes_token_live(sessions, make_user):
    user = make_user()
    assert sessions.is_live(user.id, "token-a") is False
    sessions.append(user.id, "token-a")
    assert sessions.is_live(user.id, "token-a") is True


def test_tokens_from_several_devices_accumulate(sessions, make_user):
    user = make_user()
    sessions.append(user.id, "phone")
    sessions.append(user.id, "laptop")
    assert sessions.is_live(user.id, "phone")
    assert sessions.is_live(user.id, "laptop")


def test_rotate_swaps_tokens(sessions, make_user):
    user = make_user()
    sessions.append(user.id, "old")
    assert sessions.rotate(user.id, "old", "new") is True
    assert sessions.is_live(user.id, "old") is False
    assert sessions.is_live(user.id, "new") is True


def test_rotate_of_dead_token_writes_nothing(sessions, make_user):
    user = make_user()
    sessions.append(user.id, "old")
    sessions.rotate(user.id, "old", "new")

    assert sessions.rotate(user.id, "old", "newer") is False
    assert sessions.is_live(user.id, "newer") is False
    assert sessions.is_live(user.id, "new") is True


def test_rotate_keeps_other_sessions(sessions, make_user):
    user = make_user()
    sessions.append(user.id, "phone")
    sessions.append(user.id, "laptop")
    sessions.rotate(user.id, "phone", "phone-2")
    assert sessions.is_live(user.id, "laptop")


def test_revoke_is_idempotent(sessions, make_user):
    user = make_user()
    sessions.append(user.id, "token-a")
    sessions.revoke(user.id, "token-a")
    sessions.revoke(user.id, "token-a")
    assert sessions.is_live(user.id, "token-a") is False


def test_revoke_all_only_touches_one_user(sessions, make_user):
    alice = make_user()
    bob = make_user("bob", "bob@x.com")
    sessions.append(alice.id, "a1")
    sessions.append(alice.id, "a2")
    sessions.append(bob.id, "b1")

    sessions.revoke_all(alice.id)

    assert not sessions.is_live(alice.id, "a1")
    assert not sessions.is_live(alice.id, "a2")
    assert sessions.is_live(bob.id, "b1")


def test_token_is_bound_to_its_user(sessions, make_user):
    alice = make_user()
    bob = make_user("bob", "bob@x.com")
    sessions.append(alice.id, "a1")
    assert sessions.is_live(bob.id, "a1") is False
    sessions.revoke(bob.id, "a1")
    assert sessions.is_live(alice.id, "a1")


def test_tokens_are_stored_as_digests(storage, sessions, make_user):
    from models.user_session import UserSession

    user = make_user()
    sessions.append(user.id, "plain-refresh-token")
    row = storage.get_session().query(UserSession).filter_by(user_id=user.id).one()
    assert row.token_digest != "plain-refresh-token"
    assert len(row.token_digest) == 64


def test_replace_tokens(storage, sessions, make_user):
    user = make_user()
    sessions.append(user.id, "a")
    assert storage.atomic_update_user(user.id, ReplaceTokens(["b", "c"])) is True
    assert not sessions.is_live(user.id, "a")
    assert sessions.is_live(user.id, "b")
    assert sessions.is_live(user.id, "c")


def test_failed_operation_rolls_back_the_whole_update(storage, sessions, make_user):
    user = make_user()
    sessions.append(user.id, "a")
    # the rotate does not apply, so the clear before it must not land either
    assert storage.atomic_update_user(user.id, ClearTokens(), RotateToken("absent", "z")) is False
    assert sessions.is_live(user.id, "a")
    assert not sessions.is_live(user.id, "z")


def test_set_fields_on_missing_user_does_not_apply(storage):
    assert storage.atomic_update_user("missing-user", SetFields(full_name="x")) is False
