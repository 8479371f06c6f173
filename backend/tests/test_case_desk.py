import pytest

from casedesk.core.constants import OpenMode, ProfileStatus, View
from casedesk.core.errors import (
    AlreadyApprovedError,
    LockConflictError,
    PermissionDeniedError,
    ProfileNotFoundError,
    StorageError,
)
from casedesk.services.case_desk import CaseDesk
from casedesk.submission.push_client import PushResult


@pytest.fixture
def alice_session(login):
    return login("alice")


@pytest.fixture
def bob_session(login):
    return login("bob")


@pytest.fixture
def created(alice_session):
    outcome = alice_session.create_profile("0900000001", "front", "back")
    assert outcome.ok, outcome.message
    return outcome.profile


def test_login_rejects_bad_password(desk):
    outcome = desk.login("alice", "nope")

    assert not outcome.ok
    assert outcome.message == "Invalid username or password"


def test_create_profile_opens_it_for_editing(alice_session, created, alice):
    assert created.viewed_by == alice.id
    assert alice_session.active_profile_id == created.id
    assert alice_session.read_only is False
    assert alice_session.view == View.COLLECTING


def test_duplicate_phone_needs_confirmation(alice_session, bob_session, created, desk):
    refused = bob_session.create_profile("0900000001", "f", "b")

    assert not refused.ok
    assert refused.view == View.CREATE
    assert refused.data["needs_confirmation"]
    assert refused.data["duplicates"] == [created.id]
    assert len(desk.profiles.list_profiles()) == 1

    confirmed = bob_session.create_profile("0900000001", "f", "b", confirm_duplicate=True)
    assert confirmed.ok
    assert len(desk.profiles.list_profiles()) == 2


def test_invalid_input_is_reported(alice_session):
    outcome = alice_session.create_profile("", "f", "b")

    assert not outcome.ok
    assert outcome.message == "Phone number is required"


def test_second_user_is_refused_while_profile_is_open(alice_session, bob_session, created, alice):
    outcome = bob_session.open_profile(created.id, OpenMode.VIEW)

    assert not outcome.ok
    assert isinstance(outcome.error, LockConflictError)
    assert "Alice Nguyen" in outcome.message
    assert outcome.view == View.LIST
    assert bob_session.desk.profiles.get_profile(created.id).viewed_by == alice.id


def test_edit_without_rights_opens_read_only(alice_session, bob_session, created):
    alice_session.close_profile()

    outcome = bob_session.open_profile(created.id, OpenMode.EDIT)

    assert outcome.ok
    assert outcome.read_only
    assert outcome.message == "You do not have permission to edit this profile."


def test_non_owner_cannot_remove_document(alice_session, bob_session, created, desk):
    added = alice_session.add_document("license", "lf", "lb")
    alice_session.close_profile()
    bob_session.open_profile(created.id, OpenMode.VIEW)
    before = desk.profiles.get_profile(created.id)

    outcome = bob_session.remove_document(added.profile.documents[0].id)

    assert not outcome.ok
    assert isinstance(outcome.error, PermissionDeniedError)
    assert desk.profiles.get_profile(created.id) == before


def test_read_only_session_cannot_add_documents(alice_session, created):
    alice_session.close_profile()
    alice_session.open_profile(created.id, OpenMode.VIEW)

    outcome = alice_session.add_document("license", "f", "b")

    assert not outcome.ok
    assert isinstance(outcome.error, PermissionDeniedError)


def test_mutation_requires_open_profile(alice_session, created):
    alice_session.close_profile()

    outcome = alice_session.add_document("license", "f", "b", profile_id=created.id)

    assert not outcome.ok
    assert isinstance(outcome.error, PermissionDeniedError)


def test_complete_releases_lock_and_returns_to_list(alice_session, created):
    alice_session.add_document("license", "lf", "lb")

    outcome = alice_session.complete()

    assert outcome.ok
    assert outcome.view == View.LIST
    assert outcome.profile.status == ProfileStatus.COMPLETED
    assert len(outcome.profile.documents) == 1
    assert not outcome.profile.is_locked
    assert alice_session.active_profile_id is None


def test_approve_from_read_only_session(alice_session, bob_session, created):
    alice_session.close_profile()
    bob_session.open_profile(created.id, OpenMode.VIEW)

    outcome = bob_session.approve(push_flag=True)

    assert outcome.ok
    assert outcome.profile.is_approved
    assert outcome.profile.is_pushed_to_external
    assert not outcome.profile.is_locked


def test_restricted_policy_blocks_plain_staff(backend, config, clock, push_client, alice_session, created):
    alice_session.close_profile()
    restricted = CaseDesk(
        backend,
        config.model_copy(update={"APPROVAL_POLICY": "restricted"}),
        push_client=push_client,
        clock=clock,
    )
    session = restricted.login("bob", "abc123@").data["session"]
    session.open_profile(created.id)

    outcome = session.approve()

    assert not outcome.ok
    assert isinstance(outcome.error, PermissionDeniedError)


def test_approved_profile_reports_already_approved(alice_session, created):
    alice_session.approve(push_flag=False)
    alice_session.open_profile(created.id, OpenMode.EDIT)

    outcome = alice_session.add_document("license", "f", "b")

    assert not outcome.ok
    assert isinstance(outcome.error, AlreadyApprovedError)


def test_removed_profile_sends_user_back_to_list(alice_session, created, desk):
    desk.profiles.remove_profile(created.id)

    outcome = alice_session.add_document("license", "f", "b")

    assert not outcome.ok
    assert isinstance(outcome.error, ProfileNotFoundError)
    assert outcome.view == View.LIST
    assert alice_session.active_profile_id is None


def test_logout_releases_every_lock(alice_session, created, desk, alice, login):
    other_tab = login("alice")
    second = other_tab.create_profile("0900000002", "f", "b").profile

    outcome = alice_session.logout()

    assert outcome.ok
    assert sorted(outcome.data["released"]) == sorted([created.id, second.id])
    assert desk.profiles.locked_by(alice.id) == []
    assert desk.resume(alice_session.token) is None


def test_force_released_lock_is_taken_back_on_next_write(alice_session, created, desk, alice):
    desk.locks.force_release(created.id)

    outcome = alice_session.add_document("license", "f", "b")

    assert outcome.ok
    assert outcome.profile.viewed_by == alice.id


def test_force_released_lock_taken_by_other_is_reported(alice_session, bob_session, created):
    alice_session.desk.locks.force_release(created.id)
    bob_session.open_profile(created.id)

    outcome = alice_session.add_document("license", "f", "b")

    assert not outcome.ok
    assert isinstance(outcome.error, LockConflictError)
    assert alice_session.active_profile_id is None


def test_quota_failure_becomes_warning(alice_session, created, desk):
    desk.backend.max_bytes = 1

    outcome = alice_session.add_document("license", "f", "b")

    assert outcome.ok
    assert outcome.warnings == ["Storage is nearly full. Please remove old profiles."]
    assert len(desk.profiles.get_profile(created.id).documents) == 1


def test_push_reports_result_without_changing_profile(alice_session, created, desk, push_client):
    before = desk.profiles.get_profile(created.id)
    push_client.result = PushResult(success=False, message="timeout")

    outcome = alice_session.push_to_external()

    assert not outcome.ok
    assert outcome.message == "Upload failed: timeout"
    assert push_client.pushed == [created.id]
    assert desk.profiles.get_profile(created.id) == before


def test_session_resumes_from_marker(desk, alice_session, backend, config, clock, push_client):
    restarted = CaseDesk(backend, config, push_client=push_client, clock=clock)

    resumed = restarted.resume(alice_session.token)

    assert resumed is not None
    assert resumed.user.username == "alice"


def test_only_admin_manages_users(alice_session, login):
    assert not alice_session.list_users().ok

    admin_session = login("admin", "admin123")
    created = admin_session.create_user("Chi Le", "chi", None, "East Ward")
    assert created.ok
    assert [u.username for u in admin_session.list_users().data["users"]] == ["admin", "alice", "bob", "chi"]

    duplicate = admin_session.create_user("Chi Le", "chi", None, "East Ward")
    assert not duplicate.ok


def test_failed_save_is_refused_without_changing_profile(alice_session, created, desk, monkeypatch):
    def broken_put(key, value):
        raise StorageError("disk I/O error")

    monkeypatch.setattr(desk.backend, "put", broken_put)

    outcome = alice_session.add_document("license", "f", "b")

    assert not outcome.ok
    assert outcome.message == "disk I/O error"
    assert desk.profiles.get_profile(created.id).documents == []


def test_resumed_session_keeps_open_profile(desk, alice_session, created, backend, config, clock, push_client):
    restarted = CaseDesk(backend, config, push_client=push_client, clock=clock)

    resumed = restarted.resume(alice_session.token)

    assert resumed.active_profile_id == created.id
    assert resumed.read_only is False
    assert resumed.add_document("license", "f", "b").ok


def test_logout_keeps_locks_when_session_cannot_end(alice_session, created, desk, alice, monkeypatch):
    def broken_end(token):
        raise StorageError("disk I/O error")

    monkeypatch.setattr(desk.sessions, "end_session", broken_end)

    outcome = alice_session.logout()

    assert not outcome.ok
    assert [p.id for p in desk.profiles.locked_by(alice.id)] == [created.id]
    assert desk.resume(alice_session.token) is not None


def test_logout_stands_when_locks_cannot_be_released(alice_session, created, desk, alice, config, monkeypatch):
    put = desk.backend.put

    def profiles_unwritable(key, value):
        if key == config.PROFILES_KEY:
            raise StorageError("disk I/O error")
        put(key, value)

    monkeypatch.setattr(desk.backend, "put", profiles_unwritable)

    outcome = alice_session.logout()

    assert outcome.ok
    assert outcome.warnings == ["disk I/O error"]
    assert outcome.data["released"] == []
    assert desk.resume(alice_session.token) is None
