import pytest

from casedesk.core.constants import ProfileStatus
from casedesk.core.errors import (
    AlreadyApprovedError,
    DocumentNotFoundError,
    InvalidInputError,
)
from casedesk.workflow.lifecycle import LifecycleController


@pytest.fixture
def profile(lifecycle, alice):
    return lifecycle.create_profile("0900000001", "front", "back", alice)


def test_create_profile_defaults(profile, profiles, alice):
    assert profile.status == ProfileStatus.COLLECTING
    assert profile.documents == []
    assert profile.collector_id == alice.id
    assert profile.collector_name == alice.full_name
    assert not profile.is_locked
    assert profiles.list_profiles()[0] == profile


def test_new_profiles_go_first_and_phone_is_trimmed(lifecycle, profiles, profile, bob):
    newer = lifecycle.create_profile("  0900000001 ", "f", "b", bob)

    assert newer.phone_number == "0900000001"
    assert [p.id for p in profiles.list_profiles()] == [newer.id, profile.id]
    assert len(lifecycle.duplicate_phone_profiles("0900000001")) == 2


@pytest.mark.parametrize("phone, front, back", [(" ", "f", "b"), ("09", "", "b"), ("09", "f", "")])
def test_create_profile_requires_phone_and_both_id_images(lifecycle, alice, phone, front, back):
    with pytest.raises(InvalidInputError):
        lifecycle.create_profile(phone, front, back, alice)


def test_scenario_add_license_then_complete(lifecycle, profile):
    document = lifecycle.new_document("license", "lf", "lb")
    lifecycle.add_document(profile, document)

    completed = lifecycle.complete(profile.id)

    assert completed.status == ProfileStatus.COMPLETED
    assert len(completed.documents) == 1
    assert completed.documents[0].type_name == "Driving licence"


def test_document_changes_bump_updated_at(lifecycle, profile):
    added = lifecycle.add_document(profile, lifecycle.new_document("registration", "f", "b"))
    removed = lifecycle.remove_document(profile, added.documents[0].id)

    assert profile.updated_at < added.updated_at < removed.updated_at
    assert removed.documents == []


def test_new_document_validation(lifecycle):
    with pytest.raises(InvalidInputError):
        lifecycle.new_document("license", "", "b")
    with pytest.raises(InvalidInputError):
        lifecycle.new_document("passport", "f", "b")


def test_remove_unknown_document(lifecycle, profile):
    with pytest.raises(DocumentNotFoundError):
        lifecycle.remove_document(profile, "nope")


def test_complete_twice_is_noop(lifecycle, profile):
    first = lifecycle.complete(profile)

    assert lifecycle.complete(profile) == first


def test_approve_sets_terminal_state(lifecycle, profile):
    approved = lifecycle.approve(profile, push_flag=True)

    assert approved.is_approved
    assert approved.is_pushed_to_external
    assert approved.status == ProfileStatus.COMPLETED
    assert approved.approved_at is not None


def test_second_approve_keeps_flag_and_timestamp(lifecycle, profile):
    first = lifecycle.approve(profile, push_flag=True)
    second = lifecycle.approve(profile, push_flag=False)

    assert second.is_pushed_to_external is True
    assert second.approved_at == first.approved_at
    assert second == first


def test_overwrite_policy_rewrites_flag_only(profiles, config, clock, profile):
    controller = LifecycleController(profiles, config.model_copy(update={"PUSH_FLAG_POLICY": "overwrite"}), clock)
    first = controller.approve(profile, push_flag=True)
    second = controller.approve(profile, push_flag=False)

    assert second.is_pushed_to_external is False
    assert second.approved_at == first.approved_at


def test_approved_profile_rejects_every_change(lifecycle, profile):
    with_doc = lifecycle.add_document(profile, lifecycle.new_document("license", "f", "b"))
    lifecycle.approve(profile, push_flag=False)

    for _ in range(2):
        with pytest.raises(AlreadyApprovedError):
            lifecycle.add_document(profile, lifecycle.new_document("other", "f", "b"))
        with pytest.raises(AlreadyApprovedError):
            lifecycle.remove_document(profile, with_doc.documents[0].id)
    with pytest.raises(AlreadyApprovedError):
        lifecycle.complete(profile)


def test_lifecycle_never_touches_lock(lifecycle, locks, profile, alice):
    locks.acquire(profile, alice)

    updated = lifecycle.add_document(profile, lifecycle.new_document("insurance", "f", "b"))
    approved = lifecycle.approve(updated, push_flag=False)

    assert approved.viewed_by == alice.id
    assert approved.viewed_by_name == alice.full_name
