import pytest
from sqlalchemy.exc import IntegrityError

from backend.schemas import (
    ActivityLogCreate,
    AiAnalysisCreate,
    CaseCreate,
    CaseUpdate,
    EvidenceCreate,
    EvidenceUpdate,
    UserCreate,
    WitnessCreate,
    WitnessUpdate,
)
from backend.storage import CaseReferenceError, DuplicateCaseNumber, MemStorage, StorageError


@pytest.fixture
def case(storage):
    return storage.create_case(CaseCreate(case_number="ST-1", title="Storage case"))


def test_create_and_get_case(storage, case):
    assert storage.get_case(case.id) == case
    assert storage.get_case_by_number("ST-1") == case
    assert storage.get_case(case.id + 100) is None
    assert storage.get_all_cases() == [case]
    assert case.created_at is not None


def test_duplicate_case_number(storage, case):
    with pytest.raises(DuplicateCaseNumber):
        storage.create_case(CaseCreate(case_number="ST-1", title="Again"))

    other = storage.create_case(CaseCreate(case_number="ST-2", title="Other"))
    with pytest.raises(DuplicateCaseNumber):
        storage.update_case(other.id, CaseUpdate(case_number="ST-1"))


def test_update_case_partial_and_null_required_fields(storage, case):
    updated = storage.update_case(case.id, CaseUpdate(title=None, location="Dock 4"))
    assert updated.title == "Storage case"
    assert updated.location == "Dock 4"

    cleared = storage.update_case(case.id, CaseUpdate(location=None))
    assert cleared.location is None
    assert storage.update_case(999, CaseUpdate(title="x")) is None


def test_delete_case(storage, case):
    assert storage.delete_case(case.id) is True
    assert storage.delete_case(case.id) is False
    assert storage.get_case(case.id) is None


def test_evidence_lifecycle(storage, case):
    item = storage.create_evidence(EvidenceCreate(case_id=case.id, evidence_number="E1", type="Photo"))
    assert item.status == "collected"
    assert storage.get_case_evidence(case.id) == [item]
    assert storage.get_case_evidence(case.id + 1) == []

    updated = storage.update_evidence(item.id, EvidenceUpdate(status="archived"))
    assert updated.status == "archived"
    assert updated.evidence_number == "E1"
    assert storage.get_evidence(item.id) == updated

    with pytest.raises(CaseReferenceError):
        storage.update_evidence(item.id, EvidenceUpdate(case_id=999))
    assert storage.delete_evidence(item.id) is True
    assert storage.get_evidence(item.id) is None


def test_evidence_requires_case(storage):
    with pytest.raises(CaseReferenceError):
        storage.create_evidence(EvidenceCreate(case_id=5, evidence_number="E1", type="Photo"))


def test_witness_lifecycle(storage, case):
    witness = storage.create_witness(WitnessCreate(case_id=case.id, first_name="Ann", last_name="Lee"))
    assert witness.reliability == "unknown"
    assert witness.interview_status == "pending"

    updated = storage.update_witness(witness.id, WitnessUpdate(reliability="low"))
    assert updated.reliability == "low"
    assert storage.get_case_witnesses(case.id) == [updated]
    assert storage.update_witness(999, WitnessUpdate(notes="x")) is None
    assert storage.delete_witness(witness.id) is True

    with pytest.raises(CaseReferenceError):
        storage.create_witness(WitnessCreate(case_id=999, first_name="A", last_name="B"))


def test_activities_newest_first(storage, case):
    for n in range(3):
        storage.log_activity(ActivityLogCreate(case_id=case.id, user_id=1, activity_type="note", description=f"n{n}"))
    other = storage.create_case(CaseCreate(case_number="ST-9", title="Other"))
    storage.log_activity(ActivityLogCreate(case_id=other.id, activity_type="note", description="other"))

    assert [a.description for a in storage.get_case_activities(case.id)] == ["n2", "n1", "n0"]
    assert [a.description for a in storage.get_recent_activities(2)] == ["other", "n2"]

    with pytest.raises(CaseReferenceError):
        storage.log_activity(ActivityLogCreate(case_id=999, activity_type="note", description="x"))


def test_analyses_accumulate(storage, case):
    first = storage.save_analysis(AiAnalysisCreate(case_id=case.id, analysis_type="lead_generation", content={"leads": ["a"]}))
    second = storage.save_analysis(AiAnalysisCreate(case_id=case.id, analysis_type="lead_generation", content={"leads": ["b"]}))
    assert [a.id for a in storage.get_case_analyses(case.id)] == [second.id, first.id]
    assert storage.get_case_analyses(case.id)[0].content == {"leads": ["b"]}


def test_users_store_hashed_passwords(storage):
    user = storage.create_user(UserCreate(
        username="jdoe", password="hunter2", first_name="Jane", last_name="Doe", badge_number="B-1",
    ))
    assert user.role == "detective"
    assert "password" not in user.to_json()
    assert storage.get_user(user.id) == user
    assert storage.get_user_by_username("jdoe") == user
    assert storage.get_user_by_username("nobody") is None
    assert storage.verify_password("jdoe", "hunter2") is True
    assert storage.verify_password("jdoe", "wrong") is False
    assert storage.verify_password("nobody", "hunter2") is False


def test_seeded_memory_storage():
    storage = MemStorage(seed=True)
    case = storage.get_case_by_number("RH-2023-0142")
    assert case.priority == "high"
    assert len(storage.get_case_evidence(case.id)) == 3
    assert len(storage.get_case_witnesses(case.id)) == 3
    assert len(storage.get_case_activities(case.id)) == 4
    assert {a.analysis_type for a in storage.get_case_analyses(case.id)} == {
        "case_summary", "timeline", "relationships", "lead_generation",
    }
    assert storage.verify_password("detective", "password123")
    assert not storage.is_empty()


def test_seed_into_database(db_storage):
    from backend.seed import seed_storage

    assert db_storage.is_empty()
    case = seed_storage(db_storage)
    assert db_storage.get_case(case.id).lead_detective_id == db_storage.get_user_by_username("detective").id
    assert len(db_storage.get_case_analyses(case.id)) == 4


def test_update_case_constraint_failure_is_not_reported_as_duplicate(db_storage, monkeypatch):
    case = db_storage.create_case(CaseCreate(case_number="ST-1", title="Storage case"))

    def reject(*args, **kwargs):
        raise IntegrityError("UPDATE cases", {}, Exception("FOREIGN KEY constraint failed"))

    monkeypatch.setattr(db_storage, "_update", reject)
    with pytest.raises(StorageError) as info:
        db_storage.update_case(case.id, CaseUpdate(lead_detective_id=42))
    assert not isinstance(info.value, DuplicateCaseNumber)

    with pytest.raises(DuplicateCaseNumber):
        db_storage.update_case(case.id, CaseUpdate(case_number="ST-NEW"))
