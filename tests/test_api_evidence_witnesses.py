import pytest


@pytest.fixture
def evidence_payload(created_case):
    return {
        "caseId": created_case["id"],
        "evidenceNumber": "DT-2024-0001-E001",
        "type": "Physical",
        "description": "Pry bar recovered near the loading dock",
        "status": "collected",
        "collectedBy": "Ofc. Lee",
        "collectedAt": "2024-03-02T06:00:00",
    }


@pytest.fixture
def witness_payload(created_case):
    return {
        "caseId": created_case["id"],
        "firstName": "Maria",
        "lastName": "Lopez",
        "contactPhone": "(555) 010-2020",
        "relationship": "Night guard",
        "reliability": "high",
    }


def _activity_count(client, case_id):
    return len(client.get(f"/api/cases/{case_id}/activities").json())


def test_create_and_list_evidence(client, created_case, evidence_payload):
    resp = client.post("/api/evidence", json=evidence_payload)
    assert resp.status_code == 201
    item = resp.json()
    assert item["evidenceNumber"] == "DT-2024-0001-E001"
    assert item["status"] == "collected"

    listed = client.get(f"/api/cases/{created_case['id']}/evidence").json()
    assert [e["id"] for e in listed] == [item["id"]]


def test_evidence_requires_existing_case(client, evidence_payload):
    resp = client.post("/api/evidence", json={**evidence_payload, "caseId": 999})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid evidence data"


def test_evidence_rejects_unknown_status(client, evidence_payload):
    resp = client.post("/api/evidence", json={**evidence_payload, "status": "lost"})
    assert resp.status_code == 400


def test_update_evidence(client, evidence_payload):
    item = client.post("/api/evidence", json=evidence_payload).json()
    resp = client.put(f"/api/evidence/{item['id']}", json={"status": "in_lab", "notes": "Sent for prints"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "in_lab"
    assert body["notes"] == "Sent for prints"
    assert body["description"] == evidence_payload["description"]


def test_update_missing_evidence_returns_404(client, created_case):
    resp = client.put("/api/evidence/9999", json={"status": "processed"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "Evidence not found"}


def test_update_evidence_invalid_id(client):
    resp = client.put("/api/evidence/abc", json={"status": "processed"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid evidence ID"}


def test_evidence_mutations_log_one_activity_each(client, created_case, evidence_payload):
    case_id = created_case["id"]
    before = _activity_count(client, case_id)

    item = client.post("/api/evidence", json=evidence_payload).json()
    assert _activity_count(client, case_id) == before + 1

    client.put(f"/api/evidence/{item['id']}", json={"status": "processed"})
    activities = client.get(f"/api/cases/{case_id}/activities").json()
    assert len(activities) == before + 2
    assert activities[0]["activityType"] == "evidence_updated"
    assert activities[1]["activityType"] == "evidence_added"
    assert activities[1]["description"] == "Evidence DT-2024-0001-E001 (Physical) was added to the case."


def test_create_and_update_witness(client, created_case, witness_payload):
    resp = client.post("/api/witnesses", json=witness_payload)
    assert resp.status_code == 201
    witness = resp.json()
    assert witness["interviewStatus"] == "pending"
    assert witness["reliability"] == "high"

    updated = client.put(f"/api/witnesses/{witness['id']}", json={"interviewStatus": "completed"})
    assert updated.status_code == 200
    assert updated.json()["interviewStatus"] == "completed"
    assert updated.json()["firstName"] == "Maria"

    listed = client.get(f"/api/cases/{created_case['id']}/witnesses").json()
    assert len(listed) == 1
    assert listed[0]["interviewStatus"] == "completed"


def test_witness_validation(client, witness_payload):
    assert client.post("/api/witnesses", json={**witness_payload, "reliability": "shaky"}).status_code == 400
    assert client.post("/api/witnesses", json={**witness_payload, "caseId": 404}).status_code == 400
    missing_name = {k: v for k, v in witness_payload.items() if k != "lastName"}
    assert client.post("/api/witnesses", json=missing_name).status_code == 400


def test_update_missing_witness_returns_404(client):
    assert client.put("/api/witnesses/77", json={"notes": "x"}).status_code == 404


def test_witness_mutations_log_one_activity_each(client, created_case, witness_payload):
    case_id = created_case["id"]
    before = _activity_count(client, case_id)

    witness = client.post("/api/witnesses", json=witness_payload).json()
    client.put(f"/api/witnesses/{witness['id']}", json={"notes": "Saw a van"})

    activities = client.get(f"/api/cases/{case_id}/activities").json()
    assert len(activities) == before + 2
    assert activities[0]["description"] == "Witness Maria Lopez was updated."
    assert activities[1]["description"] == "Witness Maria Lopez was added to the case."


def test_recent_activities_across_cases(client, created_case):
    other = client.post("/api/cases", json={"caseNumber": "DT-9", "title": "Other"}).json()
    recent = client.get("/api/activities/recent", params={"limit": 1}).json()
    assert len(recent) == 1
    assert recent[0]["caseId"] == other["id"]

    assert client.get("/api/activities/recent", params={"limit": 0}).status_code == 400


@pytest.mark.parametrize("sent, stored", [
    ("2024-03-02T06:00:00Z", "2024-03-02T06:00:00"),
    ("2024-03-02T06:00:00+05:00", "2024-03-02T01:00:00"),
])
def test_collected_at_offsets_stored_as_utc(client, created_case, evidence_payload, sent, stored):
    item = client.post("/api/evidence", json={**evidence_payload, "collectedAt": sent}).json()
    assert item["collectedAt"] == stored
    assert client.get(f"/api/cases/{created_case['id']}/evidence").json()[0]["collectedAt"] == stored
