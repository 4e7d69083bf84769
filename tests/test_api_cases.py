import pytest


def test_create_case_returns_generated_id(client, case_payload):
    resp = client.post("/api/cases", json=case_payload)
    assert resp.status_code == 201
    body = resp.json()
    assert isinstance(body["id"], int)
    assert body["caseNumber"] == case_payload["caseNumber"]
    assert body["crimeDate"] == "2024-03-02T01:30:00"
    assert body["createdAt"] is not None

    fetched = client.get(f"/api/cases/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == body


def test_create_case_defaults(client):
    resp = client.post("/api/cases", json={"caseNumber": "DT-2", "title": "Minimal"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "active"
    assert body["priority"] == "medium"
    assert body["leadDetectiveId"] is None


def test_duplicate_case_number_rejected(client, case_payload):
    first = client.post("/api/cases", json=case_payload)
    assert first.status_code == 201

    second = client.post("/api/cases", json={**case_payload, "title": "Another"})
    assert second.status_code == 400
    assert second.json()["message"] == "Invalid case data"
    assert case_payload["caseNumber"] in second.json()["error"]

    assert len(client.get("/api/cases").json()) == 1


def test_update_to_existing_case_number_rejected(client, case_payload):
    client.post("/api/cases", json=case_payload)
    other = client.post("/api/cases", json={"caseNumber": "DT-OTHER", "title": "Other"}).json()

    resp = client.put(f"/api/cases/{other['id']}", json={"caseNumber": case_payload["caseNumber"]})
    assert resp.status_code == 400


def test_create_case_validation_errors(client):
    missing = client.post("/api/cases", json={"title": "No number"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Invalid case data"
    assert "caseNumber" in missing.json()["error"]

    bad_status = client.post("/api/cases", json={"caseNumber": "X-1", "title": "T", "status": "open"})
    assert bad_status.status_code == 400

    not_an_object = client.post("/api/cases", json=["X-1"])
    assert not_an_object.status_code == 400
    assert "message" in not_an_object.json()


def test_get_case_errors(client):
    assert client.get("/api/cases/999").status_code == 404
    assert client.get("/api/cases/999").json() == {"message": "Case not found"}

    invalid = client.get("/api/cases/abc")
    assert invalid.status_code == 400
    assert invalid.json() == {"message": "Invalid case ID"}


def test_update_case_is_partial(client, created_case):
    resp = client.put(f"/api/cases/{created_case['id']}", json={"status": "closed"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "closed"
    assert body["title"] == created_case["title"]
    assert body["priority"] == "high"
    assert body["createdAt"] == created_case["createdAt"]


def test_update_missing_case_returns_404(client):
    resp = client.put("/api/cases/42", json={"title": "Nope"})
    assert resp.status_code == 404


def test_list_cases(client, created_case):
    client.post("/api/cases", json={"caseNumber": "DT-2024-0002", "title": "Second"})
    numbers = [c["caseNumber"] for c in client.get("/api/cases").json()]
    assert numbers == ["DT-2024-0001", "DT-2024-0002"]


def test_case_mutations_log_activity(client, created_case):
    case_id = created_case["id"]
    activities = client.get(f"/api/cases/{case_id}/activities").json()
    assert len(activities) == 1
    assert activities[0]["activityType"] == "case_created"
    assert activities[0]["description"] == "Case DT-2024-0001 (Harbor Warehouse Burglary) was created."

    client.put(f"/api/cases/{case_id}", json={"priority": "low"})
    activities = client.get(f"/api/cases/{case_id}/activities").json()
    assert len(activities) == 2
    assert activities[0]["activityType"] == "case_updated"


def test_failed_mutations_do_not_log_activity(client, created_case):
    case_id = created_case["id"]
    client.put(f"/api/cases/{case_id}", json={"status": "bogus"})
    client.post("/api/cases", json={"caseNumber": created_case["caseNumber"], "title": "Dup"})
    assert len(client.get(f"/api/cases/{case_id}/activities").json()) == 1


def test_export_json_bundle(client, created_case):
    resp = client.get(f"/api/cases/{created_case['id']}/export/json")
    assert resp.status_code == 200
    bundle = resp.json()
    assert bundle["case"]["id"] == created_case["id"]
    assert bundle["evidence"] == []
    assert bundle["witnesses"] == []
    assert len(bundle["activities"]) == 1
    assert bundle["analyses"] == []


def test_export_pdf(client, created_case):
    resp = client.get(f"/api/cases/{created_case['id']}/export/pdf")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")
    assert "DT-2024-0001.pdf" in resp.headers["content-disposition"]


def test_unknown_route_uses_error_shape(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert "message" in resp.json()


@pytest.mark.parametrize("sent, stored", [
    ("2024-03-02T01:30:00Z", "2024-03-02T01:30:00"),
    ("2024-03-02T01:30:00+05:00", "2024-03-01T20:30:00"),
])
def test_crime_date_offsets_stored_as_utc(client, case_payload, sent, stored):
    created = client.post("/api/cases", json={**case_payload, "crimeDate": sent}).json()
    assert created["crimeDate"] == stored
    assert client.get(f"/api/cases/{created['id']}").json()["crimeDate"] == stored


def test_update_crime_date_with_offset(client, created_case):
    resp = client.put(f"/api/cases/{created_case['id']}", json={"crimeDate": "2024-03-05T09:00:00-04:00"})
    assert resp.status_code == 200
    assert resp.json()["crimeDate"] == "2024-03-05T13:00:00"
    assert client.get(f"/api/cases/{created_case['id']}").json()["crimeDate"] == "2024-03-05T13:00:00"
