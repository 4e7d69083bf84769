import pytest
from fastapi.testclient import TestClient

from backend.db import init_db, make_engine, make_session_factory
from backend.main import app, get_storage
from backend.storage import DatabaseStorage, MemStorage


@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture
def db_storage(tmp_path):
    engine = make_engine(f"sqlite:///{(tmp_path / 'cases.db').as_posix()}")
    init_db(engine)
    yield DatabaseStorage(make_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "database"])
def storage(request):
    name = "mem_storage" if request.param == "memory" else "db_storage"
    return request.getfixturevalue(name)


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def case_payload():
    return {
        "caseNumber": "DT-2024-0001",
        "title": "Harbor Warehouse Burglary",
        "description": "Forced entry through the loading dock.",
        "location": "Pier 7",
        "crimeType": "Burglary",
        "crimeDate": "2024-03-02T01:30:00",
        "status": "active",
        "priority": "high",
    }


@pytest.fixture
def created_case(client, case_payload):
    resp = client.post("/api/cases", json=case_payload)
    assert resp.status_code == 201
    return resp.json()
