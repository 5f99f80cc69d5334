import pytest
from fastapi.testclient import TestClient

from API_LAYER.app import app


@pytest.fixture
def client():
    # One event loop for the whole test so speech tasks survive between requests
    with TestClient(app) as client:
        yield client


@pytest.fixture
def session_id(client):
    response = client.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]
