"""
Fixtures compartidos: cada test corre contra una app nueva con su propio
SQLite en memoria, con los repositorios y el servicio reales.
"""

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings

API = "/api/v1"


@pytest.fixture
def settings():
    return Settings(mode="test", database_url="sqlite://", base_path=API, request_timeout=5)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


class Seeder:
    """Alta rapida de recursos via HTTP; devuelve ids."""

    def __init__(self, client: TestClient):
        self.client = client

    def user(self, **fields) -> str:
        body = {"full_name": "Ada Lovelace", "email": "ada@example.com", "role": "admin"}
        body.update(fields)
        resp = self.client.post(f"{API}/users/", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    def project(self, manager_id: str, **fields) -> str:
        body = {"title": "Apollo", "start_date": "2024-01-15", "manager_id": manager_id}
        body.update(fields)
        resp = self.client.post(f"{API}/projects/", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    def task(self, assignee_id: str, project_id: str, **fields) -> str:
        body = {
            "title": "t",
            "description": "d",
            "priority": "High",
            "status": "Active",
            "assignee_id": assignee_id,
            "project_id": project_id,
        }
        body.update(fields)
        resp = self.client.post(f"{API}/tasks/", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]


@pytest.fixture
def seed(client):
    return Seeder(client)
