"""Shared fixtures: isolated database, in-memory image store, API client."""

from datetime import date
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from food_hero_api.app.core.config import Settings
from food_hero_api.app.dependencies import build_services
from food_hero_api.app.main import create_app
from food_hero_api.app.schemas.user import ActorContext, Role, UserCreate
from food_hero_api.app.services.image_store import ImageStore


PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgo="


class MemoryImageStore(ImageStore):
    """Keeps uploads in a dict; can be told to fail on delete."""

    def __init__(self) -> None:
        self.saved: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_on_delete = False

    def save(self, data: bytes, content_type: str) -> str:
        url = f"https://images.test/waste/{len(self.saved) + 1}.png"
        self.saved[url] = data
        return url

    def delete(self, url: str) -> None:
        if self.fail_on_delete:
            raise RuntimeError("image backend unavailable")
        self.deleted.append(url)
        self.saved.pop(url, None)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=str(tmp_path / "food_hero_test.db"),
        secret_key="test-secret",
        log_level="WARNING",
        image_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def image_store() -> MemoryImageStore:
    return MemoryImageStore()


@pytest.fixture
def services(settings, image_store):
    services = build_services(settings, image_store)
    services.db.init_db()
    return services


@pytest.fixture
def make_school(services):
    counter = iter(range(1, 1000))

    def _make(institute_name: str = "Phuket Wittayalai School") -> ActorContext:
        user = services.actors.register(
            UserCreate(
                email=f"school{next(counter)}@example.com",
                password="secret123",
                role=Role.SCHOOL,
                institute_name=institute_name,
            )
        )
        return ActorContext(user_id=user.id, role=user.role, email=user.email)

    return _make


@pytest.fixture
def make_farmer(services):
    counter = iter(range(1, 1000))

    def _make(name: str = "Somchai") -> ActorContext:
        user = services.actors.register(
            UserCreate(
                email=f"farmer{next(counter)}@example.com",
                password="secret123",
                role=Role.FARMER,
                name=name,
            )
        )
        return ActorContext(user_id=user.id, role=user.role, email=user.email)

    return _make


@pytest.fixture
def post_entry(services):
    def _post(school: ActorContext, menu: str = "Fried rice", weight: float = 5.0, on: date = date(2025, 6, 2), **kwargs):
        return services.lifecycle.post(school, menu, weight, on, **kwargs)

    return _post


@pytest.fixture
def client(settings, image_store):
    app = create_app(settings, image_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register an actor over HTTP and return ``(auth headers, user json)``."""
    counter = iter(range(1, 1000))

    def _register(role: str, **fields):
        body = {"email": f"{role}{next(counter)}@example.com", "password": "secret123", "role": role}
        if role == "school":
            body.setdefault("institute_name", "Phuket Wittayalai School")
        else:
            body.setdefault("name", "Somchai")
        body.update(fields)
        response = client.post("/api/v1/auth/register", json=body)
        assert response.status_code == 201, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]

    return _register
