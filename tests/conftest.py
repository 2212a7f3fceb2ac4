import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")

from hallbooking.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from hallbooking.database import Base, SessionLocal, engine  # noqa: E402
from services.bookings.app import app as bookings_app, calendar_cache  # noqa: E402
from services.halls.app import app as halls_app, hall_list_cache  # noqa: E402
from services.users.app import app as users_app  # noqa: E402

ADMIN_PAYLOAD = {
    "name": "Admin",
    "username": "admin",
    "email": "admin@example.com",
    "password": "Passw0rd!",
    "role": "admin",
}

DEPARTMENT_PAYLOAD = {
    "name": "CSE Office",
    "username": "cse",
    "email": "cse@example.com",
    "password": "Passw0rd!",
    "department": "CSE",
    "role": "department",
}


def auth_header(users_client: TestClient, username: str, password: str) -> dict[str, str]:
    response = users_client.post(
        "/users/login",
        data={"username": username, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    calendar_cache.clear()
    hall_list_cache.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def users_client() -> Generator[TestClient, None, None]:
    with TestClient(users_app) as client:
        yield client


@pytest.fixture()
def halls_client() -> Generator[TestClient, None, None]:
    with TestClient(halls_app) as client:
        yield client


@pytest.fixture()
def bookings_client() -> Generator[TestClient, None, None]:
    with TestClient(bookings_app) as client:
        yield client


@pytest.fixture()
def admin_headers(users_client: TestClient) -> dict[str, str]:
    users_client.post("/users/register", json=ADMIN_PAYLOAD)
    return auth_header(users_client, ADMIN_PAYLOAD["username"], ADMIN_PAYLOAD["password"])


@pytest.fixture()
def department_headers(users_client: TestClient, admin_headers: dict[str, str]) -> dict[str, str]:
    users_client.post("/users/register", json=DEPARTMENT_PAYLOAD)
    return auth_header(users_client, DEPARTMENT_PAYLOAD["username"], DEPARTMENT_PAYLOAD["password"])


@pytest.fixture()
def hall(halls_client: TestClient, admin_headers: dict[str, str]) -> dict:
    response = halls_client.post("/halls", json={"name": "Main Hall", "capacity": 120}, headers=admin_headers)
    assert response.status_code == 201
    return response.json()
