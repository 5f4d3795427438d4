import os

# Must be set before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from medicare.main import app
from medicare.core.database import get_db, get_redis, Base, RedisMock
from medicare.core.timeutils import clinic_today

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

PASSWORD = "TestPassword123"

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def redis_mock():
    mock = RedisMock()
    app.dependency_overrides[get_redis] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_redis, None)

@pytest.fixture
def client(test_db, redis_mock):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def make_user(client):
    """Register and sign in a user; returns the login payload plus auth headers."""
    def _make_user(email, role="patient", full_name="Test User", specialization=None):
        payload = {
            "email": email,
            "password": PASSWORD,
            "full_name": full_name,
            "role": role,
        }
        if specialization:
            payload["specialization"] = specialization
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 201, response.text

        login = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
        assert login.status_code == 200, login.text
        data = login.json()
        data["headers"] = {"Authorization": f"Bearer {data['access_token']}"}
        return data
    return _make_user

@pytest.fixture
def patient(make_user):
    return make_user("patient@example.com", "patient", "Jane Doe")

@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", "admin", "Clinic Admin")

@pytest.fixture
def doctor(client, make_user):
    data = make_user("doctor@example.com", "doctor", "Gregory House", "Diagnostics")
    doctors = client.get("/api/v1/doctors", headers=data["headers"]).json()
    data["doctor_id"] = next(d["id"] for d in doctors if d["full_name"] == "Gregory House")
    return data

@pytest.fixture
def tomorrow():
    return clinic_today() + timedelta(days=1)

@pytest.fixture
def request_appointment(client, patient, doctor, tomorrow):
    """Submit an appointment request as the default patient."""
    def _request(**overrides):
        payload = {
            "doctor_id": doctor["doctor_id"],
            "patient_name": "Jane Doe",
            "patient_age": 34,
            "symptoms": "fever",
            "preferred_date": tomorrow.isoformat(),
            "preferred_time": "10:00 AM",
        }
        payload.update(overrides)
        response = client.post(
            "/api/v1/patient/appointments", json=payload, headers=patient["headers"]
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _request
