import os

# Cheap hashing for tests; read by config at import time
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.pop("DATABASE_URL", None)

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
import database
import messaging
from main import app


@pytest.fixture
def mongo(monkeypatch):
    db = mongomock.MongoClient()["sfn_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture(autouse=True)
def demo_messaging(monkeypatch):
    monkeypatch.setattr(config, "TWILIO_ACCOUNT_SID", None)
    monkeypatch.setattr(config, "TWILIO_AUTH_TOKEN", None)
    monkeypatch.setattr(messaging, "_client", None)


@pytest.fixture
def upload_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(mongo):
    return TestClient(app)


def farmer_payload(email="asha@example.com", **overrides):
    payload = {
        "name": "Asha Patel",
        "email": email,
        "password": "secret123",
        "phone": "+919876543210",
        "location": {"country": "India", "state": "Punjab", "city": "Ludhiana"},
        "farmDetails": {"landSize": 5, "landSizeUnit": "acres", "crops": ["wheat", "rice"], "farmingExperience": 8},
    }
    payload.update(overrides)
    return payload


def register(client, email="asha@example.com", **overrides):
    res = client.post("/api/auth/register", json=farmer_payload(email, **overrides))
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def auth(client):
    data = register(client)
    return {"Authorization": f"Bearer {data['token']}"}, data["farmer"]


@pytest.fixture
def headers(auth):
    return auth[0]


def practice_payload(**overrides):
    payload = {
        "title": "Mulching",
        "description": "Cover soil with organic material to keep moisture in.",
        "detailedDescription": "Spread straw or leaves five centimetres deep around plants.",
        "category": "soil_health",
        "difficulty": "beginner",
        "estimatedTime": "1 day",
        "cost": "low",
        "tags": ["Soil", " Moisture "],
        "applicableCrops": ["tomato", "wheat"],
        "environmentalImpact": {"carbonReduction": 40, "waterConservation": 80, "soilHealth": 70, "biodiversity": 50},
    }
    payload.update(overrides)
    return payload
