import os
import threading

os.environ["DATABASE_URL"] = ""
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import mongomock
import pytest
from fastapi.testclient import TestClient

import auth
import database
import users
from main import app


class SerializedCollection:
    """Runs each collection call under one lock, as the server applies each operation atomically."""

    def __init__(self, collection, lock):
        self._collection = collection
        self._lock = lock

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not callable(attr):
            return attr

        def call(*args, **kwargs):
            with self._lock:
                return attr(*args, **kwargs)

        return call


class SerializedDatabase:
    def __init__(self, db):
        self._db = db
        self._lock = threading.RLock()

    def __getitem__(self, name):
        return SerializedCollection(self._db[name], self._lock)

    def __getattr__(self, name):
        return getattr(self._db, name)


@pytest.fixture(autouse=True)
def mongo_db():
    db = SerializedDatabase(mongomock.MongoClient()["shop_test"])
    database.use_database(db)
    database.ensure_indexes()
    yield db
    database.use_database(None)


@pytest.fixture
def test_client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def user_token() -> str:
    return users.signup("Ada", "ada@shop.io", "secret123")


@pytest.fixture
def user_id(user_token) -> str:
    return auth.verify_token(user_token)


@pytest.fixture
def auth_headers(user_token):
    return {"auth-token": user_token}


@pytest.fixture
def product_fields():
    return {
        "name": "Striped Flutter Sleeve Blouse",
        "image": "product_1700000000000.png",
        "category": "women",
        "new_price": 50.0,
        "old_price": 80.5,
        "description": "Lightweight cotton blouse",
    }
