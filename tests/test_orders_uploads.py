import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import orders
import storage
from errors import ValidationError
from main import app


class TestOrders:
    def test_order_is_recorded_for_user(self, test_client: TestClient, auth_headers, user_id):
        response = test_client.post(
            "/orders", json={"payment_id": "1319283221", "address": "Av. Corrientes 1234"}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["payment_id"] == "1319283221"
        assert data["address"] == "Av. Corrientes 1234"
        assert data["user_id"] == user_id
        assert database.collection("order").count_documents({"payment_id": "1319283221"}) == 1

    def test_order_requires_token(self, test_client: TestClient):
        response = test_client.post("/orders", json={"payment_id": "1", "address": "Somewhere"})

        assert response.status_code == 401

    def test_blank_address_is_rejected(self, test_client: TestClient, auth_headers):
        response = test_client.post("/orders", json={"payment_id": "1", "address": "   "}, headers=auth_headers)

        assert response.status_code == 400
        assert database.collection("order").count_documents({}) == 0

    def test_store_rejects_missing_payment_id(self):
        with pytest.raises(ValidationError):
            orders.create_order("", "Somewhere")


class TestImageUpload:
    @pytest.fixture(autouse=True)
    def upload_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(storage, "UPLOAD_DIR", tmp_path)
        return tmp_path

    def test_upload_returns_public_url(self, test_client: TestClient, upload_dir):
        response = test_client.post(
            "/upload", files={"product": ("shirt.png", b"\x89PNG\r\n\x1a\nfake", "image/png")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] == 1
        assert data["image_url"].startswith(f"{storage.PUBLIC_BASE_URL}/images/product_")
        assert data["image_url"].endswith(".png")
        filename = data["image_url"].rsplit("/", 1)[-1]
        assert (upload_dir / filename).read_bytes() == b"\x89PNG\r\n\x1a\nfake"

    def test_non_image_is_rejected(self, test_client: TestClient, upload_dir):
        response = test_client.post("/upload", files={"product": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400
        assert list(upload_dir.iterdir()) == []


class TestHealth:
    def test_root(self, test_client: TestClient):
        assert test_client.get("/").json() == {"message": "Fashion Shop API"}

    def test_database_status(self, test_client: TestClient):
        data = test_client.get("/test").json()

        assert data["backend"] == "✅ Running"
        assert data["database_name"] == "shop_test"


class TestStartup:
    def test_lifespan_creates_indexes(self, tmp_path, monkeypatch):
        monkeypatch.setattr(storage, "UPLOAD_DIR", tmp_path / "images")
        database.use_database(mongomock.MongoClient()["shop_startup"])

        with TestClient(app) as client:
            assert client.get("/").status_code == 200

        indexes = database.collection("user").index_information()
        assert indexes["email_1"]["unique"] is True
        assert (tmp_path / "images").is_dir()
