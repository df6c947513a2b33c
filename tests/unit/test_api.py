"""
Tests for the HTTP layer.

Dependencies are overridden with in-memory collaborators, so requests
run the real routes and services without a bucket or STS endpoint.
"""

import pytest
from fastapi.testclient import TestClient

from cosgate.api import dependencies
from cosgate.api.dependencies import (
    get_credential_source,
    get_storage_client,
    get_upload_config,
)
from cosgate.config.settings import Settings, build_upload_config, get_settings
from cosgate.core.storage.credentials import TemporaryCredentialSource
from cosgate.infrastructure.storage.client import MockStorageClient
from cosgate.infrastructure.sts.client import MockCredentialIssuer
from cosgate.main import create_app

API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_keys=API_KEY,
        storage_mock_mode=True,
        cos_app_id="1250000000",
        cos_bucket="uploads",
        scenes=[{
            "id": 1,
            "path_prefix": "docs",
            "allowed_extensions": ["pdf", "txt"],
            "attachment_extensions": ["txt"],
        }],
        content_types={"pdf": "application/pdf", "txt": "text/plain"},
        cdn_domain="https://cdn.example.com",
        cdn_key="secret",
    )


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def client(settings, storage) -> TestClient:
    app = create_app()
    config = build_upload_config(settings)
    issuer = MockCredentialIssuer()

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_upload_config] = lambda: config
    app.dependency_overrides[get_storage_client] = lambda: storage
    app.dependency_overrides[get_credential_source] = lambda: TemporaryCredentialSource(issuer)

    return TestClient(app)


class TestAuthentication:
    """Tests for API key checks."""

    def test_missing_key_is_rejected(self, client):
        response = client.post("/api/v1/uploads/presign", json={"scene_type": 1, "filename": "a.pdf"})

        assert response.status_code == 403

    def test_wrong_key_is_rejected(self, client):
        response = client.get(
            "/api/v1/files/url", params={"path": "docs/a.pdf"}, headers={"X-API-Key": "nope"}
        )

        assert response.status_code == 403


class TestPresignUpload:
    """Tests for POST /api/v1/uploads/presign."""

    def test_returns_presigned_info(self, client):
        response = client.post(
            "/api/v1/uploads/presign",
            json={"scene_type": 1, "filename": "a.pdf", "paths": ["u1"], "expires_seconds": 600},
            headers=HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["file_path"].startswith("docs/u1/")
        assert body["headers"] == {"Content-Type": "application/pdf"}
        assert body["expires_seconds"] == 600
        assert body["upload_url"].startswith("mock://storage/PUT/")

    def test_uses_default_expiry(self, client, settings):
        response = client.post(
            "/api/v1/uploads/presign",
            json={"scene_type": 1, "filename": "a.pdf"},
            headers=HEADERS,
        )

        assert response.json()["expires_seconds"] == settings.default_expires_seconds

    def test_attachment_disposition(self, client):
        response = client.post(
            "/api/v1/uploads/presign",
            json={"scene_type": 1, "filename": "a.pdf", "disposition": "attachment"},
            headers=HEADERS,
        )

        assert response.json()["headers"]["Content-Disposition"] == "attachment; filename=a.pdf"

    @pytest.mark.parametrize("scene_type,filename,status_code", [
        (99, "a.pdf", 404),
        (1, "a.exe", 400),
        (1, "README", 400),
    ])
    def test_error_kinds_map_to_status(self, client, scene_type, filename, status_code):
        response = client.post(
            "/api/v1/uploads/presign",
            json={"scene_type": scene_type, "filename": filename},
            headers=HEADERS,
        )

        assert response.status_code == status_code

    def test_path_segments_cannot_escape_scene(self, client):
        response = client.post(
            "/api/v1/uploads/presign",
            json={"scene_type": 1, "filename": "a.pdf", "paths": ["..", "admin"]},
            headers=HEADERS,
        )

        assert response.status_code == 400

    def test_filename_with_line_break_is_rejected(self, client):
        response = client.post(
            "/api/v1/uploads/presign",
            json={"scene_type": 1, "filename": "a.pdf\r\nX-Evil: 1", "disposition": "attachment"},
            headers=HEADERS,
        )

        assert response.status_code == 400


class TestDirectUpload:
    """Tests for POST /api/v1/uploads."""

    def test_stores_file(self, client, storage):
        response = client.post(
            "/api/v1/uploads",
            files={"file": ("report.pdf", b"%PDF-1.7", "application/pdf")},
            data={"scene_type": "1"},
            headers=HEADERS,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["size_bytes"] == 8
        assert storage.objects[body["file_path"]] == b"%PDF-1.7"

    def test_rejects_unsupported_extension(self, client, storage):
        response = client.post(
            "/api/v1/uploads",
            files={"file": ("tool.exe", b"MZ", "application/octet-stream")},
            data={"scene_type": "1"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert storage.objects == {}

    def test_rejects_escaping_path_segments(self, client, storage):
        response = client.post(
            "/api/v1/uploads",
            files={"file": ("report.pdf", b"%PDF-1.7", "application/pdf")},
            data={"scene_type": "1", "paths": ["..", "other"]},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert storage.objects == {}


class TestFileURLs:
    """Tests for the read endpoints."""

    def test_file_url(self, client):
        response = client.get("/api/v1/files/url", params={"path": "/docs/a.pdf"}, headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["url"].startswith("mock://storage/GET/docs/a.pdf?")

    def test_preview_url(self, client):
        response = client.get(
            "/api/v1/files/preview-url", params={"path": "docs/a.pdf"}, headers=HEADERS
        )

        assert response.status_code == 200
        assert "ci-process=doc-preview" in response.json()["url"]

    def test_root_path_is_rejected(self, client):
        response = client.get("/api/v1/files/url", params={"path": "/"}, headers=HEADERS)

        assert response.status_code == 400

    def test_cdn_url(self, client):
        response = client.get("/api/v1/files/cdn-url", params={"path": "docs/a.pdf"}, headers=HEADERS)

        assert response.status_code == 200
        url = response.json()["url"]
        assert url.startswith("https://cdn.example.com/docs/a.pdf?sign=")
        assert "&t=" in url

    def test_cdn_url_without_configuration(self, client, settings):
        settings.cdn_key = ""

        response = client.get("/api/v1/files/cdn-url", params={"path": "docs/a.pdf"}, headers=HEADERS)

        assert response.status_code == 503


class TestHealth:
    """Tests for health endpoints."""

    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_readiness_reports_unconfigured_cdn_without_error(self, client, settings, monkeypatch):
        monkeypatch.setattr(dependencies, "_upload_config", None)
        settings.cdn_key = ""

        response = client.get("/health/ready")

        assert response.status_code == 200
        cdn = next(c for c in response.json()["checks"] if c["name"] == "cdn")
        assert cdn == {"name": "cdn", "status": "ok", "error": None, "detail": "not configured"}

    def test_readiness_fails_without_scenes(self, client, settings, monkeypatch):
        monkeypatch.setattr(dependencies, "_upload_config", None)
        settings.scenes = []

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
