"""Tests for API endpoints."""

import pytest
from fastapi.testclient import TestClient
from PIL import Image
import io

from kyc_service.main import app
from kyc_service.api.routes import get_kyc_service
from kyc_service.services import InMemoryKycRepository, KycService, MockDocumentExtractor, MrzTextExtractor


MRZ_TEXT = "I<UTO<AA1234567<800101<<<<<<<\nSMITH<<JOHN<PAUL<<<<<<<<<<<<<<"


@pytest.fixture
def service():
    """Fresh service with an empty repository and the mock backend."""
    return KycService(InMemoryKycRepository(), MockDocumentExtractor())


@pytest.fixture
def client(service):
    """Create test client bound to the fresh service."""
    app.dependency_overrides[get_kyc_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_image_bytes():
    """Create a document-sized test image."""
    img = Image.new("RGB", (300, 200), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def verify_form(**overrides):
    data = {
        "full_name": "John Doe",
        "dob": "1980-01-01",
        "document_number": "AA123456",
        "locale": "en",
    }
    data.update(overrides)
    return data


class TestHealthEndpoint:
    """Test /health endpoint."""

    def test_health_response_format(self, client):
        """Test health endpoint response format."""
        response = client.get("/api/v1/health")
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["extraction_backend"] == "mock"
        assert "version" in data
        assert "ocr_ready" in data


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root_contains_version(self, client):
        """Test root endpoint contains version info."""
        response = client.get("/")
        data = response.json()

        assert response.status_code == 200
        assert "version" in data
        assert "docs" in data


class TestMrzParseEndpoint:
    """Test /mrz/parse endpoint."""

    def test_parses_text(self, client):
        """Test MRZ text is parsed."""
        response = client.post("/api/v1/mrz/parse", json={"text": MRZ_TEXT})
        data = response.json()

        assert response.status_code == 200
        assert data["mrz_present"] is True
        assert data["date_of_birth"] == "1980-01-01"
        assert data["full_name"] == "JOHN PAUL SMITH"

    def test_garbage_is_not_an_error(self, client):
        """Test unparseable text returns an empty extraction."""
        response = client.post("/api/v1/mrz/parse", json={"text": "no mrz here"})
        data = response.json()

        assert response.status_code == 200
        assert data["mrz_present"] is False
        assert data["mrz_valid"] is False
        assert data["document_number"] is None

    def test_requires_text(self, client):
        """Test the text field is required."""
        response = client.post("/api/v1/mrz/parse", json={})
        assert response.status_code == 422


class TestExtractEndpoint:
    """Test /kyc/extract endpoint."""

    def test_extract_with_mrz_backend(self, client, service):
        """Test extraction uses the configured backend."""
        service.extractor = MrzTextExtractor()
        response = client.post("/api/v1/kyc/extract", data={"mrz_text": MRZ_TEXT})
        data = response.json()

        assert data["success"] is True
        assert data["provider"] == "mrz"
        assert data["extracted"]["document_number"] == "AA1234567"

    def test_backend_error_reported(self, client, service):
        """Test a backend error is reported, not raised."""
        service.extractor = MrzTextExtractor()
        response = client.post("/api/v1/kyc/extract", data={})
        data = response.json()

        assert response.status_code == 200
        assert data["success"] is False
        assert "MRZ text is required" in data["error"]

    def test_rejects_invalid_format(self, client, sample_image_bytes):
        """Test unsupported uploads are rejected."""
        response = client.post(
            "/api/v1/kyc/extract",
            files={"document": ("id.gif", sample_image_bytes, "image/gif")},
        )
        assert response.status_code == 400


class TestVerifyEndpoint:
    """Test /kyc/verify endpoint."""

    def test_requires_subject_header(self, client):
        """Test the identity provider subject is required."""
        response = client.post("/api/v1/kyc/verify", data=verify_form())
        assert response.status_code == 422

    def test_verified(self, client, sample_image_bytes):
        """Test a matching document is verified."""
        response = client.post(
            "/api/v1/kyc/verify",
            data=verify_form(),
            files={"document": ("passport.png", sample_image_bytes, "image/png")},
            headers={"X-Subject-Id": "u1"},
        )
        data = response.json()

        assert response.status_code == 200
        assert data["success"] is True
        assert data["record"]["uid"] == "u1"
        assert data["record"]["status"] == "verified"
        assert data["record"]["verification"]["status"] == "verified"
        assert data["record"]["verification"]["attempts"] == {"auto": 1, "manual_override": False}
        assert [c["field_name"] for c in data["checks"]] == ["full_name", "date_of_birth", "document_number"]
        assert data["record"]["document_ref"]["content_type"] == "image/png"

    def test_failed(self, client, sample_image_bytes):
        """Test a failed verification is a successful response with status fail."""
        response = client.post(
            "/api/v1/kyc/verify",
            data=verify_form(),
            files={"document": ("fail.png", sample_image_bytes, "image/png")},
            headers={"X-Subject-Id": "u1"},
        )
        data = response.json()

        assert data["success"] is True
        assert data["record"]["status"] == "rejected"
        assert data["record"]["verification"]["status"] == "fail"
        assert "dob_mismatch" in data["record"]["verification"]["reasons"]

    def test_backend_error_reported(self, client, service):
        """Test a backend error is a success: false response and the submission stays pending."""
        service.extractor = MrzTextExtractor()
        response = client.post(
            "/api/v1/kyc/verify",
            data=verify_form(),
            headers={"X-Subject-Id": "u1"},
        )
        data = response.json()

        assert response.status_code == 200
        assert data["success"] is False
        assert data["record"] is None
        assert "MRZ text is required" in data["error"]

        fetched = client.get("/api/v1/kyc/u1", headers={"X-Subject-Id": "u1"}).json()
        assert fetched["status"] == "pending"
        assert fetched["verification"] is None

    def test_invalid_dob(self, client):
        """Test a malformed date of birth is a validation error."""
        response = client.post(
            "/api/v1/kyc/verify",
            data=verify_form(dob="01/01/1980"),
            headers={"X-Subject-Id": "u1"},
        )
        assert response.status_code == 422

    def test_mrz_text_backend(self, client, service):
        """Test verification from MRZ text only."""
        service.extractor = MrzTextExtractor()
        response = client.post(
            "/api/v1/kyc/verify",
            data=verify_form(full_name="John Paul Smith", document_number="AA1234567", mrz_text=MRZ_TEXT),
            headers={"X-Subject-Id": "u1"},
        )
        verification = response.json()["record"]["verification"]

        assert verification["provider"] == "mrz"
        assert verification["score"] == 100
        assert verification["status"] == "verified"


class TestRecordEndpoints:
    """Test record lookup and manual review."""

    def test_not_submitted(self, client):
        """Test an unknown subject gets 404."""
        response = client.get("/api/v1/kyc/u1", headers={"X-Subject-Id": "u1"})
        assert response.status_code == 404

    def test_other_subject_forbidden(self, client):
        """Test subjects cannot read or escalate another subject's record."""
        assert client.get("/api/v1/kyc/u1", headers={"X-Subject-Id": "u2"}).status_code == 403
        assert client.post("/api/v1/kyc/u1/manual-review", headers={"X-Subject-Id": "u2"}).status_code == 403

    def test_manual_review_after_failure(self, client, sample_image_bytes):
        """Test a failed subject can request a human review."""
        client.post(
            "/api/v1/kyc/verify",
            data=verify_form(),
            files={"document": ("fail.png", sample_image_bytes, "image/png")},
            headers={"X-Subject-Id": "u1"},
        )
        response = client.post("/api/v1/kyc/u1/manual-review", headers={"X-Subject-Id": "u1"})
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "manual_review_requested"
        assert data["verification"]["reasons"][-1] == "manual_override"
        assert data["verification"]["manual_reason"] == "AUTO_FAIL_USER_OVERRIDE"

        fetched = client.get("/api/v1/kyc/u1", headers={"X-Subject-Id": "u1"}).json()
        assert fetched["verification"]["attempts"] == {"auto": 1, "manual_override": True}


class TestLoanEstimateEndpoint:
    """Test /loans/estimate endpoint."""

    def test_estimate(self, client):
        """Test the installment estimate."""
        response = client.get(
            "/api/v1/loans/estimate",
            params={"amount_cents": 120000, "annual_rate": 0, "term_months": 12},
        )
        data = response.json()

        assert data["monthly_payment_cents"] == 10000
        assert data["total_repayment_cents"] == 120000

    def test_rejects_non_positive_amount(self, client):
        """Test validation of the amount."""
        response = client.get("/api/v1/loans/estimate", params={"amount_cents": 0, "term_months": 12})
        assert response.status_code == 422
