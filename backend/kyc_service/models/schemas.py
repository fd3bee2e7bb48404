"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from ..services.records import FormData, KycStatus, ReasonCode
from ..services.repository import RecordStatus
from ..services.scoring import CheckOutcome


class FieldConfidencesModel(BaseModel):
    """Per-field extraction confidence."""
    name: Optional[float] = Field(None, ge=0.0, le=1.0)
    dob: Optional[float] = Field(None, ge=0.0, le=1.0)
    doc_number: Optional[float] = Field(None, ge=0.0, le=1.0)

    class Config:
        from_attributes = True


class ExtractedFields(BaseModel):
    """Identity fields read from a document or MRZ text."""
    full_name: Optional[str] = None
    given_names: Optional[str] = None
    surname: Optional[str] = None
    date_of_birth: Optional[str] = None
    document_number: Optional[str] = None
    national_register_number: Optional[str] = None
    expiry_date: Optional[str] = None
    doc_type: Optional[str] = None
    mrz_present: Optional[bool] = None
    mrz_valid: Optional[bool] = None
    confidences: Optional[FieldConfidencesModel] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "full_name": "JOHN PAUL SMITH",
                "given_names": "JOHN PAUL",
                "surname": "SMITH",
                "date_of_birth": "1980-01-01",
                "document_number": "AA1234567",
                "doc_type": "id",
                "mrz_present": True,
                "mrz_valid": True,
                "confidences": {"name": 0.92, "dob": 0.92, "doc_number": 0.92},
            }
        }


class FormDataModel(BaseModel):
    """Identity data entered by the user."""
    full_name: str = Field(..., min_length=1, description="Full name as typed by the user")
    dob: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="Date of birth (YYYY-MM-DD)")
    document_number: Optional[str] = Field(None, description="Passport or ID card number")
    national_number: Optional[str] = Field(None, description="National register number")
    email: Optional[str] = None
    locale: Optional[str] = Field(None, description="UI locale at submission time")

    def to_record(self) -> FormData:
        return FormData(**self.model_dump())

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "full_name": "John Paul Smith",
                "dob": "1980-01-01",
                "document_number": "AA1234567",
                "locale": "en",
            }
        }


class AttemptsModel(BaseModel):
    """Attempt counters for a verification."""
    auto: int = Field(..., ge=0)
    manual_override: bool

    class Config:
        from_attributes = True


class DecisionModel(BaseModel):
    """Verification decision as persisted on the KYC record."""
    status: KycStatus
    score: int = Field(..., ge=0, le=100)
    reasons: list[str]
    extracted: ExtractedFields
    provider: str
    attempts: AttemptsModel
    verified_at: Optional[datetime] = None
    locale_at_verification: Optional[str] = None
    manual_reason: Optional[str] = None

    class Config:
        from_attributes = True


class FieldCheckResult(BaseModel):
    """Per-field comparison shown to reviewers."""
    field_name: str
    outcome: CheckOutcome
    points: int
    similarity: Optional[float] = Field(None, ge=0.0, le=1.0)
    reason: Optional[ReasonCode] = None

    class Config:
        from_attributes = True


class DocumentRefModel(BaseModel):
    """Stored document reference."""
    path: str
    content_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class KycRecordResponse(BaseModel):
    """KYC record for a subject."""
    uid: str
    status: RecordStatus
    form_data: Optional[FormDataModel] = None
    document_ref: Optional[DocumentRefModel] = None
    verification: Optional[DecisionModel] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VerificationResponse(BaseModel):
    """Response for a verification attempt."""
    success: bool
    record: Optional[KycRecordResponse] = None
    checks: list[FieldCheckResult] = []
    error: Optional[str] = None


class MrzParseRequest(BaseModel):
    """Raw MRZ text to parse."""
    text: str = Field(..., description="MRZ lines separated by newlines")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "I<UTO<AA1234567<800101<<<<<<<\n"
                        "SMITH<<JOHN<PAUL<<<<<<<<<<<<<<"
            }
        }


class ExtractResponse(BaseModel):
    """Response for document extraction."""
    success: bool
    provider: str
    extracted: Optional[ExtractedFields] = None
    error: Optional[str] = None


class LoanEstimateResponse(BaseModel):
    """Installment estimate for a loan request."""
    amount_cents: int
    annual_rate_percent: float
    term_months: int
    monthly_payment_cents: int
    total_repayment_cents: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Invalid image format",
                "detail": "Allowed formats: JPEG, JPG, PNG, WEBP"
            }
        }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    extraction_backend: str
    ocr_ready: bool
