"""Pydantic models for request/response schemas."""

from .schemas import (
    FieldConfidencesModel,
    ExtractedFields,
    FormDataModel,
    AttemptsModel,
    DecisionModel,
    FieldCheckResult,
    DocumentRefModel,
    KycRecordResponse,
    VerificationResponse,
    MrzParseRequest,
    ExtractResponse,
    LoanEstimateResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "FieldConfidencesModel",
    "ExtractedFields",
    "FormDataModel",
    "AttemptsModel",
    "DecisionModel",
    "FieldCheckResult",
    "DocumentRefModel",
    "KycRecordResponse",
    "VerificationResponse",
    "MrzParseRequest",
    "ExtractResponse",
    "LoanEstimateResponse",
    "ErrorResponse",
    "HealthResponse",
]
