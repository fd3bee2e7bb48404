"""Services for MRZ parsing, scoring, decisions, extraction backends and KYC persistence."""

from .records import (
    FormData,
    ExtractedData,
    FieldConfidences,
    Decision,
    Attempts,
    KycStatus,
    ReasonCode,
    MANUAL_OVERRIDE_REASON,
)
from .normalization import normalize_name, normalize_document_id
from .mrz import parse_mrz, yymmdd_to_iso
from .scoring import compute_score, ScoreResult, FieldCheck, CheckOutcome
from .decision import decide_status, evaluate_kyc, build_verification_record, manual_review_override
from .preprocessing import ImagePreprocessor
from .ocr import OCRService, OCRResult, OCRBox
from .extraction import (
    DocumentExtractor,
    DocumentInput,
    ExtractionError,
    MockDocumentExtractor,
    MrzTextExtractor,
    OcrDocumentExtractor,
    get_extractor,
)
from .repository import (
    KycRepository,
    InMemoryKycRepository,
    KycRecord,
    DocumentRef,
    RecordStatus,
    ReviewRequest,
    lifecycle_status,
)
from .kyc import KycService
from .finance import calculate_monthly_payment, calculate_total_repayment

__all__ = [
    "FormData",
    "ExtractedData",
    "FieldConfidences",
    "Decision",
    "Attempts",
    "KycStatus",
    "ReasonCode",
    "MANUAL_OVERRIDE_REASON",
    "normalize_name",
    "normalize_document_id",
    "parse_mrz",
    "yymmdd_to_iso",
    "compute_score",
    "ScoreResult",
    "FieldCheck",
    "CheckOutcome",
    "decide_status",
    "evaluate_kyc",
    "build_verification_record",
    "manual_review_override",
    "ImagePreprocessor",
    "OCRService",
    "OCRResult",
    "OCRBox",
    "DocumentExtractor",
    "DocumentInput",
    "ExtractionError",
    "MockDocumentExtractor",
    "MrzTextExtractor",
    "OcrDocumentExtractor",
    "get_extractor",
    "KycRepository",
    "InMemoryKycRepository",
    "KycRecord",
    "DocumentRef",
    "RecordStatus",
    "ReviewRequest",
    "lifecycle_status",
    "KycService",
    "calculate_monthly_payment",
    "calculate_total_repayment",
]
