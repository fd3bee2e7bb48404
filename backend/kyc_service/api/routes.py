"""API route definitions."""

import time
from fastapi import APIRouter, Depends, UploadFile, File, Form, Header, HTTPException, Query
from pydantic import ValidationError
from typing import Optional
import logging

from ..models import (
    ExtractedFields,
    ExtractResponse,
    FieldCheckResult,
    FormDataModel,
    HealthResponse,
    KycRecordResponse,
    LoanEstimateResponse,
    MrzParseRequest,
    VerificationResponse,
    ErrorResponse,
)
from ..services import (
    DocumentInput,
    ExtractionError,
    FormData,
    ImagePreprocessor,
    InMemoryKycRepository,
    KycService,
    OCRService,
    calculate_monthly_payment,
    calculate_total_repayment,
    compute_score,
    get_extractor,
    parse_mrz,
)
from ..config import get_settings
from .. import __version__

logger = logging.getLogger(__name__)
router = APIRouter()

# Initialize services
preprocessor = ImagePreprocessor()
ocr_service = OCRService()
repository = InMemoryKycRepository()
kyc_service = KycService(repository, get_extractor())


def get_kyc_service() -> KycService:
    """Dependency returning the KYC service (overridable in tests)."""
    return kyc_service


def _require_subject(uid: str, subject_id: str) -> None:
    if uid != subject_id:
        raise HTTPException(status_code=403, detail="Subjects may only access their own KYC record")


async def _read_document(document: Optional[UploadFile], mrz_text: Optional[str]) -> DocumentInput:
    if document is None:
        return DocumentInput(mrz_text=mrz_text)

    try:
        content = await document.read()
    except Exception as e:
        logger.error(f"Failed to read uploaded document: {e}")
        raise HTTPException(status_code=400, detail="Failed to read uploaded document")

    is_valid, error_msg = preprocessor.validate_image(content, document.filename or "unknown")
    if not is_valid:
        raise HTTPException(status_code=400, detail=error_msg)

    return DocumentInput(
        filename=document.filename or "",
        content_type=document.content_type,
        content=content,
        mrz_text=mrz_text,
    )


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(service: KycService = Depends(get_kyc_service)):
    """Check API health and extraction backend readiness."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        extraction_backend=service.extractor.provider,
        ocr_ready=ocr_service.is_ready,
    )


@router.post("/mrz/parse", response_model=ExtractedFields, tags=["Extraction"])
async def parse_mrz_text(request: MrzParseRequest):
    """
    Parse MRZ text into identity fields.

    Unparseable input is not an error: the response reports
    `mrz_present: false` and leaves the other fields empty.
    """
    return ExtractedFields.model_validate(parse_mrz(request.text))


@router.post(
    "/kyc/extract",
    response_model=ExtractResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid input"}},
    tags=["Extraction"],
)
async def extract_document(
    document: Optional[UploadFile] = File(None, description="Identity document image"),
    mrz_text: Optional[str] = Form(None, description="MRZ text, if already available"),
    service: KycService = Depends(get_kyc_service),
):
    """Run the configured extraction backend on a document without scoring it."""
    doc_input = await _read_document(document, mrz_text)
    provider = service.extractor.provider

    try:
        extracted = service.extractor.extract(doc_input, FormData())
    except ExtractionError as e:
        logger.warning(f"Extraction failed ({provider}): {e}")
        return ExtractResponse(success=False, provider=provider, error=str(e))

    return ExtractResponse(
        success=True,
        provider=provider,
        extracted=ExtractedFields.model_validate(extracted),
    )


@router.post(
    "/kyc/verify",
    response_model=VerificationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
    },
    tags=["Verification"],
)
async def verify_identity(
    full_name: str = Form(..., description="Full name as typed by the user"),
    dob: Optional[str] = Form(None, description="Date of birth (YYYY-MM-DD)"),
    document_number: Optional[str] = Form(None, description="Passport or ID card number"),
    national_number: Optional[str] = Form(None, description="National register number"),
    email: Optional[str] = Form(None),
    locale: Optional[str] = Form(None, description="UI locale"),
    mrz_text: Optional[str] = Form(None, description="MRZ text, if already available"),
    document: Optional[UploadFile] = File(None, description="Identity document image"),
    x_subject_id: str = Header(..., description="Subject id issued by the identity provider"),
    service: KycService = Depends(get_kyc_service),
):
    """
    Run one automatic verification attempt for the calling subject.

    A failed verification is a successful response whose decision status is
    `fail`; `success: false` only means the extraction backend could not
    process the document.
    """
    start_time = time.time()

    try:
        form_model = FormDataModel(
            full_name=full_name,
            dob=dob or None,
            document_number=document_number or None,
            national_number=national_number or None,
            email=email or None,
            locale=locale or None,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
    form = form_model.to_record()
    doc_input = await _read_document(document, mrz_text)

    try:
        record = service.submit(x_subject_id, form, doc_input)
    except ExtractionError as e:
        logger.warning(f"Verification for {x_subject_id} aborted: {e}")
        return VerificationResponse(success=False, error=str(e))

    checks = compute_score(form, record.verification.extracted, service.settings).checks

    total_time = int((time.time() - start_time) * 1000)
    logger.info(f"Verification for {x_subject_id} finished in {total_time}ms")

    return VerificationResponse(
        success=True,
        record=KycRecordResponse.model_validate(record),
        checks=[FieldCheckResult.model_validate(c) for c in checks],
    )


@router.get("/kyc/{uid}", response_model=KycRecordResponse, tags=["Verification"])
async def get_kyc_record(
    uid: str,
    x_subject_id: str = Header(...),
    service: KycService = Depends(get_kyc_service),
):
    """Fetch the KYC record of the calling subject."""
    _require_subject(uid, x_subject_id)
    record = service.fetch(uid)
    if record is None:
        raise HTTPException(status_code=404, detail="KYC not yet submitted")
    return KycRecordResponse.model_validate(record)


@router.post("/kyc/{uid}/manual-review", response_model=KycRecordResponse, tags=["Verification"])
async def request_manual_review(
    uid: str,
    x_subject_id: str = Header(...),
    service: KycService = Depends(get_kyc_service),
):
    """Ask for a human review after a failed automatic verification."""
    _require_subject(uid, x_subject_id)
    record = service.request_manual_review(uid)
    return KycRecordResponse.model_validate(record)


@router.get("/loans/estimate", response_model=LoanEstimateResponse, tags=["Loans"])
async def estimate_loan(
    amount_cents: int = Query(..., gt=0, description="Requested amount in cents"),
    annual_rate: Optional[float] = Query(None, ge=0, description="Annual interest rate in percent"),
    term_months: int = Query(..., gt=0, description="Loan term in months"),
):
    """Estimate the monthly installment for a loan request."""
    rate = annual_rate if annual_rate is not None else get_settings().default_interest_rate
    monthly = calculate_monthly_payment(amount_cents, rate, term_months)
    return LoanEstimateResponse(
        amount_cents=amount_cents,
        annual_rate_percent=rate,
        term_months=term_months,
        monthly_payment_cents=monthly,
        total_repayment_cents=calculate_total_repayment(monthly, term_months),
    )
