"""Weighted match score between user-entered and document-derived identity."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import logging

from rapidfuzz import fuzz

from .normalization import normalize_name, normalize_document_id
from .records import FormData, ExtractedData, ReasonCode
from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


class CheckOutcome(str, Enum):
    """Outcome of one field comparison."""
    MATCH = "match"
    MISMATCH = "mismatch"
    MISSING = "missing"


@dataclass(frozen=True)
class FieldCheck:
    """
    Breakdown of a single field comparison.

    `similarity` is a fuzzy ratio shown to reviewers; it never feeds the
    score, which only rewards exact matches after normalization.
    """
    field_name: str
    outcome: CheckOutcome
    points: int
    similarity: Optional[float] = None
    reason: Optional[ReasonCode] = None


@dataclass(frozen=True)
class ScoreResult:
    """Score in [0, 100] plus the ordered reasons that cost points."""
    score: int
    reasons: List[str] = field(default_factory=list)
    checks: List[FieldCheck] = field(default_factory=list)


def compute_score(
    form: FormData,
    extracted: ExtractedData,
    settings: Optional[Settings] = None,
) -> ScoreResult:
    """
    Compare form data against extracted data.

    Checks run in a fixed order (name, date of birth, document identifier)
    and each failing check appends one reason code, so the reasons list is
    reproducible for the same inputs.

    Args:
        form: What the user typed
        extracted: What the extraction backend read from the document
        settings: Weights and factors (defaults to application settings)

    Returns:
        ScoreResult with integer score clamped to [0, 100]
    """
    settings = settings or get_settings()

    checks = [
        _check_name(form, extracted, settings),
        _check_dob(form, extracted, settings),
        _check_document(form, extracted, settings),
    ]

    score = sum(c.points for c in checks)
    if extracted.mrz_valid:
        score += settings.mrz_valid_bonus
    score = max(0, min(100, int(score)))

    reasons = [c.reason.value for c in checks if c.reason is not None]
    logger.debug(f"KYC score={score} reasons={reasons}")

    return ScoreResult(score=score, reasons=reasons, checks=checks)


def _check_name(form: FormData, extracted: ExtractedData, settings: Settings) -> FieldCheck:
    form_name = normalize_name(form.full_name or "")
    doc_name = normalize_name(extracted.full_name or "")
    similarity = _similarity(form_name, doc_name)

    if form_name and doc_name and form_name == doc_name:
        return FieldCheck("full_name", CheckOutcome.MATCH, settings.name_weight, similarity)

    confidence = settings.default_name_confidence
    if extracted.confidences is not None and extracted.confidences.name is not None:
        confidence = extracted.confidences.name
    partial = math.floor(settings.name_weight * settings.name_partial_factor * confidence)

    return FieldCheck(
        "full_name",
        CheckOutcome.MISMATCH if doc_name else CheckOutcome.MISSING,
        partial,
        similarity,
        ReasonCode.NAME_MISMATCH,
    )


def _check_dob(form: FormData, extracted: ExtractedData, settings: Settings) -> FieldCheck:
    if not form.dob or not extracted.date_of_birth:
        return FieldCheck("date_of_birth", CheckOutcome.MISSING, 0, reason=ReasonCode.DOB_MISSING)

    if form.dob == extracted.date_of_birth:
        return FieldCheck("date_of_birth", CheckOutcome.MATCH, settings.dob_weight, 1.0)

    return FieldCheck(
        "date_of_birth",
        CheckOutcome.MISMATCH,
        0,
        _similarity(form.dob, extracted.date_of_birth),
        ReasonCode.DOB_MISMATCH,
    )


def _check_document(form: FormData, extracted: ExtractedData, settings: Settings) -> FieldCheck:
    # Document number first, national register number as fallback
    if form.document_number and extracted.document_number:
        field_name = "document_number"
        expected = normalize_document_id(form.document_number)
        actual = normalize_document_id(extracted.document_number)
        mismatch = ReasonCode.DOC_MISMATCH
    elif form.national_number and extracted.national_register_number:
        field_name = "national_number"
        expected = normalize_document_id(form.national_number)
        actual = normalize_document_id(extracted.national_register_number)
        mismatch = ReasonCode.NATIONAL_MISMATCH
    else:
        return FieldCheck("document_number", CheckOutcome.MISSING, 0, reason=ReasonCode.DOC_MISSING)

    similarity = _similarity(expected, actual)
    if expected == actual:
        return FieldCheck(field_name, CheckOutcome.MATCH, settings.document_weight, similarity)
    return FieldCheck(field_name, CheckOutcome.MISMATCH, 0, similarity, mismatch)


def _similarity(a: str, b: str) -> Optional[float]:
    if not a or not b:
        return None
    return fuzz.token_sort_ratio(a, b) / 100.0
