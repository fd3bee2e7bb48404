"""Verification status decision and Decision record assembly."""

import dataclasses
from datetime import datetime, timezone
from typing import List, Optional
import logging

from .records import (
    Attempts,
    Decision,
    ExtractedData,
    FormData,
    KycStatus,
    ReasonCode,
    MANUAL_OVERRIDE_REASON,
)
from .scoring import compute_score
from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


def decide_status(
    score: int,
    reasons: List[str],
    extracted: ExtractedData,
    settings: Optional[Settings] = None,
) -> KycStatus:
    """
    Map a score and its reasons to a verification status.

    A date-of-birth conflict fails regardless of score. Otherwise:
    - score < fail_threshold (60): fail
    - score >= verified_threshold (85): verified
    - anything in between: needs_review

    `extracted` is accepted for interface stability but is not read.
    """
    settings = settings or get_settings()

    if ReasonCode.DOB_MISMATCH.value in reasons:
        return KycStatus.FAIL
    if score < settings.fail_threshold:
        return KycStatus.FAIL
    if score >= settings.verified_threshold:
        return KycStatus.VERIFIED
    return KycStatus.NEEDS_REVIEW


def evaluate_kyc(
    form: FormData,
    extracted: ExtractedData,
    attempts_auto: int = 1,
    provider: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Decision:
    """
    Score a verification attempt and package the outcome.

    Gaps in the form or the extraction only lower the score and add reason
    codes; this function does not raise on partial input.

    Args:
        form: User-entered identity data
        extracted: Extraction result (may be empty)
        attempts_auto: Automatic attempt count, including this one
        provider: Tag of the extraction backend that produced `extracted`
            (defaults to the configured extraction backend)
        settings: Weights and thresholds (defaults to application settings)

    Returns:
        Decision without timestamp or locale; see build_verification_record()
    """
    settings = settings or get_settings()

    result = compute_score(form, extracted, settings)
    status = decide_status(result.score, result.reasons, extracted, settings)

    logger.info(f"KYC evaluated: status={status.value}, score={result.score}, attempt={attempts_auto}")

    return Decision(
        status=status,
        score=result.score,
        reasons=list(result.reasons),
        extracted=extracted,
        provider=provider or settings.extraction_backend.lower(),
        attempts=Attempts(auto=attempts_auto, manual_override=False),
    )


def build_verification_record(
    decision: Decision,
    locale: str,
    now: Optional[datetime] = None,
) -> Decision:
    """Stamp a decision with the verification time and the active UI locale."""
    return dataclasses.replace(
        decision,
        verified_at=now or _utcnow(),
        locale_at_verification=locale,
    )


def manual_review_override(
    current: Optional[Decision],
    now: Optional[datetime] = None,
    default_provider: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Decision:
    """
    Turn a (usually failed) decision into a request for human review.

    This is not a retry: nothing is extracted or rescored. The prior score,
    extraction, provider and locale are carried over, `manual_override` is
    appended to a copy of the prior reasons, and the automatic attempt count
    is kept as is.

    Args:
        current: Latest decision, or None if the user never got one
        now: Timestamp to stamp (defaults to current UTC time)
        default_provider: Provider tag used when there is no prior decision
            (defaults to the configured extraction backend)

    Returns:
        New Decision with status manual_review_requested
    """
    settings = settings or get_settings()

    if current is None:
        score = 0
        reasons: List[str] = []
        extracted = ExtractedData()
        provider = default_provider or settings.extraction_backend.lower()
        auto = 1
        locale = None
    else:
        score = current.score
        reasons = current.reasons
        extracted = current.extracted
        provider = current.provider
        auto = current.attempts.auto
        locale = current.locale_at_verification

    logger.info(f"Manual review requested (prior score={score}, auto attempts={auto})")

    return Decision(
        status=KycStatus.MANUAL_REVIEW_REQUESTED,
        score=score,
        reasons=[*reasons, ReasonCode.MANUAL_OVERRIDE.value],
        extracted=extracted,
        provider=provider,
        attempts=Attempts(auto=auto, manual_override=True),
        verified_at=now or _utcnow(),
        locale_at_verification=locale,
        manual_reason=MANUAL_OVERRIDE_REASON,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
