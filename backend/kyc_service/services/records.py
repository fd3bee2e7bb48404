"""Records shared by the KYC decision engine.

Every field of the identity records is individually optional: extraction can
fail field by field, and users may leave identifiers blank. Engine functions
never mutate these records; they build new ones.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class ReasonCode(str, Enum):
    """Machine-readable tag naming the comparison that failed.

    Reasons are kept as an ordered list in the order the checks ran. The order
    is reproducible but carries no meaning; consumers should test membership,
    not position.
    """
    NAME_MISMATCH = "name_mismatch"
    DOB_MISMATCH = "dob_mismatch"
    DOB_MISSING = "dob_missing"
    DOC_MISMATCH = "doc_mismatch"
    NATIONAL_MISMATCH = "national_mismatch"
    DOC_MISSING = "doc_missing"
    MANUAL_OVERRIDE = "manual_override"


class KycStatus(str, Enum):
    """Outcome of a verification attempt."""
    VERIFIED = "verified"
    NEEDS_REVIEW = "needs_review"
    FAIL = "fail"
    MANUAL_REVIEW_REQUESTED = "manual_review_requested"


MANUAL_OVERRIDE_REASON = "AUTO_FAIL_USER_OVERRIDE"


@dataclass(frozen=True)
class FormData:
    """Identity claims typed in by the user."""
    full_name: str = ""
    dob: Optional[str] = None  # YYYY-MM-DD
    document_number: Optional[str] = None
    national_number: Optional[str] = None
    email: Optional[str] = None
    locale: Optional[str] = None


@dataclass(frozen=True)
class FieldConfidences:
    """Extraction backend's self-reported certainty per field (0-1)."""
    name: Optional[float] = None
    dob: Optional[float] = None
    doc_number: Optional[float] = None


@dataclass(frozen=True)
class ExtractedData:
    """Identity claims read from a document image or MRZ text."""
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
    confidences: Optional[FieldConfidences] = None


@dataclass(frozen=True)
class Attempts:
    """How many automatic tries were made and whether a human was asked."""
    auto: int = 1
    manual_override: bool = False


@dataclass(frozen=True)
class Decision:
    """Verification outcome persisted alongside the KYC record."""
    status: KycStatus
    score: int
    reasons: List[str] = field(default_factory=list)
    extracted: ExtractedData = field(default_factory=ExtractedData)
    provider: str = "mock"
    attempts: Attempts = field(default_factory=Attempts)
    verified_at: Optional[datetime] = None
    locale_at_verification: Optional[str] = None
    manual_reason: Optional[str] = None
