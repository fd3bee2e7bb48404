"""Persistence port for KYC records.

The production store is a hosted document database whose rule engine
enforces who may write what (only the subject writes its own record, only
admins move the visible status). This module defines the interface the
service needs plus an in-memory adapter used for local runs and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
import copy
import logging
import threading

from .records import Decision, FormData, KycStatus

logger = logging.getLogger(__name__)


class RecordStatus(str, Enum):
    """Lifecycle status shown on the KYC record."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    MANUAL_REVIEW_REQUESTED = "manual_review_requested"


_LIFECYCLE = {
    KycStatus.VERIFIED: RecordStatus.VERIFIED,
    KycStatus.FAIL: RecordStatus.REJECTED,
    KycStatus.NEEDS_REVIEW: RecordStatus.PENDING,
    KycStatus.MANUAL_REVIEW_REQUESTED: RecordStatus.MANUAL_REVIEW_REQUESTED,
}


def lifecycle_status(status: KycStatus) -> RecordStatus:
    """Coarsen an engine status to the record's lifecycle status."""
    return _LIFECYCLE[KycStatus(status)]


@dataclass
class DocumentRef:
    """Where the uploaded document lives in object storage."""
    path: str
    content_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None


@dataclass
class KycRecord:
    """KYC record keyed by the subject id of the identity provider."""
    uid: str
    status: RecordStatus = RecordStatus.PENDING
    form_data: Optional[FormData] = None
    document_ref: Optional[DocumentRef] = None
    verification: Optional[Decision] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None


@dataclass
class ReviewRequest:
    """Entry in the manual review queue worked by admins."""
    uid: str
    status: str
    created_at: datetime


class KycRepository(ABC):
    """Storage for KYC records."""

    @abstractmethod
    def get(self, uid: str) -> Optional[KycRecord]:
        """Return the record for a subject, or None if never submitted."""

    @abstractmethod
    def save(self, record: KycRecord) -> KycRecord:
        """Upsert a record keyed by its uid. Last write wins."""

    @abstractmethod
    def add_review_request(self, uid: str) -> ReviewRequest:
        """Queue a subject for manual review."""


class InMemoryKycRepository(KycRepository):
    """Dict-backed repository. Stores copies so callers cannot mutate state."""

    def __init__(self):
        self._records: Dict[str, KycRecord] = {}
        self._reviews: List[ReviewRequest] = []
        self._lock = threading.Lock()

    def get(self, uid: str) -> Optional[KycRecord]:
        with self._lock:
            record = self._records.get(uid)
            return copy.deepcopy(record) if record else None

    def save(self, record: KycRecord) -> KycRecord:
        with self._lock:
            self._records[record.uid] = copy.deepcopy(record)
        logger.debug(f"Saved KYC record for {record.uid} (status={record.status.value})")
        return record

    def add_review_request(self, uid: str) -> ReviewRequest:
        request = ReviewRequest(
            uid=uid,
            status=RecordStatus.MANUAL_REVIEW_REQUESTED.value,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._reviews.append(request)
        return request

    @property
    def review_requests(self) -> List[ReviewRequest]:
        with self._lock:
            return list(self._reviews)
