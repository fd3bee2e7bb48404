"""KYC workflow: store the submission, extract, evaluate, persist."""

import dataclasses
from datetime import datetime, timezone
from typing import Optional
import logging

from .decision import evaluate_kyc, build_verification_record, manual_review_override
from .extraction import DocumentExtractor, DocumentInput
from .repository import KycRepository, KycRecord, DocumentRef, RecordStatus, lifecycle_status
from .records import FormData
from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


class KycService:
    """Runs verification attempts for a subject against the configured backend."""

    def __init__(
        self,
        repository: KycRepository,
        extractor: DocumentExtractor,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.extractor = extractor
        self.settings = settings or get_settings()

    def fetch(self, uid: str) -> Optional[KycRecord]:
        """Current record for a subject; None means not yet submitted."""
        return self.repository.get(uid)

    def submit(self, uid: str, form: FormData, document: DocumentInput) -> KycRecord:
        """
        Run one automatic verification attempt.

        The form and document reference are saved as pending before
        extraction, so a failing backend still leaves the submission on file.

        Raises:
            ExtractionError: If the extraction backend fails
        """
        now = _utcnow()
        current = self.repository.get(uid)
        record = current or KycRecord(uid=uid, created_at=now)

        record = dataclasses.replace(
            record,
            form_data=form,
            document_ref=DocumentRef(
                path=f"users/{uid}/kyc/{int(now.timestamp() * 1000)}-{_safe_filename(document.filename)}",
                content_type=document.content_type,
                uploaded_at=now,
            ),
            status=RecordStatus.PENDING,
            updated_at=now,
        )
        self.repository.save(record)

        extracted = self.extractor.extract(document, form)

        prior_auto = current.verification.attempts.auto if current and current.verification else 0
        decision = evaluate_kyc(
            form,
            extracted,
            attempts_auto=prior_auto + 1,
            provider=self.extractor.provider,
            settings=self.settings,
        )
        decision = build_verification_record(decision, form.locale or self.settings.default_locale, now)

        record = dataclasses.replace(
            record,
            verification=decision,
            status=lifecycle_status(decision.status),
            updated_at=_utcnow(),
        )
        self.repository.save(record)
        logger.info(f"KYC attempt {prior_auto + 1} for {uid}: {decision.status.value} (score={decision.score})")
        return record

    def request_manual_review(self, uid: str) -> KycRecord:
        """Escalate the subject's latest decision to a human reviewer."""
        current = self.repository.get(uid)
        decision = manual_review_override(
            current.verification if current else None,
            default_provider=self.extractor.provider,
            settings=self.settings,
        )

        record = current or KycRecord(uid=uid)
        record = dataclasses.replace(
            record,
            verification=decision,
            status=lifecycle_status(decision.status),
            updated_at=decision.verified_at,
        )
        self.repository.save(record)
        self.repository.add_review_request(uid)
        logger.info(f"Manual review queued for {uid}")
        return record


def _safe_filename(filename: str) -> str:
    name = "".join(c if c.isalnum() or c in "._-" else "_" for c in (filename or ""))
    return name or "document"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
