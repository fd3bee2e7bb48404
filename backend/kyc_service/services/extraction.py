"""Document extraction backends.

The KYC engine only consumes ExtractedData. Which backend produces it is
chosen by configuration and passed to the caller explicitly:

- MockDocumentExtractor: deterministic test double
- MrzTextExtractor: parses MRZ text supplied by the client
- OcrDocumentExtractor: reads the MRZ band of an uploaded image with EasyOCR
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import dataclasses
import logging

from .mrz import parse_mrz
from .ocr import OCRService
from .preprocessing import ImagePreprocessor
from .records import ExtractedData, FieldConfidences, FormData
from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Raised when an extraction backend cannot process a document."""


@dataclass(frozen=True)
class DocumentInput:
    """An uploaded identity document and/or the MRZ text typed or pasted for it."""
    filename: str = ""
    content_type: Optional[str] = None
    content: Optional[bytes] = None
    mrz_text: Optional[str] = None


class DocumentExtractor(ABC):
    """Produces ExtractedData from a document."""

    provider: str = "unknown"

    @abstractmethod
    def extract(self, document: DocumentInput, form: FormData) -> ExtractedData:
        """
        Extract identity fields from a document.

        Args:
            document: Uploaded document
            form: Form data submitted with it (only the mock backend reads it)

        Raises:
            ExtractionError: If the backend cannot process the document
        """


class MockDocumentExtractor(DocumentExtractor):
    """
    Deterministic stand-in for a real extraction backend.

    A filename containing "fail" yields a document that conflicts with any
    realistic form; anything else echoes the form back with good confidence.
    """

    provider = "mock"

    def extract(self, document: DocumentInput, form: FormData) -> ExtractedData:
        if "fail" in (document.filename or "").lower():
            return ExtractedData(
                full_name="UNKNOWN PERSON",
                date_of_birth="1990-01-01",
                document_number="ZZ999999",
                mrz_present=True,
                mrz_valid=False,
                confidences=FieldConfidences(name=0.3, dob=0.3, doc_number=0.3),
            )

        return ExtractedData(
            full_name=form.full_name,
            date_of_birth=form.dob,
            document_number=form.document_number or "ID123456",
            national_register_number=form.national_number,
            mrz_present=True,
            mrz_valid=True,
            confidences=FieldConfidences(name=0.7, dob=0.8, doc_number=0.8),
        )


class MrzTextExtractor(DocumentExtractor):
    """Parses MRZ text sent along with the document."""

    provider = "mrz"

    def extract(self, document: DocumentInput, form: FormData) -> ExtractedData:
        if not document.mrz_text:
            raise ExtractionError("MRZ text is required for the mrz extraction backend")
        return parse_mrz(document.mrz_text)


class OcrDocumentExtractor(DocumentExtractor):
    """Reads the MRZ from a document image with EasyOCR."""

    provider = "easyocr"

    def __init__(
        self,
        ocr_service: Optional[OCRService] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
    ):
        self.ocr_service = ocr_service or OCRService()
        self.preprocessor = preprocessor or ImagePreprocessor()

    def extract(self, document: DocumentInput, form: FormData) -> ExtractedData:
        if not document.content:
            raise ExtractionError("A document image is required for OCR extraction")

        is_valid, error_msg = self.preprocessor.validate_image(document.content, document.filename or "unknown")
        if not is_valid:
            raise ExtractionError(error_msg)

        if not self.ocr_service.is_ready and not self.ocr_service.initialize():
            raise ExtractionError("OCR service not ready. Please try again in a moment.")

        try:
            image, meta = self.preprocessor.preprocess(document.content, mrz_band_only=True)
            result = self.ocr_service.read_mrz(image)
            if not result.boxes:
                # MRZ may sit elsewhere (e.g. back of an ID card scanned alone)
                logger.info("No text in MRZ band, retrying on full document")
                image, meta = self.preprocessor.preprocess(document.content)
                result = self.ocr_service.read_mrz(image)
        except Exception as e:
            logger.error(f"OCR extraction failed: {e}")
            raise ExtractionError("Unable to read the document image") from e

        logger.info(
            f"OCR read {len(result.lines)} lines "
            f"(confidence={result.average_confidence:.2f}, steps={meta['preprocessing_steps']})"
        )

        extracted = parse_mrz(result.raw_text)
        if not extracted.mrz_present:
            return extracted

        confidence = round(result.average_confidence, 3)
        return dataclasses.replace(
            extracted,
            confidences=FieldConfidences(name=confidence, dob=confidence, doc_number=confidence),
        )


def get_extractor(settings: Optional[Settings] = None) -> DocumentExtractor:
    """
    Build the extraction backend named by settings.extraction_backend.

    Raises:
        ValueError: If the backend name is unknown
    """
    settings = settings or get_settings()
    backends = {
        MockDocumentExtractor.provider: MockDocumentExtractor,
        MrzTextExtractor.provider: MrzTextExtractor,
        OcrDocumentExtractor.provider: OcrDocumentExtractor,
    }
    backend = settings.extraction_backend.lower()
    if backend not in backends:
        raise ValueError(
            f"Unknown extraction backend '{settings.extraction_backend}'. "
            f"Expected one of: {', '.join(sorted(backends))}"
        )
    return backends[backend]()
