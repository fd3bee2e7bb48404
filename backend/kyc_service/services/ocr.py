"""OCR service using EasyOCR for reading MRZ lines.

- Lazy, thread-safe engine initialization (singleton)
- MRZ alphabet allowlist (A-Z, 0-9, '<')
- Concurrency control via semaphore
- Boxes grouped into text lines, top to bottom
"""

import numpy as np
from typing import Optional, List
from dataclasses import dataclass, field
import logging
import os
import re
import threading
import unicodedata

from ..config import get_settings

logger = logging.getLogger(__name__)

MRZ_ALLOWLIST = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789<"


@dataclass
class OCRBox:
    """Represents a detected text box with position and confidence."""
    text: str
    confidence: float
    bbox: List[List[int]]  # [[x1,y1], [x2,y2], [x3,y3], [x4,y4]]

    @property
    def top(self) -> int:
        return min(p[1] for p in self.bbox)

    @property
    def bottom(self) -> int:
        return max(p[1] for p in self.bbox)

    @property
    def left(self) -> int:
        return min(p[0] for p in self.bbox)

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def center_y(self) -> int:
        return (self.top + self.bottom) // 2


@dataclass
class OCRResult:
    """Result from OCR processing."""
    boxes: List[OCRBox]
    lines: List[str] = field(default_factory=list)
    average_confidence: float = 0.0

    @property
    def raw_text(self) -> str:
        return "\n".join(self.lines)

    @classmethod
    def empty(cls) -> "OCRResult":
        """Create empty result for failed OCR."""
        return cls(boxes=[], lines=[], average_confidence=0.0)


class OCRService:
    """EasyOCR wrapper tuned for machine-readable zones."""

    _instance: Optional["OCRService"] = None
    _reader = None
    _initialized = False
    _lock = threading.Lock()
    _semaphore: Optional[threading.Semaphore] = None

    def __new__(cls):
        """Singleton pattern to reuse OCR engine."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        self.settings = get_settings()
        if self._semaphore is None:
            OCRService._semaphore = threading.Semaphore(self.settings.ocr_max_concurrent)

    def initialize(self) -> bool:
        """
        Initialize OCR engine. Call on app startup.
        Thread-safe initialization.

        Returns:
            True if initialization successful
        """
        with self._lock:
            if self._initialized:
                return True

            try:
                import easyocr
                import torch

                # Thread limits for CPU inference
                num_threads = int(os.environ.get("TORCH_NUM_THREADS", min(4, os.cpu_count() or 2)))
                torch.set_num_threads(num_threads)

                logger.info(f"Initializing EasyOCR engine with {num_threads} threads...")
                model_dir = os.environ.get("EASYOCR_MODULE_PATH")
                OCRService._reader = easyocr.Reader(
                    [self.settings.ocr_lang],
                    gpu=False,
                    model_storage_directory=model_dir,
                    verbose=False,
                )
                OCRService._initialized = True
                logger.info("EasyOCR initialized successfully")
                return True

            except Exception as e:
                logger.error(f"Failed to initialize EasyOCR: {e}")
                return False

    @property
    def is_ready(self) -> bool:
        """Check if OCR engine is ready."""
        return self._initialized and self._reader is not None

    def read_mrz(self, image: np.ndarray) -> OCRResult:
        """
        Run OCR restricted to the MRZ alphabet.

        Args:
            image: Preprocessed image as numpy array (BGR or grayscale)

        Returns:
            OCRResult with text lines ordered top to bottom
        """
        if not self.is_ready:
            logger.error("OCR engine not initialized")
            return OCRResult.empty()

        with self._semaphore:
            results = self._reader.readtext(
                image,
                decoder="greedy",
                batch_size=1,
                paragraph=False,
                allowlist=MRZ_ALLOWLIST,
            )

        boxes = []
        for bbox_points, text, confidence in results or []:
            normalized = self._normalize_text(text)
            if not normalized:
                continue
            boxes.append(OCRBox(
                text=normalized,
                confidence=float(confidence),
                bbox=[[int(p[0]), int(p[1])] for p in bbox_points],
            ))

        if not boxes:
            logger.warning("OCR returned no results")
            return OCRResult.empty()

        avg_confidence = sum(b.confidence for b in boxes) / len(boxes)
        return OCRResult(
            boxes=boxes,
            lines=self.group_lines(boxes),
            average_confidence=avg_confidence,
        )

    def group_lines(self, boxes: List[OCRBox]) -> List[str]:
        """Join boxes on the same text line, left to right, lines top to bottom."""
        if not boxes:
            return []

        line_h = int(np.median([b.height for b in boxes]))
        y_threshold = max(8, line_h // 2)

        lines: List[List[OCRBox]] = []
        for box in sorted(boxes, key=lambda b: (b.center_y, b.left)):
            if lines and abs(box.center_y - lines[-1][-1].center_y) <= y_threshold:
                lines[-1].append(box)
            else:
                lines.append([box])

        # MRZ lines have no spaces; OCR splits them at wide filler runs
        return ["".join(b.text for b in sorted(line, key=lambda b: b.left)) for line in lines]

    def _normalize_text(self, text: str) -> str:
        """Unicode NFKC, uppercase, drop whitespace inside MRZ tokens."""
        normalized = unicodedata.normalize("NFKC", text).upper()
        return re.sub(r"\s+", "", normalized)
