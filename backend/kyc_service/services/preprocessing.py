"""Image preprocessing for reading the MRZ band of identity documents.

The MRZ is printed in OCR-B on a light background at the bottom of the
document, so the pipeline stays short:
- Upload validation (extension, size, dimensions)
- Resize to a bounded working size
- Grayscale + CLAHE contrast enhancement
- Light sharpening
- Optional crop to the bottom band where the MRZ lives
"""

import cv2
import numpy as np
from PIL import Image
import io
from typing import Tuple
import logging

from ..config import get_settings

logger = logging.getLogger(__name__)

# MRZ lines sit in the bottom third of passports and ID cards
MRZ_BAND_RATIO = 0.35


class ImagePreprocessor:
    """Prepares identity document images for OCR."""

    def __init__(self):
        self.settings = get_settings()

    def validate_image(self, image_bytes: bytes, filename: str) -> Tuple[bool, str]:
        """
        Validate an uploaded document image.

        Returns:
            Tuple of (is_valid, error_message)
        """
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if ext not in self.settings.allowed_extensions:
            allowed = ", ".join(sorted(self.settings.allowed_extensions)).upper()
            return False, f"Invalid file type. Allowed formats: {allowed}"

        size_mb = len(image_bytes) / (1024 * 1024)
        if size_mb > self.settings.max_upload_size_mb:
            return False, f"Image exceeds {self.settings.max_upload_size_mb}MB upload limit. Please resize or compress."

        try:
            info = self.get_image_info(image_bytes)
            minimum = self.settings.min_image_dimension
            if info["width"] < minimum or info["height"] < minimum:
                return False, f"Image too small. Minimum dimensions: {minimum}x{minimum} pixels."
        except Exception as e:
            return False, f"Unable to read image: {str(e)}"

        return True, ""

    def preprocess(self, image_bytes: bytes, mrz_band_only: bool = False) -> Tuple[np.ndarray, dict]:
        """
        Preprocess a document image for OCR.

        Args:
            image_bytes: Raw image bytes
            mrz_band_only: Crop to the bottom band before enhancement

        Returns:
            Tuple of (preprocessed BGR image, metadata dict)
        """
        image = self._load_image(image_bytes)
        metadata = {
            "original_size": image.shape[:2],
            "preprocessing_steps": [],
        }

        image, resized = self._resize(image)
        if resized:
            metadata["preprocessing_steps"].append("resize")
            metadata["resized_to"] = image.shape[:2]

        if mrz_band_only:
            image = self.crop_mrz_band(image)
            metadata["preprocessing_steps"].append("mrz_band")

        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        metadata["preprocessing_steps"].append("grayscale")

        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        enhanced = clahe.apply(gray)
        metadata["preprocessing_steps"].append("clahe")

        sharpened = self._sharpen(enhanced)
        metadata["preprocessing_steps"].append("sharpen")

        result = cv2.cvtColor(sharpened, cv2.COLOR_GRAY2BGR)
        return result, metadata

    def crop_mrz_band(self, image: np.ndarray) -> np.ndarray:
        """Return the bottom band of the document where the MRZ is printed."""
        height = image.shape[0]
        top = int(height * (1.0 - MRZ_BAND_RATIO))
        return image[top:, :]

    def get_image_info(self, image_bytes: bytes) -> dict:
        """Get basic image information without full preprocessing."""
        pil_image = Image.open(io.BytesIO(image_bytes))
        return {
            "format": pil_image.format,
            "mode": pil_image.mode,
            "width": pil_image.width,
            "height": pil_image.height,
            "size_bytes": len(image_bytes),
            "size_mb": len(image_bytes) / (1024 * 1024)
        }

    def _resize(self, image: np.ndarray) -> Tuple[np.ndarray, bool]:
        """Clamp the longest side to max_image_dimension."""
        height, width = image.shape[:2]
        max_dim = self.settings.max_image_dimension
        if max(height, width) <= max_dim:
            return image, False
        scale = max_dim / max(height, width)
        new_size = (int(width * scale), int(height * scale))
        logger.debug(f"Resizing document from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA), True

    def _sharpen(self, image: np.ndarray) -> np.ndarray:
        """Apply light sharpening to enhance character edges."""
        # Unsharp masking - gentle sharpening
        gaussian = cv2.GaussianBlur(image, (0, 0), 2.0)
        return cv2.addWeighted(image, 1.3, gaussian, -0.3, 0)

    def _load_image(self, image_bytes: bytes) -> np.ndarray:
        """Load image from bytes."""
        # Use PIL to handle various formats, then convert to OpenCV
        pil_image = Image.open(io.BytesIO(image_bytes))

        if pil_image.mode != "RGB":
            pil_image = pil_image.convert("RGB")

        image = np.array(pil_image)
        return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
