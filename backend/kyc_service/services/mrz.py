"""Lenient parser for the machine-readable zone (MRZ) of identity documents.

The parser works on raw text as it comes out of OCR or a copy/paste, so it
does not rely on fixed TD1/TD3 column positions. Each field is recovered
independently and stays None when its pattern is absent; the parser never
raises.
"""

import re
import logging
from typing import List, Optional

from .records import ExtractedData

logger = logging.getLogger(__name__)

MRZ_FILLER = "<"

DOCUMENT_NUMBER_PATTERN = re.compile(r"[A-Z0-9]{8,12}")
YYMMDD_PATTERN = re.compile(r"[0-9]{6}")
_WHITESPACE = re.compile(r"\s+")

# ICAO 9303 document codes (first character of the first MRZ line)
DOCUMENT_TYPE_CODES = {
    "P": "passport",
    "I": "id",
    "A": "id",
    "C": "id",
    "V": "visa",
}


def parse_mrz(raw_text: str) -> ExtractedData:
    """
    Extract identity fields from MRZ text.

    The last two lines containing the filler character are taken as the MRZ
    line pair. Fewer than two such lines means no MRZ is present.

    Args:
        raw_text: Free text, possibly with noise lines before the MRZ

    Returns:
        ExtractedData with whatever fields could be recovered
    """
    candidate = _candidate_lines(raw_text or "")
    if len(candidate) < 2:
        logger.debug("No MRZ line pair found")
        return ExtractedData(mrz_present=False, mrz_valid=False)

    joined = "".join(candidate)

    doc_match = DOCUMENT_NUMBER_PATTERN.search(joined)
    document_number = doc_match.group(0) if doc_match else None

    date_of_birth = None
    for value in YYMMDD_PATTERN.findall(joined):
        date_of_birth = yymmdd_to_iso(value)
        if date_of_birth:
            break

    surname, given_names = _split_names(candidate[1])
    full_name = " ".join(p for p in (given_names, surname) if p).strip() or None

    logger.debug(
        f"MRZ parsed: doc_number={'yes' if document_number else 'no'}, "
        f"dob={'yes' if date_of_birth else 'no'}, name={'yes' if full_name else 'no'}"
    )

    return ExtractedData(
        full_name=full_name,
        given_names=given_names,
        surname=surname,
        date_of_birth=date_of_birth,
        document_number=document_number,
        doc_type=DOCUMENT_TYPE_CODES.get(candidate[0][:1]),
        mrz_present=True,
        mrz_valid=document_number is not None,
    )


def yymmdd_to_iso(value: str) -> Optional[str]:
    """
    Convert an MRZ YYMMDD date to ISO format.

    Two-digit years pivot at 50: 50-99 map to 19YY, 00-49 to 20YY.
    Returns None for anything that is not a plausible calendar month/day.
    """
    if len(value) != 6 or not value.isdigit():
        return None
    month = int(value[2:4])
    day = int(value[4:6])
    if month < 1 or month > 12 or day < 1 or day > 31:
        return None
    year = int(value[0:2])
    century = "19" if year >= 50 else "20"
    return f"{century}{value[0:2]}-{value[2:4]}-{value[4:6]}"


def _candidate_lines(raw_text: str) -> List[str]:
    lines = [line.strip() for line in raw_text.splitlines()]
    return [line for line in lines if MRZ_FILLER in line][-2:]


def _split_names(line: str):
    """Split an MRZ name field into (surname, given names)."""
    parts = line.split(MRZ_FILLER * 2)
    surname = _clean_name_part(parts[0]) if parts else None
    given = _clean_name_part(parts[1]) if len(parts) > 1 else None
    return surname, given


def _clean_name_part(part: str) -> Optional[str]:
    text = _WHITESPACE.sub(" ", part.replace(MRZ_FILLER, " ")).strip()
    return text or None
