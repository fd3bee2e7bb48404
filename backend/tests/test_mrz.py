"""Tests for MRZ parsing."""

import pytest
from kyc_service.services.mrz import parse_mrz, yymmdd_to_iso


SAMPLE_MRZ = "P<GBRTEST<<PERSON\n123456789<GBR8001019M2001012<<<<<<<<<<<<<<04"
ID_CARD_MRZ = "I<UTOD231458907<<<<<<<<<<<<<<<\nSMITH<<JOHN<PAUL<<<<<<<<<<<<<<"


class TestParseMrz:
    """Test parse_mrz on well-formed and noisy input."""

    def test_two_line_block(self):
        """Test a two-line block yields presence, document number and dob."""
        parsed = parse_mrz(SAMPLE_MRZ)

        assert parsed.mrz_present is True
        assert parsed.mrz_valid is True
        assert "123456" in parsed.document_number
        assert parsed.date_of_birth == "1980-01-01"

    def test_names_from_second_line(self):
        """Test surname and given names are split on the double filler."""
        parsed = parse_mrz(ID_CARD_MRZ)

        assert parsed.surname == "SMITH"
        assert parsed.given_names == "JOHN PAUL"
        assert parsed.full_name == "JOHN PAUL SMITH"

    def test_document_type_from_first_character(self):
        """Test ICAO document codes map to a document type."""
        assert parse_mrz(SAMPLE_MRZ).doc_type == "passport"
        assert parse_mrz(ID_CARD_MRZ).doc_type == "id"

    def test_document_number_capped_at_twelve_characters(self):
        """Test the document number is the first 8-12 character run."""
        parsed = parse_mrz(ID_CARD_MRZ)
        assert parsed.document_number == "UTOD23145890"

    def test_invalid_date_candidates_skipped(self):
        """Test implausible YYMMDD runs are skipped in favour of later ones."""
        text = "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<\nL898902C36UTO7408122F1204159ZE184226B<<<<<10"
        parsed = parse_mrz(text)
        # 898902 has month 89, so 740812 is the first plausible date
        assert parsed.date_of_birth == "1974-08-12"

    def test_no_plausible_date(self):
        """Test dob stays None when every candidate is rejected."""
        parsed = parse_mrz("ABCDEFGH<<\nX<<999999")

        assert parsed.mrz_present is True
        assert parsed.mrz_valid is True
        assert parsed.date_of_birth is None

    def test_no_document_number(self):
        """Test mrz_valid is False without an 8-12 character run, but MRZ is present."""
        parsed = parse_mrz("P<A<<B\nC<<D")

        assert parsed.mrz_present is True
        assert parsed.mrz_valid is False
        assert parsed.document_number is None

    def test_uses_last_two_filler_lines(self):
        """Test noise lines before the MRZ are ignored."""
        text = "PASSPORT\nsome<noise\n" + SAMPLE_MRZ + "\n\nfooter text"
        parsed = parse_mrz(text)

        assert parsed.mrz_present is True
        assert parsed.date_of_birth == "1980-01-01"

    def test_windows_line_endings(self):
        """Test CRLF input parses like LF input."""
        parsed = parse_mrz(SAMPLE_MRZ.replace("\n", "\r\n"))
        assert parsed.date_of_birth == "1980-01-01"

    @pytest.mark.parametrize("text", [
        "",
        "hello\nworld",
        "only<one<line",
        "<\n",
    ])
    def test_fewer_than_two_lines(self, text):
        """Test short input reports no MRZ and no fields, without raising."""
        parsed = parse_mrz(text)

        assert parsed.mrz_present is False
        assert parsed.mrz_valid is False
        assert parsed.full_name is None
        assert parsed.document_number is None
        assert parsed.date_of_birth is None

    def test_none_input(self):
        """Test None is handled like empty text."""
        assert parse_mrz(None).mrz_present is False


class TestYymmddToIso:
    """Test two-digit year expansion."""

    def test_pivot_at_fifty(self):
        """Test 50-99 map to the 1900s and 00-49 to the 2000s."""
        assert yymmdd_to_iso("800101") == "1980-01-01"
        assert yymmdd_to_iso("500101") == "1950-01-01"
        assert yymmdd_to_iso("491231") == "2049-12-31"
        assert yymmdd_to_iso("000229") == "2000-02-29"

    @pytest.mark.parametrize("value", ["001301", "000001", "010100", "010132", "12345", "12345A"])
    def test_rejects_implausible(self, value):
        """Test invalid month/day or malformed values give None."""
        assert yymmdd_to_iso(value) is None
