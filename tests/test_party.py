"""Tests for party identity extraction."""

import pytest

from taxdoc_resolver.models import FormFamily
from taxdoc_resolver.party import PartyInfoExtractor

from conftest import INT_TRANSCRIPT, W2_TRANSCRIPT


@pytest.fixture
def extractor():
    return PartyInfoExtractor()


class TestW2Parties:
    """Employee and employer blocks of a W-2."""

    def test_employee(self, extractor):
        """Employee name, SSN and address are read from their boxes."""
        info = extractor.extract(W2_TRANSCRIPT)
        assert info.family is FormFamily.W2
        assert info.name == "JOHN Q SMITH"
        assert info.tax_id == "123-45-6789"
        assert info.address == "123 MAIN ST AUSTIN TX 78701"

    def test_employer(self, extractor):
        """Employer name, EIN and address are read from box b and c."""
        info = extractor.extract(W2_TRANSCRIPT)
        assert info.counterpart_name == "ACME MANUFACTURING INC"
        assert info.counterpart_tax_id == "12-3456789"
        assert info.counterpart_address == "500 Industrial Blvd, Dallas, TX 75201"

    def test_as_fields(self, extractor):
        """W-2 parties map to employee and employer field names."""
        fields = extractor.extract(W2_TRANSCRIPT).as_fields()
        assert fields["employeeName"] == "JOHN Q SMITH"
        assert fields["employerEIN"] == "12-3456789"
        assert not any(key.startswith(("payer", "recipient")) for key in fields)


class TestForm1099Parties:
    """Recipient and payer blocks of a 1099."""

    def test_recipient(self, extractor):
        """Recipient name, masked TIN and two-line address are read."""
        info = extractor.extract(INT_TRANSCRIPT)
        assert info.family is FormFamily.FORM_1099
        assert info.name == "Jane Doe"
        assert info.tax_id == "XXX-XX-6789"
        assert info.address == "456 Oak Avenue Apt 2 Springfield, IL 62704"

    def test_payer(self, extractor):
        """The payer block shares one line with the payer address."""
        info = extractor.extract(INT_TRANSCRIPT)
        assert info.counterpart_name == "First National Bank"
        assert info.counterpart_tax_id == "31-1234567"
        assert info.counterpart_address == "100 Bank Plaza, Columbus, OH 43215"

    def test_as_fields(self, extractor):
        """1099 parties map to recipient and payer field names."""
        fields = extractor.extract(INT_TRANSCRIPT).as_fields()
        assert fields["recipientName"] == "Jane Doe"
        assert fields["payerTIN"] == "31-1234567"
        assert "employeeName" not in fields

    def test_curly_apostrophes(self, extractor):
        """Typographic apostrophes in labels do not block matching."""
        info = extractor.extract(INT_TRANSCRIPT.replace("'", "’"))
        assert info.name == "Jane Doe"
        assert info.counterpart_tax_id == "31-1234567"


class TestEdgeCases:

    def test_empty_transcript(self, extractor):
        """An empty transcript yields no party fields."""
        info = extractor.extract("")
        assert info.as_fields() == {}

    def test_labels_are_not_values(self, extractor):
        """A blank form never reports its captions as names."""
        text = "Form W-2 Wage and Tax Statement\nEmployee's name\nEmployer's name, address, and ZIP code\n"
        info = extractor.extract(text)
        assert info.name is None
        assert info.counterpart_name is None

    def test_default_family_for_undecided_text(self, extractor):
        """Transcripts with no family indicators use the caller's family."""
        assert extractor.detect_family("nothing here", FormFamily.FORM_1099) is FormFamily.FORM_1099
        assert extractor.detect_family("nothing here", FormFamily.UNKNOWN) is FormFamily.W2
