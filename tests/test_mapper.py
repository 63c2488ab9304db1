"""Tests for vendor-to-canonical field mapping."""

from decimal import Decimal

import pytest

from taxdoc_resolver.mapper import StructuredFieldMapper
from taxdoc_resolver.models import DocumentSubtype, StructuredExtractionResult
from taxdoc_resolver.profiles import profile_for

from conftest import DIV_FIELDS, W2_FIELDS


@pytest.fixture
def mapper():
    return StructuredFieldMapper()


def result(fields, **kwargs):
    return StructuredExtractionResult(model_id="prebuilt-tax.us.w2", fields=fields, **kwargs)


class TestProfileMapping:
    """Fixed key tables for recognized subtypes."""

    def test_w2_fields(self, mapper):
        """Every W-2 vendor key maps to its canonical name."""
        mapped = mapper.map(result(dict(W2_FIELDS)), profile_for(DocumentSubtype.W2))
        assert mapped["employeeName"] == "JOHN Q SMITH"
        assert mapped["employeeSSN"] == "123-45-6789"
        assert mapped["employerEIN"] == "12-3456789"
        assert mapped["wages"] == Decimal("52000")
        assert mapped["federalTaxWithheld"] == Decimal("6240")
        assert mapped["medicareTaxWithheld"] == Decimal("754")
        assert "allocatedTips" not in mapped

    def test_alternate_keys(self, mapper):
        """Older vendor key spellings are accepted."""
        fields = {"EmployeeName": "  JANE\nDOE ", "WagesTipsAndOtherCompensation": "$1,000.00"}
        mapped = mapper.map(result(fields), profile_for(DocumentSubtype.W2))
        assert mapped == {"employeeName": "JANE DOE", "wages": Decimal("1000.00")}

    def test_first_present_key_wins(self, mapper):
        """When several spellings are present the first in the table is used."""
        fields = {"Employee.Name": "JOHN SMITH", "EmployeeName": "SOMEONE ELSE"}
        mapped = mapper.map(result(fields), profile_for(DocumentSubtype.W2))
        assert mapped["employeeName"] == "JOHN SMITH"

    def test_tax_id_spaces_removed(self, mapper):
        """Spaces inside tax IDs are removed."""
        mapped = mapper.map(result({"Employee.SSN": "123 45 6789"}), profile_for(DocumentSubtype.W2))
        assert mapped["employeeSSN"] == "123456789"

    @pytest.mark.parametrize("raw", ["N/A", "", None, "-250.00"])
    def test_unparsable_amount_absent(self, mapper, raw):
        """Amounts that do not parse are left out rather than zeroed."""
        mapped = mapper.map(result({"WagesAndTips": raw}), profile_for(DocumentSubtype.W2))
        assert "wages" not in mapped

    def test_list_amounts(self, mapper):
        """Repeating state boxes keep every parsable amount."""
        fields = {"StateWagesTipsEtc": [1000.0, "2,000.00", None]}
        mapped = mapper.map(result(fields), profile_for(DocumentSubtype.W2))
        assert mapped["stateWages"] == [Decimal("1000.0"), Decimal("2000.00")]

    def test_non_text_value_for_text_field(self, mapper):
        """Booleans are not names."""
        mapped = mapper.map(result({"Employee.Name": True}), profile_for(DocumentSubtype.W2))
        assert "employeeName" not in mapped

    def test_subtype_table_limits_fields(self, mapper):
        """A 1099-DIV profile ignores keys that belong to other variants."""
        mapped = mapper.map(result(dict(DIV_FIELDS)), profile_for(DocumentSubtype.FORM_1099_DIV))
        assert mapped["ordinaryDividends"] == Decimal("1200.5")
        assert mapped["payerName"] == "ACME FUND"
        assert "nonemployeeCompensation" not in mapped

    def test_vendor_result_not_mutated(self, mapper):
        """Mapping never modifies the vendor field map."""
        fields = dict(W2_FIELDS)
        mapper.map(result(fields), profile_for(DocumentSubtype.W2))
        assert fields == W2_FIELDS


class TestPassThrough:
    """Unrecognized subtypes copy vendor fields as-is."""

    def test_copies_primitives(self, mapper):
        """Primitive values are copied, nested structures skipped."""
        source = result(
            {"Foo": " bar ", "Amount": 12.5, "Flag": True, "Nested": {"a": 1}},
            key_value_pairs={"Account number:": " 998877 ", "Foo": "other"},
        )
        mapped = mapper.map(source, profile_for(DocumentSubtype.UNKNOWN))
        assert mapped == {
            "Foo": "bar",
            "Amount": Decimal("12.5"),
            "Flag": "true",
            "Account number": "998877",
        }

    def test_empty_result(self, mapper):
        """An empty result maps to nothing."""
        assert mapper.pass_through(result({})) == {}
