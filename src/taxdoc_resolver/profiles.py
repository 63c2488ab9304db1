"""Per-subtype resolution profiles.

One lookup table maps each document subtype to everything the resolver
needs for it: the remote model id, the vendor field mapping, the pattern
groups, the fields subject to reconciliation and the cross-contamination
repairs. Built once at import; read-only afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import DocumentSubtype, FormFamily
from .patterns import FORM_1099_PARTY, W2_PARTY


class ValueKind(str, Enum):
    """How a vendor value is cleaned before it enters the field map."""
    AMOUNT = "amount"
    TEXT = "text"
    TAX_ID = "tax_id"


@dataclass(frozen=True)
class FieldMapping:
    """Vendor keys (first present wins) feeding one canonical field."""
    vendor_keys: tuple[str, ...]
    canonical: str
    kind: ValueKind = ValueKind.AMOUNT


@dataclass(frozen=True)
class SwapRule:
    """A known mis-boxing: a value belonging to `target` reported in `source`."""
    name: str
    source: str
    target: str


@dataclass(frozen=True)
class AddressFields:
    """Parent address field and the sub-fields derived from it."""
    parent: str
    street: str
    city: str
    state: str
    zip_code: str


@dataclass(frozen=True)
class SubtypeProfile:
    subtype: DocumentSubtype
    model_id: Optional[str]
    field_map: tuple[FieldMapping, ...]
    pattern_group: Optional[str]
    party_group: Optional[str]
    critical_fields: tuple[str, ...] = ()
    swap_rules: tuple[SwapRule, ...] = ()
    address_fields: Optional[AddressFields] = None

    @property
    def family(self) -> FormFamily:
        return self.subtype.family


def _m(keys, canonical: str, kind: ValueKind = ValueKind.AMOUNT) -> FieldMapping:
    if isinstance(keys, str):
        keys = (keys,)
    return FieldMapping(tuple(keys), canonical, kind)


W2_MODEL_ID = "prebuilt-tax.us.w2"
FORM_1099_MODEL_ID = "prebuilt-tax.us.1099"

W2_FIELD_MAP = (
    _m(("Employee.Name", "EmployeeName", "Employee_Name", "RecipientName"), "employeeName", ValueKind.TEXT),
    _m(
        ("Employee.SSN", "Employee.SocialSecurityNumber", "EmployeeSSN", "Employee_SSN", "RecipientTIN"),
        "employeeSSN", ValueKind.TAX_ID,
    ),
    _m(("Employee.Address", "EmployeeAddress", "Employee_Address", "RecipientAddress"), "employeeAddress", ValueKind.TEXT),
    _m("Employer.Name", "employerName", ValueKind.TEXT),
    _m(("Employer.EIN", "Employer.IdNumber"), "employerEIN", ValueKind.TAX_ID),
    _m("Employer.Address", "employerAddress", ValueKind.TEXT),
    _m(("WagesAndTips", "WagesTipsAndOtherCompensation"), "wages"),
    _m("FederalIncomeTaxWithheld", "federalTaxWithheld"),
    _m("SocialSecurityWages", "socialSecurityWages"),
    _m("SocialSecurityTaxWithheld", "socialSecurityTaxWithheld"),
    _m("MedicareWagesAndTips", "medicareWages"),
    _m("MedicareTaxWithheld", "medicareTaxWithheld"),
    _m("SocialSecurityTips", "socialSecurityTips"),
    _m("AllocatedTips", "allocatedTips"),
    _m("StateWagesTipsEtc", "stateWages"),
    _m("StateIncomeTax", "stateTaxWithheld"),
    _m("LocalWagesTipsEtc", "localWages"),
    _m("LocalIncomeTax", "localTaxWithheld"),
)

_FORM_1099_COMMON = (
    _m("Payer.Name", "payerName", ValueKind.TEXT),
    _m(("Payer.TIN", "Payer.TaxIdentificationNumber"), "payerTIN", ValueKind.TAX_ID),
    _m("Payer.Address", "payerAddress", ValueKind.TEXT),
    _m("Recipient.Name", "recipientName", ValueKind.TEXT),
    _m(("Recipient.TIN", "Recipient.TaxIdentificationNumber"), "recipientTIN", ValueKind.TAX_ID),
    _m("Recipient.Address", "recipientAddress", ValueKind.TEXT),
    _m("FederalIncomeTaxWithheld", "federalTaxWithheld"),
)

FORM_1099_INT_FIELD_MAP = _FORM_1099_COMMON + (
    _m("InterestIncome", "interestIncome"),
    _m("EarlyWithdrawalPenalty", "earlyWithdrawalPenalty"),
    _m("InterestOnUSTreasuryObligations", "interestOnUSavingsBonds"),
    _m("InvestmentExpenses", "investmentExpenses"),
    _m("ForeignTaxPaid", "foreignTaxPaid"),
    _m("TaxExemptInterest", "taxExemptInterest"),
)

FORM_1099_DIV_FIELD_MAP = _FORM_1099_COMMON + (
    _m("OrdinaryDividends", "ordinaryDividends"),
    _m("QualifiedDividends", "qualifiedDividends"),
    _m("TotalCapitalGainDistributions", "totalCapitalGain"),
    _m("NondividendDistributions", "nondividendDistributions"),
    _m("Section199ADividends", "section199ADividends"),
)

FORM_1099_MISC_FIELD_MAP = _FORM_1099_COMMON + (
    _m("Rents", "rents"),
    _m("Royalties", "royalties"),
    _m("OtherIncome", "otherIncome"),
    _m("FishingBoatProceeds", "fishingBoatProceeds"),
    _m("MedicalAndHealthCarePayments", "medicalHealthPayments"),
    _m("NonemployeeCompensation", "nonemployeeCompensation"),
)

FORM_1099_NEC_FIELD_MAP = _FORM_1099_COMMON + (
    _m("NonemployeeCompensation", "nonemployeeCompensation"),
)

W2_ADDRESS = AddressFields(
    "employeeAddress", "employeeAddressStreet", "employeeCity", "employeeState", "employeeZipCode",
)
FORM_1099_ADDRESS = AddressFields(
    "recipientAddress", "recipientAddressStreet", "recipientCity", "recipientState", "recipientZipCode",
)


def _form_1099(
    subtype: DocumentSubtype,
    field_map: tuple[FieldMapping, ...],
    critical: tuple[str, ...],
    swaps: tuple[SwapRule, ...],
) -> SubtypeProfile:
    return SubtypeProfile(
        subtype=subtype,
        model_id=FORM_1099_MODEL_ID,
        field_map=field_map,
        pattern_group=subtype.value,
        party_group=FORM_1099_PARTY,
        critical_fields=critical,
        swap_rules=swaps,
        address_fields=FORM_1099_ADDRESS,
    )


PROFILES: dict[DocumentSubtype, SubtypeProfile] = {
    DocumentSubtype.W2: SubtypeProfile(
        subtype=DocumentSubtype.W2,
        model_id=W2_MODEL_ID,
        field_map=W2_FIELD_MAP,
        pattern_group=DocumentSubtype.W2.value,
        party_group=W2_PARTY,
        critical_fields=("wages", "federalTaxWithheld"),
        swap_rules=(
            SwapRule("w2_withholding_to_wages", "federalTaxWithheld", "wages"),
        ),
        address_fields=W2_ADDRESS,
    ),
    DocumentSubtype.FORM_1099_INT: _form_1099(
        DocumentSubtype.FORM_1099_INT,
        FORM_1099_INT_FIELD_MAP,
        ("interestIncome", "federalTaxWithheld"),
        (SwapRule("int_withholding_to_interest", "federalTaxWithheld", "interestIncome"),),
    ),
    DocumentSubtype.FORM_1099_DIV: _form_1099(
        DocumentSubtype.FORM_1099_DIV,
        FORM_1099_DIV_FIELD_MAP,
        ("ordinaryDividends", "qualifiedDividends", "federalTaxWithheld"),
        (SwapRule("div_withholding_to_ordinary", "federalTaxWithheld", "ordinaryDividends"),),
    ),
    DocumentSubtype.FORM_1099_MISC: _form_1099(
        DocumentSubtype.FORM_1099_MISC,
        FORM_1099_MISC_FIELD_MAP,
        ("rents", "royalties", "otherIncome", "fishingBoatProceeds", "federalTaxWithheld"),
        (
            SwapRule("misc_fishing_boat_to_other_income", "fishingBoatProceeds", "otherIncome"),
            SwapRule("misc_other_income_to_fishing_boat", "otherIncome", "fishingBoatProceeds"),
            SwapRule("misc_rents_to_other_income", "rents", "otherIncome"),
            SwapRule("misc_withholding_to_other_income", "federalTaxWithheld", "otherIncome"),
        ),
    ),
    DocumentSubtype.FORM_1099_NEC: _form_1099(
        DocumentSubtype.FORM_1099_NEC,
        FORM_1099_NEC_FIELD_MAP,
        ("nonemployeeCompensation", "federalTaxWithheld"),
        (SwapRule("nec_withholding_to_compensation", "federalTaxWithheld", "nonemployeeCompensation"),),
    ),
    DocumentSubtype.UNKNOWN: SubtypeProfile(
        subtype=DocumentSubtype.UNKNOWN,
        model_id=None,
        field_map=(),
        pattern_group=None,
        party_group=None,
    ),
}


def profile_for(subtype: DocumentSubtype) -> SubtypeProfile:
    return PROFILES.get(subtype, PROFILES[DocumentSubtype.UNKNOWN])
