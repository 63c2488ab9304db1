"""Field pattern library.

Prioritized text patterns per (pattern group, canonical field). A pattern
group is either a document subtype (monetary boxes) or a form family's
party-info block. The library is immutable data built once at import
and shared read-only by every resolution call.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from .models import DocumentSubtype, FormFamily
from .validators import (
    validate_address,
    validate_amount,
    validate_organization_name,
    validate_person_name,
    validate_tax_id,
)

Validator = Callable[[str], Any]

W2_PARTY = "W2_PARTY"
FORM_1099_PARTY = "FORM_1099_PARTY"

STREET_SUFFIXES = (
    "ST|STREET|AVE|AVENUE|RD|ROAD|DR|DRIVE|BLVD|BOULEVARD|LN|LANE|CT|COURT|"
    "PL|PLACE|WAY|PKWY|PARKWAY|CIR|CIRCLE|HWY|HIGHWAY|TER|TERRACE|TRL|TRAIL"
)
UNIT_WORDS = "APT|APARTMENT|UNIT|SUITE|STE"
ZIP = r"\d{5}(?:-\d{4})?"

# Amount capture: grouped thousands, decimals, or a bare integer not followed
# by a word on the same line (which would be the next box's label)
AMOUNT = r"(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+\.\d{1,2}|\d+(?![\d.,])(?![^\S\n]*[A-Za-z(]))"
GAP = r"[:.\s$]*"


@dataclass(frozen=True)
class PatternRule:
    """One expression in a cascade and the groups that form its value."""
    id: str
    expression: re.Pattern
    groups: tuple[int, ...] = (1,)

    def capture(self, match: re.Match) -> Optional[str]:
        parts = [match.group(g) for g in self.groups]
        if any(p is None for p in parts):
            return None
        return " ".join(p.strip() for p in parts)


@dataclass(frozen=True)
class ContextWindow:
    """Label bounds of a box for the context-window tier."""
    start: re.Pattern
    end: Optional[re.Pattern] = None


@dataclass(frozen=True)
class FieldPattern:
    """Ordered rules and a validator for one canonical field."""
    id: str
    subtype: str
    field: str
    rules: tuple[PatternRule, ...]
    validator: Validator
    normalize: bool = False
    context: Optional[ContextWindow] = None
    global_scan: bool = False

    @property
    def is_monetary(self) -> bool:
        return self.validator is validate_amount


def _rule(rule_id: str, pattern: str, *groups: int, flags: int = re.IGNORECASE) -> PatternRule:
    return PatternRule(rule_id, re.compile(pattern, flags), groups or (1,))


def _window(start: str, end: Optional[str] = None) -> ContextWindow:
    return ContextWindow(
        re.compile(start, re.IGNORECASE),
        re.compile(end, re.IGNORECASE) if end else None,
    )


def _box_rules(prefix: str, box: str, label: str) -> tuple[PatternRule, ...]:
    """Standard cascade for a numbered box: number+label, label, 'Box N'."""
    return (
        _rule(f"{prefix}_BOX_LABEL", rf"\b{box}\.?\s+{label}{GAP}{AMOUNT}"),
        _rule(f"{prefix}_LABEL", rf"{label}{GAP}{AMOUNT}"),
        _rule(f"{prefix}_BOX_NUMBER", rf"\bBox\s*{box}\b{GAP}{AMOUNT}"),
    )


def _amount(
    subtype: DocumentSubtype,
    field: str,
    rules: Iterable[PatternRule],
    *,
    context: Optional[ContextWindow] = None,
    global_scan: bool = False,
) -> FieldPattern:
    return FieldPattern(
        id=f"{subtype.value}.{field}",
        subtype=subtype.value,
        field=field,
        rules=tuple(rules),
        validator=validate_amount,
        normalize=context is not None,
        context=context,
        global_scan=global_scan,
    )


def _party(group: str, field: str, validator: Validator, rules: Iterable[PatternRule]) -> FieldPattern:
    return FieldPattern(
        id=f"{group}.{field}",
        subtype=group,
        field=field,
        rules=tuple(rules),
        validator=validator,
    )


# =============================================================================
# W-2 BOXES
# =============================================================================

_WAGES_LABEL = r"Wages[,\s]*tips[,\s]*other\s+comp(?:ensation|\.)?"
_FEDERAL_WITHHELD_LABEL = r"Federal\s+income\s+tax\s+withheld"

W2_PATTERNS = (
    _amount(
        DocumentSubtype.W2, "wages",
        _box_rules("W2_WAGES", "1", _WAGES_LABEL) + (
            _rule("W2_WAGES_AND_TIPS", rf"(?<!Medicare\s)Wages\s+and\s+tips{GAP}{AMOUNT}"),
        ),
        context=_window(r"\b1\.?\s+Wages", r"\b2\.?\s+Federal\s+income"),
        global_scan=True,
    ),
    _amount(
        DocumentSubtype.W2, "federalTaxWithheld",
        _box_rules("W2_FEDERAL_WITHHELD", "2", _FEDERAL_WITHHELD_LABEL),
        context=_window(r"\b2\.?\s+Federal\s+income\s+tax", r"\b3\.?\s+Social\s+security"),
    ),
    _amount(
        DocumentSubtype.W2, "socialSecurityWages",
        _box_rules("W2_SS_WAGES", "3", r"Social\s+security\s+wages"),
    ),
    _amount(
        DocumentSubtype.W2, "socialSecurityTaxWithheld",
        _box_rules("W2_SS_TAX", "4", r"Social\s+security\s+tax\s+withheld"),
    ),
    _amount(
        DocumentSubtype.W2, "medicareWages",
        _box_rules("W2_MEDICARE_WAGES", "5", r"Medicare\s+wages\s+and\s+tips"),
    ),
    _amount(
        DocumentSubtype.W2, "medicareTaxWithheld",
        _box_rules("W2_MEDICARE_TAX", "6", r"Medicare\s+tax\s+withheld"),
    ),
    _amount(
        DocumentSubtype.W2, "socialSecurityTips",
        _box_rules("W2_SS_TIPS", "7", r"Social\s+security\s+tips"),
    ),
    _amount(
        DocumentSubtype.W2, "allocatedTips",
        _box_rules("W2_ALLOCATED_TIPS", "8", r"Allocated\s+tips"),
    ),
)


# =============================================================================
# 1099 BOXES
# =============================================================================

def _federal_withheld_1099(subtype: DocumentSubtype, end: str) -> FieldPattern:
    return _amount(
        subtype, "federalTaxWithheld",
        _box_rules(f"{subtype.value}_FEDERAL_WITHHELD", "4", _FEDERAL_WITHHELD_LABEL),
        context=_window(r"\b4\.?\s+Federal\s+income\s+tax\s+withheld", end),
    )


FORM_1099_INT_PATTERNS = (
    _amount(
        DocumentSubtype.FORM_1099_INT, "interestIncome",
        _box_rules("INT_INTEREST", "1", r"Interest\s+income"),
        context=_window(r"\b1\.?\s+Interest\s+income", r"\b2\.?\s+Early\s+withdrawal"),
        global_scan=True,
    ),
    _amount(
        DocumentSubtype.FORM_1099_INT, "earlyWithdrawalPenalty",
        _box_rules("INT_EARLY_WITHDRAWAL", "2", r"Early\s+withdrawal\s+penalty"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_INT, "interestOnUSavingsBonds",
        _box_rules(
            "INT_SAVINGS_BONDS", "3",
            r"Interest\s+on\s+U\.?\s*S\.?\s+Savings\s+Bonds(?:\s+and\s+Treas(?:ury|\.)\s+obligations)?",
        ),
    ),
    _federal_withheld_1099(DocumentSubtype.FORM_1099_INT, r"\b5\.?\s+Investment\s+expenses"),
    _amount(
        DocumentSubtype.FORM_1099_INT, "investmentExpenses",
        _box_rules("INT_INVESTMENT_EXPENSES", "5", r"Investment\s+expenses"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_INT, "foreignTaxPaid",
        _box_rules("INT_FOREIGN_TAX", "6", r"Foreign\s+tax\s+paid"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_INT, "taxExemptInterest",
        _box_rules("INT_TAX_EXEMPT", "8", r"Tax[-\s]exempt\s+interest"),
    ),
)

FORM_1099_DIV_PATTERNS = (
    _amount(
        DocumentSubtype.FORM_1099_DIV, "ordinaryDividends",
        _box_rules("DIV_ORDINARY", "1a", r"(?:Total\s+)?ordinary\s+dividends"),
        context=_window(r"\b1a\.?\s+Total\s+ordinary", r"\b1b\.?\s+Qualified"),
        global_scan=True,
    ),
    _amount(
        DocumentSubtype.FORM_1099_DIV, "qualifiedDividends",
        _box_rules("DIV_QUALIFIED", "1b", r"Qualified\s+dividends"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_DIV, "totalCapitalGain",
        _box_rules("DIV_CAPITAL_GAIN", "2a", r"Total\s+capital\s+gain\s+distr(?:ibutions|\.)?"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_DIV, "nondividendDistributions",
        _box_rules("DIV_NONDIVIDEND", "3", r"Nondividend\s+distributions"),
    ),
    _federal_withheld_1099(DocumentSubtype.FORM_1099_DIV, r"\b5\.?\s+Section\s+199A"),
    _amount(
        DocumentSubtype.FORM_1099_DIV, "section199ADividends",
        _box_rules("DIV_199A", "5", r"Section\s+199A\s+dividends"),
    ),
)

FORM_1099_MISC_PATTERNS = (
    _amount(
        DocumentSubtype.FORM_1099_MISC, "rents",
        _box_rules("MISC_RENTS", "1", r"Rents"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_MISC, "royalties",
        _box_rules("MISC_ROYALTIES", "2", r"Royalties"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_MISC, "otherIncome",
        _box_rules("MISC_OTHER_INCOME", "3", r"Other\s+income"),
        context=_window(r"\b3\.?\s+Other\s+in", r"\b4\.?\s+Federal\s+income|\b5\.?\s+Fishing"),
        global_scan=True,
    ),
    _federal_withheld_1099(DocumentSubtype.FORM_1099_MISC, r"\b5\.?\s+Fishing\s+boat"),
    _amount(
        DocumentSubtype.FORM_1099_MISC, "fishingBoatProceeds",
        _box_rules("MISC_FISHING_BOAT", "5", r"Fishing\s+boat\s+proceeds"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_MISC, "medicalHealthPayments",
        _box_rules("MISC_MEDICAL", "6", r"Medical\s+and\s+health\s+care\s+payments"),
    ),
    _amount(
        DocumentSubtype.FORM_1099_MISC, "nonemployeeCompensation",
        _box_rules("MISC_NONEMPLOYEE", "7", r"Nonemployee\s+compensation"),
    ),
)

FORM_1099_NEC_PATTERNS = (
    _amount(
        DocumentSubtype.FORM_1099_NEC, "nonemployeeCompensation",
        _box_rules("NEC_NONEMPLOYEE", "1", r"Nonemployee\s+compensation"),
        context=_window(r"\b1\.?\s+Nonemployee\s+comp", r"\b2\.?\s+Payer\s+made|\b4\.?\s+Federal"),
        global_scan=True,
    ),
    _federal_withheld_1099(DocumentSubtype.FORM_1099_NEC, r"\b5\.?\s+State\s+tax"),
)


# =============================================================================
# W-2 PARTY INFORMATION
# =============================================================================

_W2_COMBINED = (
    r"e/f\s+Employee's\s+name,?\s+address,?\s+and\s+ZIP\s+code\s+"
    r"([A-Z][A-Z\s]+?)\s+(\d+[^\n]*?)\s*(?:\n|$)"
)
_W2_NAME_LINE = r"Employee's\s+first\s+name\s+and\s+initial\s+Last\s+name\s+"

W2_PARTY_PATTERNS = (
    _party(W2_PARTY, "employeeName", validate_person_name, (
        _rule("W2_COMBINED_NAME_ADDRESS", _W2_COMBINED, 1),
        _rule(
            "W2_SPLIT_NAME",
            r"e\s+Employee's\s+first\s+name\s+and\s+initial\s+([A-Z][A-Z \t]+?)\s+"
            r"Last\s+name\s+([A-Z][A-Z \t]+?)(?=\s+\d|\s*\n|\s+f\s+Employee's|\s*$)",
            1, 2,
        ),
        _rule(
            "W2_NAME_LINE",
            _W2_NAME_LINE + r"([A-Za-z \t]+?)(?=\s+\d|\s*\n|\s+(?:f\s+)?Employee's\s+address|\s*$)",
        ),
        _rule(
            "W2_EMPLOYEE_NAME_LABEL",
            r"Employee(?:'s)?\s+name[:\s]+([A-Za-z \t]+?)"
            r"(?=\s+\d|\s*\n|\s+Employee's|\s+SSN|\s+Social|\s+Address|\s*$)",
        ),
        _rule(
            "EMPLOYEE_LABEL",
            r"\bEmployee[:\s]+([A-Za-z \t]+?)(?=\s*\n|\s+Employee's|\s+SSN|\s+Social|\s+Address|\s+Employer|\s*$)",
        ),
        _rule(
            "W2_RECIPIENT_NAME",
            r"Recipient(?:'s)?\s+name[:\s]+([A-Za-z \t]+?)(?=\s+\d|\s*\n|\s+address|\s+SSN|\s*$)",
        ),
        _rule(
            "CAPITALIZED_NAME_BEFORE_ADDRESS",
            rf"\b([A-Z][A-Z \t]+?)\s+\d+\s+[A-Z][A-Z \t]+?\b(?:{STREET_SUFFIXES})\b",
            flags=0,
        ),
        _rule(
            "CAPITALIZED_NAME_BEFORE_NUMBER",
            r"\b([A-Z][A-Z \t]{2,30}?)\s+(?=\d+\s+[A-Z])",
            flags=0,
        ),
        _rule(
            "CAPITALIZED_NAME_BEFORE_LABEL",
            r"\b([A-Z][A-Z \t]{8,40}?)\s+(?=(?i:Employee's\s+address|address|social|SSN)|\d{3}-\d{2}-\d{4})",
            flags=0,
        ),
    )),
    _party(W2_PARTY, "employeeSSN", validate_tax_id, (
        _rule("W2_SSN_UNDASHED", r"a\s+Employee's\s+social\s+security\s+number\s+(\d{9})\b"),
        _rule(
            "W2_SSN_NEXT_LINE",
            r"Employee's\s+social\s+security\s+(?:number|no\.?)\s*\n\s*(\d{3}-\d{2}-\d{4}|[X*]{3}-[X*]{2}-\d{4})",
        ),
        _rule(
            "W2_SSN_SAME_LINE",
            r"Employee's\s+social\s+security\s+number[:\s]+(\d{3}-?\d{2}-?\d{4}|[X*]{3}-[X*]{2}-\d{4})\b",
        ),
        _rule("SOCIAL_SECURITY_NUMBER", r"social\s+security\s+number[:\s]+(\d{3}-?\d{2}-?\d{4})\b"),
        _rule("SSN_LABEL", r"\bSSN[:\s#]*(\d{3}-\d{2}-\d{4}|\d{9}\b)"),
        _rule("SSN_SHAPE", r"(?<![\d-])(\d{3}-\d{2}-\d{4})(?![\d-])", flags=0),
    )),
    _party(W2_PARTY, "employeeAddress", validate_address, (
        _rule("W2_COMBINED_NAME_ADDRESS", _W2_COMBINED, 2),
        _rule(
            "W2_NAME_LINE_ADDRESS",
            _W2_NAME_LINE + rf"[A-Za-z \t]+?\s+(\d+[^\n]*?\b[A-Z]{{2}},?\s+{ZIP})",
        ),
        _rule(
            "W2_ADDRESS_SAME_LINE",
            r"f\s+Employee's\s+address\s+and\s+ZIP\s+code[ \t]+(\d+\s+[A-Za-z][^\n]*?)"
            r"(?=\s*\n|\s+a\s+Employee's\s+social|\s*$)",
        ),
        _rule(
            "W2_ADDRESS_NEXT_LINES",
            rf"Employee's\s+address\s+and\s+ZIP\s+code[^\n]*\n\s*([^\n]+(?:\n[^\n]*?\b[A-Z]{{2}},?\s+{ZIP})?)",
        ),
        _rule("EMPLOYEE_ADDRESS_LABEL", r"Employee(?:'s)?\s+address:\s*([^\n]+)"),
        _rule(
            "STANDALONE_FULL_ADDRESS",
            rf"\b(\d+\s+[A-Z][A-Z \t]+?\b(?:{STREET_SUFFIXES})\.?"
            rf"(?:,?\s+(?:{UNIT_WORDS})\.?\s*#?\s*[A-Z0-9-]+)?,?\s+[A-Z][A-Z \t]*?,?\s+[A-Z]{{2}}\s+{ZIP})\b",
        ),
        _rule("PO_BOX_FULL_ADDRESS", rf"\b(P\.?\s?O\.?\s+BOX\s+\d+,?\s+[A-Z][A-Z \t]*?,?\s+[A-Z]{{2}}\s+{ZIP})\b"),
        _rule(
            "RURAL_ROUTE_FULL_ADDRESS",
            rf"\b((?:RR|RURAL\s+ROUTE)\s+\d+\s+BOX\s+\d+,?\s+[A-Z][A-Z \t]*?,?\s+[A-Z]{{2}}\s+{ZIP})\b",
        ),
        _rule("GENERIC_ADDRESS_LABEL", rf"\bAddress:\s*([^\n]+(?:\n[^\n]*?\b[A-Z]{{2}},?\s+{ZIP})?)"),
        _rule(
            "STREET_WITH_UNIT",
            rf"\b(\d+\s+[A-Z][A-Z \t]+?\b(?:{STREET_SUFFIXES})\.?,?\s+(?:{UNIT_WORDS})\.?\s*#?\s*[A-Z0-9-]+)\b",
        ),
        _rule("STREET_ONLY", rf"\b(\d+\s+[A-Z][A-Z \t]+?\b(?:{STREET_SUFFIXES}))\b"),
    )),
    _party(W2_PARTY, "employerName", validate_organization_name, (
        _rule(
            "W2_EMPLOYER_BLOCK_FIRST_LINE",
            r"c\s+Employer's\s+name,?\s+address,?\s+and\s+ZIP\s+code[ \t]*\n\s*([A-Za-z0-9][A-Za-z0-9 &.,'-]*?)[ \t]*(?:\n|$)",
        ),
        _rule(
            "W2_EMPLOYER_SAME_LINE",
            r"c\s+Employer's\s+name,?\s+address,?\s+and\s+ZIP\s+code[ \t]+([A-Za-z][A-Za-z&.,' -]*?)\s+\d",
        ),
        _rule(
            "EMPLOYER_LABEL",
            r"\bEmployer(?:'s)?(?:\s+name)?:\s*([A-Za-z0-9][A-Za-z0-9 &.'-]*?)(?=\s*(?:\n|,|$)|\s+\d+\s+[A-Za-z])",
        ),
    )),
    _party(W2_PARTY, "employerEIN", validate_tax_id, (
        _rule(
            "W2_EIN_BOX_B",
            r"b\s+Employer(?:'s)?\s+(?:identification\s+number|FED\s+ID\s+number)\s*(?:\(EIN\))?[:\s]*(\d{2}-?\d{7})\b",
        ),
        _rule("EMPLOYER_ID_NUMBER", r"Employer\s+identification\s+number[^\n\d]*(\d{2}-?\d{7})\b"),
        _rule("EIN_LABEL", r"\bEIN[^:\n]*:\s*(\d{2}-?\d{7})\b"),
        _rule("EIN_INLINE", r"\bEIN\s+(\d{2}-\d{7})\b"),
        _rule("EIN_SHAPE", r"(?<![\d-])(\d{2}-\d{7})(?![\d-])", flags=0),
    )),
    _party(W2_PARTY, "employerAddress", validate_address, (
        _rule(
            "W2_EMPLOYER_BLOCK_ADDRESS",
            r"c\s+Employer's\s+name,?\s+address,?\s+and\s+ZIP\s+code[ \t]*\n[^\n]*\n\s*"
            rf"([^\n]+(?:\n[^\n]*?\b[A-Z]{{2}},?\s+{ZIP})?)",
        ),
        _rule(
            "W2_EMPLOYER_SAME_LINE_ADDRESS",
            r"c\s+Employer's\s+name,?\s+address,?\s+and\s+ZIP\s+code[ \t]+[A-Za-z][A-Za-z&.,' -]*?\s+"
            rf"(\d+[^\n]*?\b[A-Z]{{2}},?\s+{ZIP})",
        ),
        _rule("EMPLOYER_INLINE_ADDRESS", rf"\bEmployer:\s*[^,\n]+,\s*([^\n]*?\b[A-Z]{{2}},?\s+{ZIP})"),
        _rule("EMPLOYER_ADDRESS_LABEL", r"Employer(?:'s)?\s+address:\s*([^\n]+)"),
    )),
)


# =============================================================================
# 1099 PARTY INFORMATION
# =============================================================================

_PAYER_LONG_LABEL = r"PAYER'S\s+name,\s+street\s+address,\s+city\s+or\s+town,[^\n]*?telephone\s+no\.?[ \t]*\n\s*"

FORM_1099_PARTY_PATTERNS = (
    _party(FORM_1099_PARTY, "recipientName", validate_person_name, (
        _rule("RECIPIENT_NAME_NEXT_LINE", r"RECIPIENT'?S?\s+name[ \t]*\n\s*([A-Za-z][A-Za-z \t]*?)[ \t]*(?:\n|$)"),
        _rule(
            "RECIPIENT_NAME_INLINE",
            r"RECIPIENT'?S?\s+name[:\s]+([A-Za-z \t]+?)(?=\s+\d|\s*\n|\s+RECIPIENT|\s+TIN|\s+address|\s+street|\s*$)",
        ),
        _rule(
            "RECIPIENT_LABEL",
            r"\bRecipient:\s*([A-Za-z \t]+?)(?=\s+\d|\s*\n|\s+TIN|\s+address|\s+street|\s*$)",
        ),
    )),
    _party(FORM_1099_PARTY, "recipientTIN", validate_tax_id, (
        _rule(
            "RECIPIENT_TIN_NEXT_LINE",
            r"RECIPIENT'?S?\s+(?:TIN|taxpayer\s+identification\s+(?:number|no\.?))[ \t]*\n\s*"
            r"([0-9X*]{3}-?[0-9X*]{2}-?\d{4}|\d{2}-\d{7})\b",
        ),
        _rule(
            "RECIPIENT_TIN_INLINE",
            r"RECIPIENT'?S?\s+(?:TIN|identification\s+number|taxpayer\s+identification\s+number)[:\s]*"
            r"(\d{3}-\d{2}-\d{4}|\d{2}-\d{7}|\d{9}|[X*]{3}-[X*]{2}-\d{4})\b",
        ),
        _rule(
            "RECIPIENT_SSN",
            r"RECIPIENT'?S?\s+(?:SSN|social\s+security(?:\s+number)?)[:\s]*(\d{3}-?\d{2}-?\d{4}|[X*]{3}-[X*]{2}-\d{4})\b",
        ),
    )),
    _party(FORM_1099_PARTY, "recipientAddress", validate_address, (
        _rule(
            "RECIPIENT_STREET_AND_CITY_LINES",
            r"Street\s+address\s+\(including\s+apt\.\s+no\.\)[ \t]*\n([^\n]+)\n"
            r"City\s+or\s+town,\s+state\s+or\s+province,\s+country,\s+and\s+ZIP\s+or\s+foreign\s+postal\s+code[ \t]*\n([^\n]+)",
            1, 2,
        ),
        _rule(
            "RECIPIENT_ADDRESS_FULL",
            rf"RECIPIENT'?S?\s+address[:\s]*\n?([A-Za-z0-9\s,.#-]+?\b(?:{STREET_SUFFIXES})\b"
            rf"[A-Za-z0-9\s,.#-]*?\b[A-Z]{{2}},?\s+{ZIP})",
        ),
        _rule(
            "RECIPIENT_ADDRESS_INLINE",
            rf"RECIPIENT'?S?\s+address[:\s]+([A-Za-z0-9\s,.#-]+?\b[A-Z]{{2}},?\s+{ZIP})",
        ),
        _rule(
            "RECIPIENT_ADDRESS_BLOCK",
            r"RECIPIENT'?S?\s+address[ \t]*\n([A-Za-z0-9\s,.#-]+?)(?=\n\s*\n|PAYER|\Z)",
        ),
    )),
    _party(FORM_1099_PARTY, "payerName", validate_organization_name, (
        _rule("PAYER_NAME_AFTER_LONG_LABEL", _PAYER_LONG_LABEL + r"([A-Za-z][A-Za-z&.,' \t-]*?)(?=\s+\d|\s*\n|\s*$)"),
        _rule("PAYER_NAME_NEXT_LINE", r"PAYER'?S?\s+name[ \t]*\n\s*([A-Za-z][A-Za-z&.,' \t-]*?)[ \t]*(?:\n|$)"),
        _rule("PAYER_NAME_INLINE", r"PAYER'?S?\s+name[:\s]+([A-Za-z][A-Za-z&.,' \t-]*?)(?=\s+\d|\s*\n|\s+PAYER|\s*$)"),
    )),
    _party(FORM_1099_PARTY, "payerTIN", validate_tax_id, (
        _rule("PAYER_TIN_NEXT_LINE", r"PAYER'?S?\s+TIN[ \t]*\n\s*(\d{2}-\d{7}|\d{9}|\d{3}-\d{2}-\d{4})\b"),
        _rule(
            "PAYER_TIN_INLINE",
            r"PAYER'?S?\s+(?:TIN|federal\s+identification\s+number)[:\s]*(\d{2}-\d{7}|\d{9}|\d{3}-\d{2}-\d{4})\b",
        ),
    )),
    _party(FORM_1099_PARTY, "payerAddress", validate_address, (
        _rule(
            "PAYER_ADDRESS_AFTER_LONG_LABEL",
            _PAYER_LONG_LABEL + rf"[A-Za-z][A-Za-z&.,' \t-]*?\s+(\d+[^\n]*?\b[A-Z]{{2}},?\s+{ZIP})",
        ),
        _rule(
            "PAYER_ADDRESS_INLINE",
            rf"PAYER'?S?\s+address[:\s]+([A-Za-z0-9\s,.#-]+?\b[A-Z]{{2}},?\s+{ZIP})",
        ),
        _rule("PAYER_ADDRESS_BLOCK", r"PAYER'?S?\s+address[ \t]*\n([A-Za-z0-9\s,.#-]+?)(?=\n\s*\n|RECIPIENT|\Z)"),
    )),
)


# =============================================================================
# LIBRARY
# =============================================================================

class PatternLibrary:
    """Read-only index of field patterns by group."""

    def __init__(self, patterns: Iterable[FieldPattern]) -> None:
        groups: dict[str, list[FieldPattern]] = {}
        for pattern in patterns:
            fields = groups.setdefault(pattern.subtype, [])
            if any(p.field == pattern.field for p in fields):
                raise ValueError(f"Duplicate pattern for {pattern.subtype}.{pattern.field}")
            fields.append(pattern)
        self._groups: dict[str, tuple[FieldPattern, ...]] = {
            key: tuple(value) for key, value in groups.items()
        }

    @property
    def groups(self) -> tuple[str, ...]:
        return tuple(self._groups)

    def group(self, key: str) -> tuple[FieldPattern, ...]:
        """Patterns of a group in priority order; empty for unknown groups."""
        return self._groups.get(key, ())

    def get(self, key: str, field: str) -> Optional[FieldPattern]:
        for pattern in self.group(key):
            if pattern.field == field:
                return pattern
        return None


def party_group(family: FormFamily) -> str:
    return FORM_1099_PARTY if family is FormFamily.FORM_1099 else W2_PARTY


DEFAULT_LIBRARY = PatternLibrary(
    W2_PATTERNS
    + FORM_1099_INT_PATTERNS
    + FORM_1099_DIV_PATTERNS
    + FORM_1099_MISC_PATTERNS
    + FORM_1099_NEC_PATTERNS
    + W2_PARTY_PATTERNS
    + FORM_1099_PARTY_PATTERNS
)
