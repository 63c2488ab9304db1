"""Field validators used by the pattern cascades.

Each validator takes the raw text captured by a pattern and returns the
cleaned value, or raises FieldValidationRejected so the cascade moves on
to its next pattern.
"""

import re
from decimal import Decimal

from .exceptions import FieldValidationRejected
from .normalizer import clean_tax_id, clean_text, parse_amount

AMOUNT_CEILING = Decimal("100000000")

# Words that only ever appear in form boilerplate, never in a person's name
NAME_BOILERPLATE = frozenset({
    "ADDRESS", "BOX", "CITY", "CODE", "COMPENSATION", "CONTROL", "COPY",
    "CORRECTED", "DEPARTMENT", "DIVIDENDS", "EARNINGS", "EIN", "EMPLOYEE",
    "EMPLOYEES", "EMPLOYER", "EMPLOYERS", "FEDERAL", "FIRST", "FORM",
    "IDENTIFICATION", "INCOME", "INITIAL", "INSTRUCTIONS", "INTEREST",
    "INTERNAL", "LAST", "LOCAL", "MEDICARE", "NAME", "NONEMPLOYEE", "NUMBER",
    "OMB", "PAY", "PAYER", "PAYERS", "PERIOD", "RECIPIENT", "RECIPIENTS",
    "RENTS", "REVENUE", "ROYALTIES", "SECURITY", "SERVICE", "SOCIAL", "SSN",
    "STATE", "STATEMENT", "STREET", "SUMMARY", "TAX", "TIN", "TIPS", "TOWN",
    "TREASURY", "VOID", "WAGES", "WITHHELD", "WITHHOLDING", "ZIP",
})

ORGANIZATION_BOILERPLATE = frozenset({
    "EMPLOYEE", "WAGES", "TIPS", "COMPENSATION", "WITHHOLDING", "WITHHELD",
    "FEDERAL", "RECIPIENT", "INSTRUCTIONS",
})

# Label text printed on the forms; a capture equal to one of these is boilerplate
KNOWN_FORM_LABELS = frozenset({
    "employee's address and zip code",
    "employee's name, address, and zip code",
    "employee's name, address and zip code",
    "employer's name, address, and zip code",
    "employer's name, address and zip code",
    "address and zip code",
    "street address (including apt. no.)",
    "city or town, state or province, country, and zip or foreign postal code",
    "payer's name, street address, city or town, state or province, country, "
    "zip or foreign postal code, and telephone no.",
    "recipient's name",
    "recipient's address",
    "payer's address",
    "see instructions",
    "see instructions for box 12",
})

_PERSON_NAME = re.compile(r"^[A-Za-z]+(?: [A-Za-z]+)+$")
_TAX_ID_SHAPES = (
    re.compile(r"^\d{3}-\d{2}-\d{4}$"),
    re.compile(r"^\d{9}$"),
    re.compile(r"^\d{2}-\d{7}$"),
    re.compile(r"^[X*]{3}-?[X*]{2}-?\d{4}$"),
)


def _reject(message: str, raw, constraint: str) -> FieldValidationRejected:
    return FieldValidationRejected(message, value=raw, constraint=constraint)


def validate_amount(raw, ceiling: Decimal = AMOUNT_CEILING) -> Decimal:
    """Positive amount below the plausibility ceiling."""
    amount = parse_amount(raw)
    if amount is None:
        raise _reject("Not a monetary amount", raw, "amount")
    if amount <= 0:
        raise _reject("Amount must be positive", raw, "amount > 0")
    if amount >= ceiling:
        raise _reject("Amount above plausibility ceiling", raw, f"amount < {ceiling}")
    return amount


def validate_person_name(raw) -> str:
    """Letters and spaces, 3-50 characters, at least two words, no boilerplate."""
    name = clean_text(raw)
    if name is None:
        raise _reject("Empty name", raw, "non-empty")
    name = name.strip(".'- ")
    if not 3 <= len(name) <= 50:
        raise _reject("Name length out of range", raw, "3 <= length <= 50")
    if not _PERSON_NAME.match(name):
        raise _reject("Name must be alphabetic words", raw, "alphabetic + spaces")

    words = name.upper().split()
    if any(len(w) > 20 for w in words):
        raise _reject("Name word too long", raw, "word length <= 20")
    if sum(len(w) >= 2 for w in words) < 2:
        raise _reject("Name needs two words", raw, "two words")
    if NAME_BOILERPLATE.intersection(words):
        raise _reject("Name contains form boilerplate", raw, "not a form label")
    if len(set(name.replace(" ", "").upper())) < 3:
        raise _reject("Name is degenerate", raw, "3 distinct letters")
    return name


def validate_organization_name(raw) -> str:
    """Company name: 2-100 characters with letters, not form boilerplate."""
    name = clean_text(raw)
    if name is None:
        raise _reject("Empty name", raw, "non-empty")
    if not 2 <= len(name) <= 100:
        raise _reject("Name length out of range", raw, "2 <= length <= 100")
    if sum(c.isalpha() for c in name) < 2:
        raise _reject("Name needs letters", raw, "alphabetic")
    words = set(re.findall(r"[A-Z']+", name.upper()))
    if ORGANIZATION_BOILERPLATE.intersection(words) or name.lower() in KNOWN_FORM_LABELS:
        raise _reject("Name contains form boilerplate", raw, "not a form label")
    return name


def validate_tax_id(raw) -> str:
    """SSN, EIN or masked SSN digit-group shape."""
    tax_id = clean_tax_id(raw)
    if tax_id is None:
        raise _reject("Empty identifier", raw, "non-empty")
    if not any(p.match(tax_id) for p in _TAX_ID_SHAPES):
        raise _reject("Identifier has the wrong shape", raw, "ID digit-group shape")
    return tax_id


def validate_address(raw) -> str:
    """Free-text address of plausible length that is not a printed label."""
    address = clean_text(raw)
    if address is None:
        raise _reject("Empty address", raw, "non-empty")
    if not 8 <= len(address) <= 200:
        raise _reject("Address length out of range", raw, "8 <= length <= 200")
    lowered = address.lower()
    if any(lowered == label or lowered in label for label in KNOWN_FORM_LABELS):
        raise _reject("Address is a form label", raw, "not a form label")
    if not any(c.isdigit() for c in address):
        raise _reject("Address has no number", raw, "contains a number")
    return address
