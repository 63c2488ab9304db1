"""Amount and token normalization for OCR transcripts.

Cleans monetary strings into Decimals and repairs the character
confusions a text-recognition pass commonly makes (O for 0, l for 1,
stray spaces around separators) before pattern matching.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Union

import structlog

logger = structlog.get_logger()

_AMOUNT_SHAPE = re.compile(r"^\d+(?:\.\d+)?$")

# Characters a recognizer emits in place of digits
_DIGIT_LOOKALIKES = str.maketrans({
    "O": "0",
    "o": "0",
    "l": "1",
    "I": "1",
    "|": "1",
    "S": "5",
    "B": "8",
})

_LOOKALIKE_TOKEN = re.compile(r"(?<![A-Za-z0-9])[0-9OolI|SB][0-9OolI|SB,.]*[0-9OolI|SB](?![A-Za-z0-9])")
_MONEY_SHAPE = re.compile(r"^(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?$")


def _repair_lookalike_token(match: re.Match) -> str:
    token = match.group(0)
    digits = sum(c.isdigit() for c in token)
    if digits == 0:
        return token
    letters = sum(c.isalpha() or c == "|" for c in token)
    if letters == 0:
        return token
    repaired = token.translate(_DIGIT_LOOKALIKES)
    if _MONEY_SHAPE.match(repaired) and ("," in repaired or "." in repaired or digits >= letters):
        return repaired
    return token


# Ordered substitution table applied to a transcript before matching
OCR_SUBSTITUTIONS: tuple[tuple[str, re.Pattern, Union[str, Callable[[re.Match], str]]], ...] = (
    # Digits inside words ("inc0me", "0ther", "Wage1")
    ("ZERO_IN_WORD", re.compile(r"(?<=[A-Za-z])0(?=[A-Za-z])"), "o"),
    ("LEADING_ZERO_IN_WORD", re.compile(r"\b0(?=[a-z]{2,}\b)"), "O"),
    ("ONE_IN_WORD", re.compile(r"(?<=[a-z])1(?=[a-z])"), "l"),
    # Letters inside amounts ("5OO,OOO.OO", "1O4")
    ("LETTER_IN_AMOUNT", _LOOKALIKE_TOKEN, _repair_lookalike_token),
    # Separator spacing ("$ 350, 000. 00")
    ("DOLLAR_SPACING", re.compile(r"\$[ \t]+(?=\d)"), "$"),
    ("COMMA_SPACING", re.compile(r"(?<=\d),\s(?=\d{3}(?:\s?\.\s?\d{2}|,\s?\d))"), ","),
    ("DECIMAL_SPACING", re.compile(r"(?<=\d)\s*\.\s+(?=\d{2}\b)|(?<=\d)\s+\.(?=\d{2}\b)"), "."),
)


def normalize_transcript(text: str) -> str:
    """Apply the OCR substitution table to a transcript."""
    if not text:
        return ""
    for _name, pattern, replacement in OCR_SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    return text


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a monetary value into a non-negative Decimal.

    Numbers pass through; strings have currency symbols, separators and
    whitespace removed. Returns None for anything that is not a finite,
    non-negative amount, so callers never see a placeholder zero.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return None
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned or cleaned.startswith("-") or (cleaned.startswith("(") and cleaned.endswith(")")):
            return None
        cleaned = re.sub(r"[\s$,]", "", cleaned).rstrip(".")
        if not _AMOUNT_SHAPE.match(cleaned):
            return None
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite() or amount < 0:
        return None
    return amount


def clean_text(value: Any) -> Optional[str]:
    """Collapse whitespace in a text value; empty strings become None."""
    if value is None:
        return None
    text = re.sub(r"\s+", " ", str(value)).strip(" \t\n,;:")
    return text or None


def clean_tax_id(value: Any) -> Optional[str]:
    """Remove spaces inside a captured SSN/EIN/TIN, keeping its dashes."""
    text = clean_text(value)
    if text is None:
        return None
    return re.sub(r"\s+", "", text).upper()


# =============================================================================
# MONEY TOKENS
# =============================================================================

@dataclass(frozen=True)
class MoneyToken:
    """A money-shaped token found in a transcript."""
    value: Decimal
    start: int
    end: int
    raw: str


_MONEY_TOKEN = re.compile(
    r"(?<![\w.,\-/])(\$\s?)?((?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?)(?![\w\-/%]|[.,]\d)"
)


def find_money_tokens(text: str) -> list[MoneyToken]:
    """Return money-shaped tokens in document order.

    A token counts when it carries a dollar sign, thousands separators or
    cents. Bare integers (box numbers, years, ZIP codes) are skipped.
    """
    tokens: list[MoneyToken] = []
    for match in _MONEY_TOKEN.finditer(text or ""):
        dollar, number = match.group(1), match.group(2)
        if not (dollar or "," in number or "." in number):
            continue
        amount = parse_amount(number)
        if amount is None:
            continue
        tokens.append(MoneyToken(amount, match.start(), match.end(), match.group(0)))
    return tokens
