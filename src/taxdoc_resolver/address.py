"""Split free-text US addresses into street, city, state and ZIP.

Structural patterns are tried first, then a token-level fallback. When
nothing parses, the whole string is kept as the street and no component
is invented.
"""

import re
from typing import Optional

import structlog

from .models import AddressParts
from .patterns import STREET_SUFFIXES, UNIT_WORDS, ZIP

logger = structlog.get_logger()

VALID_STATES = frozenset({
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA", "HI", "ID",
    "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS",
    "MO", "MT", "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK",
    "OR", "PA", "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV",
    "WI", "WY", "DC", "PR", "VI", "GU", "AS", "MP",
})

_STATE_ZIP = rf"(?P<state>[A-Z]{{2}}),?\s+(?P<zip>{ZIP})"


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


PRIMARY_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("PO_BOX", _compile(rf"^(?P<street>P\.?\s?O\.?\s+BOX\s+\d+),?\s+(?P<city>.+?),?\s+{_STATE_ZIP}$")),
    (
        "RURAL_ROUTE",
        _compile(rf"^(?P<street>(?:RR|RURAL\s+ROUTE)\s+\d+,?\s+BOX\s+\d+),?\s+(?P<city>.+?),?\s+{_STATE_ZIP}$"),
    ),
    ("COMMA_SEPARATED_FULL", _compile(rf"^(?P<street>.+?),\s*(?P<city>[^,]+?),\s*{_STATE_ZIP}$")),
    (
        "STREET_SUFFIX_CITY_STATE_ZIP",
        _compile(
            rf"^(?P<street>\d+\s+.+?\b(?:{STREET_SUFFIXES})\.?"
            rf"(?:,?\s+(?:{UNIT_WORDS})\.?\s*#?\s*[A-Z0-9-]+)?),?\s+"
            rf"(?P<city>[A-Z][A-Z .'-]*?),?\s+{_STATE_ZIP}$"
        ),
    ),
    ("TWO_PART_CITY_STATE_ZIP", _compile(rf"^(?P<street>.+?),\s*(?P<city>[^,]+?)\s+{_STATE_ZIP}$")),
    ("APARTMENT_WITH_ZIP", _compile(rf"^(?P<street>.+?,\s*(?:{UNIT_WORDS})\.?\s+[^,]+),\s*(?P<zip>{ZIP})$")),
)

SECONDARY_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("STREET_WITH_ZIP_ONLY", _compile(rf"^(?P<street>.+?),\s*(?P<zip>{ZIP})$")),
)

# A trailing 5-digit group after these words is a box or unit number
_NOT_A_ZIP_BEFORE = re.compile(rf"(?:\b(?:BOX|ROUTE|RR|{UNIT_WORDS})\.?|#)\s*$", re.IGNORECASE)
_TRAILING_ZIP = re.compile(rf"(?<![\d-])({ZIP})$")
_TRAILING_STATE = re.compile(r"(?:^|[\s,])([A-Za-z]{2})\.?,?$")
_SUFFIX_SPLIT = re.compile(
    rf"^(?P<street>\d+.*\b(?:{STREET_SUFFIXES})\.?(?:,?\s+(?:{UNIT_WORDS})\.?\s*#?\s*[A-Z0-9-]+)?)"
    rf",?\s+(?P<city>[A-Z][A-Z .'-]*)$",
    re.IGNORECASE,
)
_UNIT_SPLIT = re.compile(
    rf"^(?P<street>.+?\b(?:{UNIT_WORDS})\.?\s*#?\s*[A-Z0-9-]*\d[A-Z0-9-]*),?\s+(?P<city>[A-Z][A-Z .'-]*)$",
    re.IGNORECASE,
)

TRANSCRIPT_STATE_PATTERNS = (
    re.compile(r"(?i:\bState):\s*([A-Z]{2})\b"),
    re.compile(r"(?i:\bstate)\s+(?!OR\s+PROVINCE)([A-Z]{2})\s"),
    re.compile(r"\bST:\s*([A-Z]{2})\b"),
)


def normalize_address(address: str) -> str:
    """Collapse whitespace and tidy comma spacing."""
    text = re.sub(r"\s+", " ", address or "").strip()
    text = re.sub(r"\s*,\s*", ", ", text)
    text = re.sub(r"(?:,\s*)+,", ",", text)
    return text.strip(" ,;")


class AddressDecomposer:
    """Tiered address parser: structural patterns, token fallback, whole string."""

    def decompose(self, address: Optional[str], transcript: str = "") -> AddressParts:
        text = normalize_address(address or "")
        if not text:
            return AddressParts()

        parts = self._structural(text) or self._granular(text)
        if parts is None:
            parts = AddressParts(street=text, pattern_id="WHOLE_STRING")

        if not parts.state and transcript:
            state = self._state_from_transcript(transcript)
            if state:
                parts = AddressParts(parts.street, parts.city, state, parts.zip_code, parts.pattern_id)

        logger.debug("address_decomposed", pattern_id=parts.pattern_id, has_zip=bool(parts.zip_code))
        return parts

    def _structural(self, text: str) -> Optional[AddressParts]:
        for pattern_id, pattern in PRIMARY_PATTERNS + SECONDARY_PATTERNS:
            match = pattern.match(text)
            if match is None:
                continue
            groups = match.groupdict()
            state = (groups.get("state") or "").upper()
            if state and state not in VALID_STATES:
                continue
            return AddressParts(
                street=self._clean(groups.get("street")),
                city=self._clean(groups.get("city")),
                state=state,
                zip_code=groups.get("zip") or "",
                pattern_id=pattern_id,
            )
        return None

    def _granular(self, text: str) -> Optional[AddressParts]:
        """Peel a trailing ZIP and state off, then split street from city."""
        zip_match = _TRAILING_ZIP.search(text)
        if zip_match is None or _NOT_A_ZIP_BEFORE.search(text[:zip_match.start()]):
            return None
        remainder = text[:zip_match.start()].rstrip(" ,")
        if not any(c.isalpha() for c in remainder):
            return None
        zip_code = zip_match.group(1)

        # A state is only read directly in front of the ZIP
        state = ""
        state_match = _TRAILING_STATE.search(remainder)
        if state_match and state_match.group(1).upper() in VALID_STATES:
            head = remainder[:state_match.start()].rstrip(" ,")
            if head:
                state = state_match.group(1).upper()
                remainder = head

        street, city = self._split_street_city(remainder)
        return AddressParts(street, city, state, zip_code, "GRANULAR_FALLBACK")

    def _split_street_city(self, text: str) -> tuple[str, str]:
        if "," in text:
            street, _, city = text.rpartition(",")
            city = city.strip()
            if city and not any(c.isdigit() for c in city):
                return self._clean(street), city
            return self._clean(text), ""

        for pattern in (_SUFFIX_SPLIT, _UNIT_SPLIT):
            match = pattern.match(text)
            if match:
                return self._clean(match.group("street")), self._clean(match.group("city"))

        tokens = text.split()
        if len(tokens) >= 4:
            take = 2 if len(tokens) >= 5 and tokens[-2].isalpha() and tokens[-1].isalpha() else 1
            if all(t.isalpha() for t in tokens[-take:]):
                return " ".join(tokens[:-take]), " ".join(tokens[-take:])
        return self._clean(text), ""

    @staticmethod
    def _state_from_transcript(transcript: str) -> str:
        for pattern in TRANSCRIPT_STATE_PATTERNS:
            match = pattern.search(transcript)
            if match and match.group(1).upper() in VALID_STATES:
                return match.group(1).upper()
        return ""

    @staticmethod
    def _clean(value: Optional[str]) -> str:
        return (value or "").strip(" ,")
