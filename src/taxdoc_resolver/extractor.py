"""Pattern-cascade extraction of field values from transcripts.

One generic cascade routine drives every field in the pattern library:
rules are tried strictly in priority order and the first capture that
passes the field's validator wins. Fields prone to recognition errors
get two more tiers: the label context window and a whole-document scan.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from .config import CascadeConfig
from .exceptions import FieldValidationRejected
from .models import FieldMatch
from .normalizer import MoneyToken, find_money_tokens, normalize_transcript
from .patterns import DEFAULT_LIBRARY, FieldPattern, PatternLibrary
from .validators import validate_amount

logger = structlog.get_logger()

TIER_PATTERN = "pattern"
TIER_CONTEXT = "context_window"
TIER_GLOBAL = "global_scan"


class CascadeExtractor:
    """
    Runs field pattern cascades against transcript text.

    The extractor holds only the read-only pattern library and thresholds,
    so a single instance can serve concurrent resolution calls.
    """

    def __init__(
        self,
        library: PatternLibrary = DEFAULT_LIBRARY,
        config: Optional[CascadeConfig] = None,
    ) -> None:
        self.library = library
        self.config = config or CascadeConfig()

    def run_cascade(self, text: str, pattern: FieldPattern) -> Optional[FieldMatch]:
        """Try each rule of a field in order; return the first validated value."""
        for rule in pattern.rules:
            for match in rule.expression.finditer(text):
                raw = rule.capture(match)
                if not raw:
                    continue
                try:
                    if pattern.is_monetary:
                        value = validate_amount(raw, ceiling=self.config.amount_ceiling)
                    else:
                        value = pattern.validator(raw)
                except FieldValidationRejected as e:
                    logger.debug(
                        "pattern_rejected",
                        field=pattern.field,
                        pattern_id=rule.id,
                        constraint=e.constraint,
                    )
                    continue
                logger.debug("pattern_matched", field=pattern.field, pattern_id=rule.id)
                return FieldMatch(pattern.field, value, rule.id, TIER_PATTERN, raw)
        return None

    def extract_field(
        self,
        text: str,
        pattern: FieldPattern,
        *,
        exclude: Iterable[Decimal] = (),
    ) -> Optional[FieldMatch]:
        """Resolve one field through every tier it is configured for."""
        source = normalize_transcript(text) if pattern.normalize else text
        match = self._primary_tiers(source, pattern)
        if match is None and pattern.global_scan:
            match = self._global_scan(source, pattern, set(exclude))
        return match

    def extract_group(self, text: str, group: str) -> dict[str, FieldMatch]:
        """
        Resolve every field of a pattern group.

        Whole-document scans run last and skip amounts already claimed by
        another field of the same group.
        """
        if not text:
            return {}

        patterns = self.library.group(group)
        normalized: Optional[str] = None
        results: dict[str, FieldMatch] = {}
        pending: list[FieldPattern] = []

        for pattern in patterns:
            if pattern.normalize:
                if normalized is None:
                    normalized = normalize_transcript(text)
                source = normalized
            else:
                source = text
            match = self._primary_tiers(source, pattern)
            if match is not None:
                results[pattern.field] = match
            elif pattern.global_scan:
                pending.append(pattern)

        if pending:
            claimed = {m.value for m in results.values() if isinstance(m.value, Decimal)}
            for pattern in pending:
                source = normalized if pattern.normalize and normalized is not None else text
                match = self._global_scan(source, pattern, claimed)
                if match is not None:
                    results[pattern.field] = match
                    claimed.add(match.value)

        logger.debug("group_extracted", group=group, fields=sorted(results))
        return results

    def _primary_tiers(self, text: str, pattern: FieldPattern) -> Optional[FieldMatch]:
        match = self.run_cascade(text, pattern)
        if match is None and pattern.context is not None:
            match = self._context_window(text, pattern)
        return match

    def _context_window(self, text: str, pattern: FieldPattern) -> Optional[FieldMatch]:
        """Largest plausible amount between the field's label and the next label."""
        start = pattern.context.start.search(text)
        if start is None:
            return None

        begin = start.end()
        stop = None
        if pattern.context.end is not None:
            end = pattern.context.end.search(text, begin)
            if end is not None:
                stop = end.start()
        if stop is None:
            stop = min(len(text), begin + self.config.context_window_chars)

        candidates = [
            t for t in find_money_tokens(text[begin:stop])
            if self.config.context_floor <= t.value < self.config.amount_ceiling
        ]
        if not candidates:
            return None

        best = max(candidates, key=lambda t: t.value)
        logger.debug(
            "context_window_matched",
            field=pattern.field,
            candidates=len(candidates),
            window_chars=stop - begin,
        )
        return FieldMatch(pattern.field, best.value, f"{pattern.id}:CONTEXT_WINDOW", TIER_CONTEXT, best.raw)

    def _global_scan(
        self,
        text: str,
        pattern: FieldPattern,
        exclude: set[Decimal],
    ) -> Optional[FieldMatch]:
        """
        Scan the whole transcript for an amount in the plausibility band.

        The first unclaimed amount is taken unless a later one is at least
        `suspicious_ratio` times larger, which indicates the first was a
        truncated misread.
        """
        tokens: list[MoneyToken] = [
            t for t in find_money_tokens(text)
            if self.config.global_band_min <= t.value <= self.config.global_band_max
            and t.value not in exclude
        ]
        if not tokens:
            return None

        pick = tokens[0]
        largest = max(tokens, key=lambda t: t.value)
        if largest.value >= pick.value * self.config.suspicious_ratio:
            pick = largest

        logger.debug("global_scan_matched", field=pattern.field, candidates=len(tokens))
        return FieldMatch(pattern.field, pick.value, f"{pattern.id}:GLOBAL_SCAN", TIER_GLOBAL, pick.raw)
