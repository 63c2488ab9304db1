"""Document subtype classification from transcript keywords.

Level 1 picks the form family (W-2 vs 1099) by counting indicator hits;
level 2 picks the 1099 variant the same way. Keyword presence is used
instead of layout parsing because it survives scrambled OCR reading order.
"""

import re
from typing import Optional

import structlog

from .models import ClassificationResult, DocumentSubtype, FormFamily, SubtypeScore

logger = structlog.get_logger()


class SubtypeClassifier:
    """Two-level keyword scoring classifier."""

    FAMILY_INDICATORS = {
        FormFamily.W2: [
            "form w-2",
            "form w2",
            "wage and tax statement",
            "employee's social security number",
            "employer identification number",
            "wages, tips, other compensation",
            "federal income tax withheld",
            "social security wages",
            "medicare wages",
        ],
        FormFamily.FORM_1099: [
            "form 1099",
            "form 1099-",
            "payer's name",
            "payer's federal identification number",
            "payer's tin",
            "recipient's identification number",
            "recipient's tin",
            "recipient's name",
            "miscellaneous income",
            "miscellaneous information",
            "interest income",
            "dividend income",
            "dividends and distributions",
            "nonemployee compensation",
        ],
    }

    SUBTYPE_INDICATORS = {
        DocumentSubtype.FORM_1099_INT: [
            "1099-int",
            "interest income",
            "early withdrawal penalty",
            "interest on u.s. savings bonds",
            "tax-exempt interest",
            "bond premium",
        ],
        DocumentSubtype.FORM_1099_DIV: [
            "1099-div",
            "dividends and distributions",
            "ordinary dividends",
            "qualified dividends",
            "capital gain distr",
            "nondividend distributions",
            "section 199a dividends",
        ],
        DocumentSubtype.FORM_1099_MISC: [
            "1099-misc",
            "miscellaneous income",
            "miscellaneous information",
            "rents",
            "royalties",
            "other income",
            "fishing boat proceeds",
            "medical and health care payments",
        ],
        DocumentSubtype.FORM_1099_NEC: [
            "1099-nec",
            "nonemployee compensation",
            "payer made direct sales",
        ],
    }

    DEFAULT_1099_SUBTYPE = DocumentSubtype.FORM_1099_MISC

    def __init__(self) -> None:
        self._family_patterns = {
            key: [self._compile(k) for k in keywords]
            for key, keywords in self.FAMILY_INDICATORS.items()
        }
        self._subtype_patterns = {
            key: [self._compile(k) for k in keywords]
            for key, keywords in self.SUBTYPE_INDICATORS.items()
        }

    @staticmethod
    def _compile(keyword: str) -> re.Pattern:
        # Keywords may end in a hyphen ("form 1099-"), so only bound word edges
        lead = r"(?<!\w)" if keyword[0].isalnum() else ""
        trail = r"(?!\w)" if keyword[-1].isalnum() else ""
        return re.compile(lead + re.escape(keyword) + trail)

    @staticmethod
    def _prepare(text: str) -> str:
        text = (text or "").lower().replace("’", "'")
        return re.sub(r"[ \t]+", " ", text)

    @staticmethod
    def _score(text: str, patterns: list[re.Pattern]) -> int:
        return sum(1 for p in patterns if p.search(text))

    def score_families(self, text: str) -> tuple[SubtypeScore, ...]:
        prepared = self._prepare(text)
        return tuple(
            SubtypeScore(family.value, self._score(prepared, patterns))
            for family, patterns in self._family_patterns.items()
        )

    def classify_family(self, text: str) -> FormFamily:
        """Family with strictly more indicator hits; a tie is UNKNOWN."""
        return self._family_winner(self.score_families(text))

    def score_subtypes(self, text: str) -> tuple[SubtypeScore, ...]:
        prepared = self._prepare(text)
        return tuple(
            SubtypeScore(subtype.value, self._score(prepared, patterns))
            for subtype, patterns in self._subtype_patterns.items()
        )

    def classify(self, text: str) -> ClassificationResult:
        """Classify a transcript into family and subtype."""
        family_scores = self.score_families(text)
        family = self._family_winner(family_scores)

        if family is FormFamily.W2:
            result = ClassificationResult(family, DocumentSubtype.W2, family_scores)
        elif family is FormFamily.FORM_1099:
            subtype_scores = self.score_subtypes(text)
            subtype, ambiguous = self._subtype_winner(subtype_scores)
            result = ClassificationResult(family, subtype, family_scores, subtype_scores, ambiguous)
        else:
            result = ClassificationResult(family, DocumentSubtype.UNKNOWN, family_scores, ambiguous=True)

        logger.debug(
            "document_classified",
            family=result.family.value,
            subtype=result.subtype.value,
            ambiguous=result.ambiguous,
            scores={s.subtype: s.score for s in family_scores + result.subtype_scores},
        )
        return result

    @staticmethod
    def _family_winner(scores: tuple[SubtypeScore, ...]) -> FormFamily:
        by_family = {s.subtype: s.score for s in scores}
        w2 = by_family.get(FormFamily.W2.value, 0)
        f1099 = by_family.get(FormFamily.FORM_1099.value, 0)
        if w2 > f1099:
            return FormFamily.W2
        if f1099 > w2:
            return FormFamily.FORM_1099
        return FormFamily.UNKNOWN

    def _subtype_winner(
        self,
        scores: tuple[SubtypeScore, ...],
    ) -> tuple[DocumentSubtype, bool]:
        best: Optional[SubtypeScore] = None
        tied = False
        for score in scores:
            if best is None or score.score > best.score:
                best, tied = score, False
            elif score.score == best.score:
                tied = True

        if best is None or best.score == 0 or tied:
            return self.DEFAULT_1099_SUBTYPE, True
        return DocumentSubtype(best.subtype), False
