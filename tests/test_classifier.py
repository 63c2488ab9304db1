"""Tests for document subtype classification."""

from taxdoc_resolver.classifier import SubtypeClassifier
from taxdoc_resolver.models import DocumentSubtype, FormFamily

from conftest import DIV_TRANSCRIPT, INT_TRANSCRIPT, MISC_TRANSCRIPT, W2_TRANSCRIPT


class TestClassifyFamily:
    """Level-1 family scoring."""

    def test_w2(self):
        """W-2 transcripts score for the W-2 family."""
        assert SubtypeClassifier().classify_family(W2_TRANSCRIPT) is FormFamily.W2

    def test_1099(self):
        """1099 transcripts score for the 1099 family."""
        assert SubtypeClassifier().classify_family(DIV_TRANSCRIPT) is FormFamily.FORM_1099

    def test_no_indicators_is_unknown(self):
        """A transcript with no indicators has no family."""
        assert SubtypeClassifier().classify_family("grocery receipt total 12.00") is FormFamily.UNKNOWN

    def test_tie_is_unknown(self):
        """Equal family scores are not a decision."""
        text = "Form W-2 and Form 1099"
        assert SubtypeClassifier().classify_family(text) is FormFamily.UNKNOWN

    def test_curly_apostrophe(self):
        """Typographic apostrophes count as indicators."""
        scores = SubtypeClassifier().score_families("PAYER’S name RECIPIENT’S TIN")
        by_family = {s.subtype: s.score for s in scores}
        assert by_family[FormFamily.FORM_1099.value] == 2


class TestClassify:
    """Two-level classification."""

    def test_w2_subtype(self):
        """W-2 family maps straight to the W2 subtype."""
        result = SubtypeClassifier().classify(W2_TRANSCRIPT)
        assert result.subtype is DocumentSubtype.W2
        assert result.ambiguous is False

    def test_div_subtype(self):
        """Dividend indicators select 1099-DIV."""
        result = SubtypeClassifier().classify(DIV_TRANSCRIPT)
        assert result.subtype is DocumentSubtype.FORM_1099_DIV
        assert result.ambiguous is False

    def test_misc_subtype(self):
        """Miscellaneous indicators select 1099-MISC."""
        assert SubtypeClassifier().classify(MISC_TRANSCRIPT).subtype is DocumentSubtype.FORM_1099_MISC

    def test_int_subtype(self):
        """Interest indicators select 1099-INT."""
        assert SubtypeClassifier().classify(INT_TRANSCRIPT).subtype is DocumentSubtype.FORM_1099_INT

    def test_subtype_tie_defaults_to_misc(self):
        """Tied level-2 scores fall back to 1099-MISC and are flagged ambiguous."""
        result = SubtypeClassifier().classify("Form 1099 rents interest income")
        assert result.family is FormFamily.FORM_1099
        assert result.subtype is DocumentSubtype.FORM_1099_MISC
        assert result.ambiguous is True

    def test_unknown(self):
        """No family means an UNKNOWN, ambiguous result."""
        result = SubtypeClassifier().classify("")
        assert result.subtype is DocumentSubtype.UNKNOWN
        assert result.ambiguous is True

    def test_deterministic(self):
        """Identical text always yields identical scores and winner."""
        classifier = SubtypeClassifier()
        first = classifier.classify(DIV_TRANSCRIPT)
        second = SubtypeClassifier().classify(DIV_TRANSCRIPT)
        assert first == second
        assert first.subtype_scores == second.subtype_scores
