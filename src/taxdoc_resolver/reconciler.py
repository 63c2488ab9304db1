"""Arbitration between structured-extraction and OCR-cascade amounts.

The structured extractor occasionally reports a value in the wrong box.
The reconciler repairs that with the transcript cascades as the second
opinion: it relocates known mis-boxings, promotes the OCR value where the
sources disagree, and fills gaps. It never produces a value that neither
source observed.
"""

from decimal import Decimal
from typing import Optional

import structlog

from .config import ReconcilerConfig
from .models import CorrectionAction, CorrectionRecord, FieldMatch, FieldValue
from .profiles import SubtypeProfile, SwapRule

logger = structlog.get_logger()

ZERO = Decimal("0")


class CrossSourceReconciler:
    """Reconciles the critical monetary fields of one subtype profile."""

    def __init__(self, config: Optional[ReconcilerConfig] = None) -> None:
        self.config = config or ReconcilerConfig()

    @property
    def tolerance(self) -> Decimal:
        return self.config.tolerance

    def reconcile(
        self,
        structured: dict[str, FieldValue],
        cascade: dict[str, FieldMatch],
        profile: SubtypeProfile,
    ) -> tuple[dict[str, FieldValue], list[CorrectionRecord]]:
        """
        Return the reconciled field map and the corrections applied.

        Swap rules run first so a relocated value is not mistaken for a
        disagreement by the critical-field pass.
        """
        fields = dict(structured)
        ocr = {
            name: match.value
            for name, match in cascade.items()
            if isinstance(match.value, Decimal)
        }
        corrections: list[CorrectionRecord] = []

        for rule in profile.swap_rules:
            corrections.extend(self._apply_swap(rule, fields, ocr))

        for name in profile.critical_fields:
            record = self._arbitrate(name, fields, ocr)
            if record is not None:
                corrections.append(record)

        if corrections:
            logger.debug(
                "fields_reconciled",
                subtype=profile.subtype.value,
                corrections=[(c.field, c.action.value) for c in corrections],
            )
        return fields, corrections

    def agrees(self, a: Decimal, b: Decimal) -> bool:
        return abs(a - b) <= self.tolerance

    def _apply_swap(
        self,
        rule: SwapRule,
        fields: dict[str, FieldValue],
        ocr: dict[str, Decimal],
    ) -> list[CorrectionRecord]:
        value = _amount(fields.get(rule.source))
        if value is None or value <= ZERO or rule.source in ocr:
            return []

        target_ocr = ocr.get(rule.target)
        if target_ocr is None or not self.agrees(value, target_ocr):
            return []

        corrections = []
        current = _amount(fields.get(rule.target))
        # A target already holding the value means the source is a duplicate
        if current is None or current <= ZERO or not self.agrees(current, value):
            fields[rule.target] = value
            corrections.append(
                CorrectionRecord(rule.target, CorrectionAction.RELOCATED, rule.name, current, value, rule.source)
            )
        fields[rule.source] = ZERO
        corrections.append(CorrectionRecord(rule.source, CorrectionAction.ZEROED, rule.name, value, ZERO))
        return corrections

    def _arbitrate(
        self,
        name: str,
        fields: dict[str, FieldValue],
        ocr: dict[str, Decimal],
    ) -> Optional[CorrectionRecord]:
        ocr_value = ocr.get(name)
        if ocr_value is None:
            return None
        if name in fields and not isinstance(fields[name], Decimal):
            return None

        current = _amount(fields.get(name))
        if current is None or current == ZERO:
            if ocr_value > ZERO:
                fields[name] = ocr_value
                return CorrectionRecord(name, CorrectionAction.FILLED, "gap_fill", current, ocr_value)
            return None

        if not self.agrees(current, ocr_value):
            fields[name] = ocr_value
            return CorrectionRecord(name, CorrectionAction.PROMOTED, "ocr_disagreement", current, ocr_value)
        return None


def _amount(value: Optional[FieldValue]) -> Optional[Decimal]:
    return value if isinstance(value, Decimal) else None
