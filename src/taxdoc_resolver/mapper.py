"""Translate vendor structured-extraction keys into canonical field names."""

from decimal import Decimal
from typing import Any, Optional

import structlog

from .models import DocumentSubtype, FieldValue, StructuredExtractionResult
from .normalizer import clean_tax_id, clean_text, parse_amount
from .profiles import SubtypeProfile, ValueKind

logger = structlog.get_logger()

_PRIMITIVES = (str, int, float, Decimal, bool)


class StructuredFieldMapper:
    """
    Maps a StructuredExtractionResult onto canonical fields.

    Recognized subtypes use their profile's fixed key table; anything else
    gets a pass-through copy of every primitive-valued vendor field. The
    vendor result is never modified.
    """

    def map(self, result: StructuredExtractionResult, profile: SubtypeProfile) -> dict[str, FieldValue]:
        if profile.subtype is DocumentSubtype.UNKNOWN or not profile.field_map:
            return self.pass_through(result)

        mapped: dict[str, FieldValue] = {}
        for mapping in profile.field_map:
            raw = self._first_present(result.fields, mapping.vendor_keys)
            if raw is None:
                continue
            value = self._convert(raw, mapping.kind)
            if value is None:
                logger.debug("vendor_value_dropped", field=mapping.canonical, kind=mapping.kind.value)
                continue
            mapped[mapping.canonical] = value

        logger.debug(
            "structured_fields_mapped",
            subtype=profile.subtype.value,
            vendor_fields=len(result.fields),
            mapped=len(mapped),
        )
        return mapped

    def pass_through(self, result: StructuredExtractionResult) -> dict[str, FieldValue]:
        """Copy primitive vendor values, then unclaimed key/value pairs."""
        copied: dict[str, FieldValue] = {}
        for key, raw in result.fields.items():
            value = self._primitive(raw)
            if value is not None:
                copied[key] = value

        for key, raw in result.key_value_pairs.items():
            name = clean_text(key)
            value = clean_text(raw)
            if name and value and name not in copied:
                copied[name] = value
        return copied

    @staticmethod
    def _first_present(fields: dict[str, Any], keys: tuple[str, ...]) -> Any:
        for key in keys:
            value = fields.get(key)
            if value is not None and value != "":
                return value
        return None

    @staticmethod
    def _primitive(raw: Any) -> Optional[FieldValue]:
        if isinstance(raw, bool):
            return "true" if raw else "false"
        if isinstance(raw, (int, float, Decimal)):
            return parse_amount(raw)
        if isinstance(raw, str):
            return clean_text(raw)
        return None

    @staticmethod
    def _convert(raw: Any, kind: ValueKind) -> Optional[FieldValue]:
        if kind is ValueKind.AMOUNT:
            if isinstance(raw, (list, tuple)):
                amounts = [a for a in (parse_amount(v) for v in raw) if a is not None]
                return amounts or None
            return parse_amount(raw)
        if not isinstance(raw, _PRIMITIVES) or isinstance(raw, bool):
            return None
        if kind is ValueKind.TAX_ID:
            return clean_tax_id(raw)
        return clean_text(raw)
