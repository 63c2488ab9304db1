"""Data models shared across the resolution pipeline.

Subtype enumerations, the collaborator's extraction result, transient
per-call records, and the ResolvedFieldMap returned to callers.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Optional, Union

FieldValue = Union[str, Decimal, list[Decimal]]

FULL_TEXT_KEY = "fullText"
CORRECTED_TYPE_KEY = "correctedDocumentType"


# =============================================================================
# ENUMERATIONS
# =============================================================================

class DocumentSubtype(str, Enum):
    """Tax information return variants the resolver knows about."""
    W2 = "W2"
    FORM_1099_INT = "FORM_1099_INT"
    FORM_1099_DIV = "FORM_1099_DIV"
    FORM_1099_MISC = "FORM_1099_MISC"
    FORM_1099_NEC = "FORM_1099_NEC"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Union[str, "DocumentSubtype", None]) -> "DocumentSubtype":
        """Map a caller-supplied subtype string to a member, UNKNOWN otherwise."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.UNKNOWN
        key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        if key == "W_2":
            key = "W2"
        elif key.startswith("1099_"):
            key = f"FORM_{key}"
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_recognized(self) -> bool:
        return self is not DocumentSubtype.UNKNOWN

    @property
    def family(self) -> "FormFamily":
        if self is DocumentSubtype.W2:
            return FormFamily.W2
        if self is DocumentSubtype.UNKNOWN:
            return FormFamily.UNKNOWN
        return FormFamily.FORM_1099


class FormFamily(str, Enum):
    """Level-1 classification outcome."""
    W2 = "W2"
    FORM_1099 = "FORM_1099"
    UNKNOWN = "UNKNOWN"


class ExtractionPath(str, Enum):
    """Which remote result the field values were derived from."""
    STRUCTURED = "structured"
    OCR = "ocr"
    TRANSCRIPT = "transcript"


class CorrectionAction(str, Enum):
    """What the reconciler did to a field."""
    PROMOTED = "promoted"
    FILLED = "filled"
    RELOCATED = "relocated"
    ZEROED = "zeroed"


# =============================================================================
# COLLABORATOR RESULTS
# =============================================================================

@dataclass
class StructuredExtractionResult:
    """Result of one document-understanding call.

    `fields` is the vendor field map flattened to dotted keys
    (`Employee.Name`) with primitive values; `content` is the transcript.
    """
    model_id: str
    content: str = ""
    fields: dict[str, Any] = field(default_factory=dict)
    key_value_pairs: dict[str, str] = field(default_factory=dict)


# =============================================================================
# TRANSIENT PER-CALL RECORDS
# =============================================================================

@dataclass(frozen=True)
class SubtypeScore:
    """Indicator hit count for one subtype or family."""
    subtype: str
    score: int


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of the two-level subtype classification."""
    family: FormFamily
    subtype: DocumentSubtype
    family_scores: tuple[SubtypeScore, ...]
    subtype_scores: tuple[SubtypeScore, ...] = ()
    ambiguous: bool = False


@dataclass(frozen=True)
class FieldMatch:
    """A validated value produced by a cascade."""
    field: str
    value: Any
    pattern_id: str
    tier: str = "pattern"
    raw: Optional[str] = None


@dataclass
class PartyInfo:
    """Identity details of both parties on a return.

    For a W-2 the primary party is the employee and the counterpart the
    employer; for a 1099 they are the recipient and the payer.
    """
    name: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None
    counterpart_name: Optional[str] = None
    counterpart_tax_id: Optional[str] = None
    counterpart_address: Optional[str] = None
    family: FormFamily = FormFamily.W2

    def as_fields(self) -> dict[str, str]:
        """Canonical field names for the populated attributes."""
        if self.family is FormFamily.FORM_1099:
            keys = ("recipientName", "recipientTIN", "recipientAddress",
                    "payerName", "payerTIN", "payerAddress")
        else:
            keys = ("employeeName", "employeeSSN", "employeeAddress",
                    "employerName", "employerEIN", "employerAddress")
        values = (self.name, self.tax_id, self.address,
                  self.counterpart_name, self.counterpart_tax_id, self.counterpart_address)
        return {k: v for k, v in zip(keys, values) if v}


@dataclass(frozen=True)
class AddressParts:
    """Components of a decomposed free-text address."""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    pattern_id: str = "UNPARSED"


@dataclass(frozen=True)
class CorrectionRecord:
    """Provenance entry for one reconciler change."""
    field: str
    action: CorrectionAction
    rule: str
    previous: Optional[Decimal]
    value: Decimal
    source_field: Optional[str] = None


# =============================================================================
# RESOLVED FIELD MAP
# =============================================================================

class ResolvedFieldMap:
    """Canonical field values resolved for one document.

    Behaves like a read-only mapping of canonical field names. Monetary
    values are non-negative Decimals; a field with no resolved value is
    absent rather than zero or empty.
    """

    def __init__(
        self,
        fields: Optional[dict[str, FieldValue]] = None,
        *,
        full_text: Optional[str] = None,
        corrected_document_type: Optional[DocumentSubtype] = None,
        document_type: DocumentSubtype = DocumentSubtype.UNKNOWN,
        extraction_path: ExtractionPath = ExtractionPath.STRUCTURED,
        corrections: Optional[list[CorrectionRecord]] = None,
    ) -> None:
        self.fields: dict[str, FieldValue] = dict(fields or {})
        self.full_text = full_text
        self.corrected_document_type = corrected_document_type
        self.document_type = document_type
        self.extraction_path = extraction_path
        self.corrections: list[CorrectionRecord] = list(corrections or [])

    @property
    def degraded(self) -> bool:
        """True when values came from the full-text fallback model."""
        return self.extraction_path is ExtractionPath.OCR

    def __getitem__(self, key: str) -> FieldValue:
        return self.fields[key]

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation including the reserved string keys."""
        data: dict[str, Any] = dict(self.fields)
        if self.full_text is not None:
            data[FULL_TEXT_KEY] = self.full_text
        if self.corrected_document_type is not None:
            data[CORRECTED_TYPE_KEY] = self.corrected_document_type.value
        return data

    def __repr__(self) -> str:
        return (
            f"ResolvedFieldMap(document_type={self.document_type.value!r}, "
            f"fields={sorted(self.fields)!r}, "
            f"corrections={len(self.corrections)})"
        )
