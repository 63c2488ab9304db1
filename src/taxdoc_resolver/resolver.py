"""Extraction orchestrator.

TaxDocumentResolver ties the pipeline together for one document:

1. Pick the remote model for the claimed subtype from the profile table.
2. Run structured extraction; on a "model not found" failure switch to the
   full-text read model and the OCR path for the rest of the call.
3. Classify the transcript and, when it names a different recognized
   subtype, re-run extraction under that subtype.
4. Map, cascade, reconcile and derive address sub-fields.

Every call is independent; the resolver keeps no per-call state, so one
instance can serve concurrent callers.
"""

import os
from pathlib import Path
from typing import Optional, Union

import structlog

from .address import AddressDecomposer
from .classifier import SubtypeClassifier
from .client import DocumentAnalyzer
from .config import TaxDocConfig
from .events import (
    CORRECTION_APPLIED,
    FALLBACK_TRIGGERED,
    MODEL_SELECTED,
    RECLASSIFICATION_FIRED,
    RESOLUTION_COMPLETED,
    EventSink,
    ResolutionEvent,
    StructlogEventSink,
)
from .exceptions import ModelNotFoundError, TaxDocError, UpstreamError, UpstreamUnavailable
from .extractor import CascadeExtractor
from .mapper import StructuredFieldMapper
from .models import (
    ClassificationResult,
    CorrectionRecord,
    DocumentSubtype,
    ExtractionPath,
    FieldMatch,
    FieldValue,
    ResolvedFieldMap,
    StructuredExtractionResult,
)
from .party import PartyInfoExtractor
from .profiles import PROFILES, SubtypeProfile
from .reconciler import CrossSourceReconciler

logger = structlog.get_logger()

DocumentInput = Union[bytes, bytearray, str, os.PathLike]


class TaxDocumentResolver:
    """
    Resolves canonical field values for W-2 and 1099 documents.

    Example:
        config = TaxDocConfig()
        resolver = TaxDocumentResolver(AzureDocumentAnalyzer(config.document_intelligence), config)
        fields = resolver.resolve(Path("w2.pdf"), "W2")
        fields["wages"]  # Decimal("52000.00")
    """

    def __init__(
        self,
        analyzer: Optional[DocumentAnalyzer] = None,
        config: Optional[TaxDocConfig] = None,
        sink: Optional[EventSink] = None,
        *,
        profiles: Optional[dict[DocumentSubtype, SubtypeProfile]] = None,
        classifier: Optional[SubtypeClassifier] = None,
        extractor: Optional[CascadeExtractor] = None,
        mapper: Optional[StructuredFieldMapper] = None,
        party_extractor: Optional[PartyInfoExtractor] = None,
        decomposer: Optional[AddressDecomposer] = None,
        reconciler: Optional[CrossSourceReconciler] = None,
    ) -> None:
        self.analyzer = analyzer
        self.config = config or TaxDocConfig()
        self.sink = sink or StructlogEventSink()
        self.profiles = profiles or PROFILES
        self.classifier = classifier or SubtypeClassifier()
        self.extractor = extractor or CascadeExtractor(config=self.config.cascade)
        self.mapper = mapper or StructuredFieldMapper()
        self.party_extractor = party_extractor or PartyInfoExtractor(self.extractor, self.classifier)
        self.decomposer = decomposer or AddressDecomposer()
        self.reconciler = reconciler or CrossSourceReconciler(self.config.reconciler)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def resolve(
        self,
        document: DocumentInput,
        claimed_subtype: Union[str, DocumentSubtype, None],
    ) -> ResolvedFieldMap:
        """
        Resolve a document given as bytes or a file path.

        Raises:
            UpstreamUnavailable: The primary model was not found and the
                fallback read model failed too.
            UpstreamError: The primary call failed for any other reason.
            FileNotFoundError: `document` names a file that does not exist.
        """
        if self.analyzer is None:
            raise TaxDocError("No document analyzer configured; use resolve_transcript() for text input")

        payload = self._read(document)
        claimed = DocumentSubtype.parse(claimed_subtype)
        profile = self._profile(claimed)
        model_id = self._model_id(profile)

        self._emit(MODEL_SELECTED, claimed_subtype=claimed.value, model_id=model_id)
        result, path = self._analyze(payload, model_id)

        classification = self.classifier.classify(result.content)
        effective = self._reclassify(claimed, classification)
        if effective is not claimed:
            profile = self._profile(effective)
            if path is ExtractionPath.STRUCTURED:
                result, path = self._reanalyze(payload, result, profile, model_id)

        fields, corrections = self._extract(result, profile, path)
        return self._finish(fields, corrections, result.content, claimed, effective, path)

    def resolve_transcript(
        self,
        text: str,
        claimed_subtype: Union[str, DocumentSubtype, None],
    ) -> ResolvedFieldMap:
        """Resolve from an already transcribed document; no remote calls are made."""
        claimed = DocumentSubtype.parse(claimed_subtype)
        result = StructuredExtractionResult(model_id="transcript", content=text or "")

        classification = self.classifier.classify(result.content)
        effective = self._reclassify(claimed, classification)
        profile = self._profile(effective)

        fields, corrections = self._extract(result, profile, ExtractionPath.TRANSCRIPT)
        return self._finish(fields, corrections, result.content, claimed, effective, ExtractionPath.TRANSCRIPT)

    # =========================================================================
    # REMOTE CALLS
    # =========================================================================

    @staticmethod
    def _read(document: DocumentInput) -> bytes:
        if isinstance(document, (bytes, bytearray)):
            return bytes(document)
        file_path = Path(document)
        if not file_path.exists():
            raise FileNotFoundError(f"Document not found: {file_path}")
        return file_path.read_bytes()

    def _call(self, model_id: str, payload: bytes) -> StructuredExtractionResult:
        try:
            return self.analyzer.analyze(model_id, payload)
        except TaxDocError:
            raise
        except Exception as e:
            raise UpstreamError(str(e), model_id=model_id, operation="analyze_document") from e

    def _analyze(
        self,
        payload: bytes,
        model_id: str,
    ) -> tuple[StructuredExtractionResult, ExtractionPath]:
        """Primary call, with a single substitution by the read model on "not found"."""
        try:
            return self._call(model_id, payload), ExtractionPath.STRUCTURED
        except ModelNotFoundError as e:
            fallback_id = self.config.document_intelligence.fallback_model_id
            self._emit(
                FALLBACK_TRIGGERED,
                level="warning",
                model_id=model_id,
                fallback_model_id=fallback_id,
                error=str(e),
            )
            try:
                result = self._call(fallback_id, payload)
            except TaxDocError as fallback_error:
                raise UpstreamUnavailable(
                    f"Document analysis failed: {fallback_error}",
                    primary_error=str(e),
                    fallback_error=str(fallback_error),
                    model_id=fallback_id,
                ) from fallback_error
            return result, ExtractionPath.OCR

    def _reanalyze(
        self,
        payload: bytes,
        previous: StructuredExtractionResult,
        profile: SubtypeProfile,
        previous_model_id: str,
    ) -> tuple[StructuredExtractionResult, ExtractionPath]:
        """Structured extraction under a reclassified subtype's model."""
        model_id = self._model_id(profile)
        if model_id == previous_model_id:
            return previous, ExtractionPath.STRUCTURED

        self._emit(MODEL_SELECTED, claimed_subtype=profile.subtype.value, model_id=model_id)
        try:
            return self._call(model_id, payload), ExtractionPath.STRUCTURED
        except ModelNotFoundError as e:
            # The transcript already in hand is as good as a fresh read
            self._emit(
                FALLBACK_TRIGGERED,
                level="warning",
                model_id=model_id,
                fallback_model_id=previous.model_id,
                error=str(e),
            )
            return previous, ExtractionPath.OCR

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def _reclassify(self, claimed: DocumentSubtype, classification: ClassificationResult) -> DocumentSubtype:
        winner = classification.subtype
        if not winner.is_recognized or winner is claimed:
            return claimed
        if classification.ambiguous and not self.config.reconciler.reclassify_ambiguous:
            logger.debug("reclassification_skipped", claimed=claimed.value, winner=winner.value)
            return claimed

        self._emit(
            RECLASSIFICATION_FIRED,
            claimed_subtype=claimed.value,
            detected_subtype=winner.value,
            ambiguous=classification.ambiguous,
            scores={s.subtype: s.score for s in classification.family_scores + classification.subtype_scores},
        )
        return winner

    # =========================================================================
    # FIELD RESOLUTION
    # =========================================================================

    def _extract(
        self,
        result: StructuredExtractionResult,
        profile: SubtypeProfile,
        path: ExtractionPath,
    ) -> tuple[dict[str, FieldValue], list[CorrectionRecord]]:
        text = result.content
        cascade: dict[str, FieldMatch] = {}
        if profile.pattern_group:
            cascade = self.extractor.extract_group(text, profile.pattern_group)

        corrections: list[CorrectionRecord] = []
        if path is ExtractionPath.STRUCTURED:
            mapped = self.mapper.map(result, profile)
            fields, corrections = self.reconciler.reconcile(mapped, cascade, profile)
        else:
            fields = {}

        for name, match in cascade.items():
            fields.setdefault(name, match.value)

        if profile.party_group and text:
            party = self.party_extractor.extract(text, profile.family)
            for name, value in party.as_fields().items():
                fields.setdefault(name, value)

        self._derive_address(fields, profile, text)
        return fields, corrections

    def _derive_address(self, fields: dict[str, FieldValue], profile: SubtypeProfile, text: str) -> None:
        """Sub-fields come only from the parent address; empty parts are omitted."""
        targets = profile.address_fields
        if targets is None:
            return
        parent = fields.get(targets.parent)
        if not isinstance(parent, str) or not parent:
            return

        parts = self.decomposer.decompose(parent, text)
        for name, value in (
            (targets.street, parts.street),
            (targets.city, parts.city),
            (targets.state, parts.state),
            (targets.zip_code, parts.zip_code),
        ):
            if value:
                fields[name] = value

    def _finish(
        self,
        fields: dict[str, FieldValue],
        corrections: list[CorrectionRecord],
        text: str,
        claimed: DocumentSubtype,
        effective: DocumentSubtype,
        path: ExtractionPath,
    ) -> ResolvedFieldMap:
        for record in corrections:
            self._emit(
                CORRECTION_APPLIED,
                field=record.field,
                action=record.action.value,
                rule=record.rule,
                previous=str(record.previous) if record.previous is not None else None,
                value=str(record.value),
                source_field=record.source_field,
            )

        resolved = ResolvedFieldMap(
            fields,
            full_text=text,
            corrected_document_type=effective if effective is not claimed else None,
            document_type=effective,
            extraction_path=path,
            corrections=corrections,
        )
        self._emit(
            RESOLUTION_COMPLETED,
            document_type=effective.value,
            extraction_path=path.value,
            field_count=len(resolved),
            corrections=len(corrections),
            reclassified=resolved.corrected_document_type is not None,
        )
        return resolved

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _profile(self, subtype: DocumentSubtype) -> SubtypeProfile:
        return self.profiles.get(subtype) or self.profiles[DocumentSubtype.UNKNOWN]

    def _model_id(self, profile: SubtypeProfile) -> str:
        return profile.model_id or self.config.document_intelligence.generic_model_id

    def _emit(self, name: str, level: str = "info", **fields) -> None:
        self.sink.emit(ResolutionEvent(name, level, fields))
