"""Taxdoc Resolver - canonical field resolution for W-2 and 1099 documents."""

__version__ = "0.1.0"

from .address import AddressDecomposer
from .classifier import SubtypeClassifier
from .client import AzureDocumentAnalyzer, DocumentAnalyzer
from .config import CascadeConfig, DocumentIntelligenceConfig, ReconcilerConfig, TaxDocConfig
from .events import RecordingEventSink, ResolutionEvent, StructlogEventSink, configure_logging
from .exceptions import (
    ConfigurationError,
    FieldValidationRejected,
    ModelNotFoundError,
    TaxDocError,
    UpstreamError,
    UpstreamUnavailable,
)
from .extractor import CascadeExtractor
from .models import DocumentSubtype, ResolvedFieldMap, StructuredExtractionResult
from .reconciler import CrossSourceReconciler
from .resolver import TaxDocumentResolver

__all__ = [
    "TaxDocumentResolver",
    "AzureDocumentAnalyzer",
    "DocumentAnalyzer",
    "DocumentSubtype",
    "ResolvedFieldMap",
    "StructuredExtractionResult",
    "SubtypeClassifier",
    "CascadeExtractor",
    "CrossSourceReconciler",
    "AddressDecomposer",
    "TaxDocConfig",
    "DocumentIntelligenceConfig",
    "CascadeConfig",
    "ReconcilerConfig",
    "ResolutionEvent",
    "RecordingEventSink",
    "StructlogEventSink",
    "configure_logging",
    "TaxDocError",
    "UpstreamError",
    "ModelNotFoundError",
    "UpstreamUnavailable",
    "FieldValidationRejected",
    "ConfigurationError",
]
