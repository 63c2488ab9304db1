"""Document-understanding collaborator.

The resolver talks to the remote service only through the DocumentAnalyzer
protocol. AzureDocumentAnalyzer is the production implementation on top of
Azure AI Document Intelligence; tests substitute an in-memory fake.
"""

import io
from datetime import date
from typing import Any, Optional, Protocol, runtime_checkable

import structlog
from azure.ai.documentintelligence import DocumentIntelligenceClient
from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError

from .config import DocumentIntelligenceConfig
from .exceptions import ConfigurationError, ModelNotFoundError, UpstreamError
from .models import StructuredExtractionResult

logger = structlog.get_logger()

_NOT_FOUND_CODES = {"ModelNotFound", "NotFound", "ResourceNotFound"}
_NOT_FOUND_MESSAGES = ("ModelNotFound", "Resource not found")


@runtime_checkable
class DocumentAnalyzer(Protocol):
    """Runs one remote analysis to completion.

    Implementations raise ModelNotFoundError when the model or resource
    does not exist and UpstreamError for any other failure.
    """

    def analyze(self, model_id: str, document: bytes) -> StructuredExtractionResult:
        ...


# =============================================================================
# FIELD FLATTENING
# =============================================================================

def field_value(field: Any) -> Any:
    """Primitive value of a DocumentField, or None when it has none."""
    if field is None:
        return None

    currency = getattr(field, "value_currency", None)
    if currency is not None and getattr(currency, "amount", None) is not None:
        return currency.amount
    for attr in ("value_number", "value_integer"):
        value = getattr(field, attr, None)
        if value is not None:
            return value
    for attr in ("value_string", "value_phone_number", "value_country_region"):
        value = getattr(field, attr, None)
        if value:
            return value
    if getattr(field, "value_boolean", None) is not None:
        return field.value_boolean
    value_date = getattr(field, "value_date", None)
    if isinstance(value_date, date):
        return value_date.isoformat()
    # Addresses are kept as printed so they can be decomposed locally
    content = getattr(field, "content", None)
    if content and content.strip():
        return content.strip()
    return None


def flatten_fields(fields: Optional[dict[str, Any]], prefix: str = "") -> dict[str, Any]:
    """
    Flatten nested DocumentFields into dotted vendor keys.

    Objects recurse (`Employee.Name`). Arrays of primitives become lists;
    arrays of objects are flattened with the item index (`StateTaxInfos.0.State`).
    """
    flat: dict[str, Any] = {}
    for name, field in (fields or {}).items():
        key = f"{prefix}{name}"
        value_object = getattr(field, "value_object", None)
        value_array = getattr(field, "value_array", None)

        if value_object:
            flat.update(flatten_fields(value_object, f"{key}."))
        elif value_array:
            items = []
            for index, item in enumerate(value_array):
                item_object = getattr(item, "value_object", None)
                if item_object:
                    flat.update(flatten_fields(item_object, f"{key}.{index}."))
                else:
                    value = field_value(item)
                    if value is not None:
                        items.append(value)
            if items:
                flat[key] = items
        else:
            value = field_value(field)
            if value is not None:
                flat[key] = value
    return flat


def _key_value_pairs(result: Any) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for pair in getattr(result, "key_value_pairs", None) or []:
        key = getattr(getattr(pair, "key", None), "content", None)
        value = getattr(getattr(pair, "value", None), "content", None)
        if key and value and key.strip() and value.strip():
            pairs[key.strip()] = value.strip()
    return pairs


def is_not_found(error: HttpResponseError) -> bool:
    """Whether a service error means the model or resource does not exist."""
    if isinstance(error, ResourceNotFoundError):
        return True
    if getattr(error, "status_code", None) == 404:
        return True
    code = getattr(getattr(error, "error", None), "code", None)
    if code in _NOT_FOUND_CODES:
        return True
    message = str(getattr(error, "message", None) or error)
    return any(marker in message for marker in _NOT_FOUND_MESSAGES)


# =============================================================================
# AZURE IMPLEMENTATION
# =============================================================================

class AzureDocumentAnalyzer:
    """
    DocumentAnalyzer backed by Azure AI Document Intelligence.

    Credentials come from the configuration passed in; nothing is read from
    module globals. A pre-built client may be supplied instead.

    Example:
        config = DocumentIntelligenceConfig()
        analyzer = AzureDocumentAnalyzer(config)
        result = analyzer.analyze("prebuilt-tax.us.w2", pdf_bytes)
    """

    def __init__(
        self,
        config: Optional[DocumentIntelligenceConfig] = None,
        client: Optional[DocumentIntelligenceClient] = None,
    ) -> None:
        self.config = config or DocumentIntelligenceConfig()
        if client is None:
            client = self._build_client(self.config)
        self._client = client

    @staticmethod
    def _build_client(config: DocumentIntelligenceConfig) -> DocumentIntelligenceClient:
        if not config.endpoint:
            raise ConfigurationError(
                "Missing Document Intelligence endpoint",
                config_key="TAXDOC_DI_ENDPOINT",
                expected="https://<resource>.cognitiveservices.azure.com/",
            )
        if not config.api_key:
            raise ConfigurationError(
                "Missing Document Intelligence API key",
                config_key="TAXDOC_DI_API_KEY",
                expected="Resource key from the Azure portal",
            )
        return DocumentIntelligenceClient(
            endpoint=config.endpoint,
            credential=AzureKeyCredential(config.api_key),
        )

    def analyze(self, model_id: str, document: bytes) -> StructuredExtractionResult:
        logger.info("analysis_started", model_id=model_id, size=len(document))
        try:
            poller = self._client.begin_analyze_document(model_id=model_id, body=io.BytesIO(document))
            result = poller.result(timeout=self.config.polling_timeout)
        except HttpResponseError as e:
            if is_not_found(e):
                raise ModelNotFoundError(
                    f"Model not found: {model_id}",
                    model_id=model_id,
                    details={"status_code": getattr(e, "status_code", None)},
                ) from e
            raise UpstreamError(
                str(getattr(e, "message", None) or e),
                model_id=model_id,
                operation="analyze_document",
                details={"status_code": getattr(e, "status_code", None)},
            ) from e
        except AzureError as e:
            raise UpstreamError(str(e), model_id=model_id, operation="analyze_document") from e

        # result() hands back None when the timeout expires before the operation ends
        if result is None or not poller.done():
            raise UpstreamError(
                f"Analysis did not complete within {self.config.polling_timeout}s",
                model_id=model_id,
                operation="analyze_document",
                details={"polling_timeout": self.config.polling_timeout},
            )

        documents = getattr(result, "documents", None) or []
        fields = flatten_fields(getattr(documents[0], "fields", None)) if documents else {}
        extraction = StructuredExtractionResult(
            model_id=model_id,
            content=getattr(result, "content", None) or "",
            fields=fields,
            key_value_pairs=_key_value_pairs(result),
        )
        logger.info(
            "analysis_completed",
            model_id=model_id,
            documents=len(documents),
            fields=len(fields),
            content_chars=len(extraction.content),
        )
        return extraction
