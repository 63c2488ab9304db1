"""Tests for the Azure Document Intelligence analyzer."""

from datetime import date
from types import SimpleNamespace

import pytest
from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError

from taxdoc_resolver.client import (
    AzureDocumentAnalyzer,
    DocumentAnalyzer,
    field_value,
    flatten_fields,
    is_not_found,
)
from taxdoc_resolver.config import DocumentIntelligenceConfig
from taxdoc_resolver.exceptions import ConfigurationError, ModelNotFoundError, UpstreamError


def doc_field(**attrs):
    """Stand-in for an azure DocumentField."""
    return SimpleNamespace(**attrs)


class FakePoller:
    def __init__(self, result, done=True):
        self._result = result
        self._done = done
        self.timeout = None

    def result(self, timeout=None):
        self.timeout = timeout
        return self._result if self._done else None

    def done(self):
        return self._done


class FakeClient:
    """Records begin_analyze_document calls; raises `error` when given."""

    def __init__(self, result=None, error=None, done=True):
        self._result = result
        self._error = error
        self._done = done
        self.calls = []
        self.poller = None

    def begin_analyze_document(self, model_id, body):
        self.calls.append((model_id, body.read()))
        if self._error is not None:
            raise self._error
        self.poller = FakePoller(self._result, self._done)
        return self.poller


@pytest.fixture
def di_config():
    return DocumentIntelligenceConfig(endpoint="https://example.cognitiveservices.azure.com", api_key="key")


class TestFieldValue:
    """Primitive value extraction from DocumentFields."""

    def test_currency(self):
        """Currency fields yield their amount."""
        assert field_value(doc_field(value_currency=SimpleNamespace(amount=52000.0))) == 52000.0

    def test_number(self):
        """Number fields yield their value."""
        assert field_value(doc_field(value_number=12.5)) == 12.5

    def test_string(self):
        """String fields yield their text."""
        assert field_value(doc_field(value_string="JOHN Q SMITH")) == "JOHN Q SMITH"

    def test_boolean_false_kept(self):
        """A false checkbox is still a value."""
        assert field_value(doc_field(value_boolean=False)) is False

    def test_date(self):
        """Dates are ISO formatted."""
        assert field_value(doc_field(value_date=date(2023, 12, 31))) == "2023-12-31"

    def test_address_uses_content(self):
        """Address fields fall back to the printed text."""
        field = doc_field(value_address=SimpleNamespace(city="Austin"), content=" 123 MAIN ST AUSTIN TX 78701 ")
        assert field_value(field) == "123 MAIN ST AUSTIN TX 78701"

    def test_empty(self):
        """Fields with nothing printed have no value."""
        assert field_value(doc_field(content="  ")) is None
        assert field_value(None) is None


class TestFlattenFields:
    """Nested field maps become dotted keys."""

    def test_objects_become_dotted_keys(self):
        """Object fields recurse with a dotted prefix."""
        fields = {
            "Employee": doc_field(value_object={
                "Name": doc_field(value_string="JOHN Q SMITH"),
                "SSN": doc_field(value_string="123-45-6789"),
            }),
            "WagesAndTips": doc_field(value_currency=SimpleNamespace(amount=52000.0)),
        }
        assert flatten_fields(fields) == {
            "Employee.Name": "JOHN Q SMITH",
            "Employee.SSN": "123-45-6789",
            "WagesAndTips": 52000.0,
        }

    def test_arrays(self):
        """Primitive arrays become lists; object arrays are indexed."""
        fields = {
            "StateWagesTipsEtc": doc_field(value_array=[doc_field(value_number=1000.0), doc_field(value_number=2000.0)]),
            "StateTaxInfos": doc_field(value_array=[
                doc_field(value_object={"State": doc_field(value_string="TX")}),
            ]),
        }
        assert flatten_fields(fields) == {
            "StateWagesTipsEtc": [1000.0, 2000.0],
            "StateTaxInfos.0.State": "TX",
        }

    def test_valueless_fields_skipped(self):
        """Fields without a value are left out."""
        assert flatten_fields({"Empty": doc_field()}) == {}
        assert flatten_fields(None) == {}


class TestIsNotFound:
    """Detection of "model or resource not found" errors."""

    def test_resource_not_found_error(self):
        """The SDK's not-found error type is recognized."""
        assert is_not_found(ResourceNotFoundError(message="gone")) is True

    def test_status_code_404(self):
        """An HTTP 404 status is recognized."""
        error = HttpResponseError(message="Not Found")
        error.status_code = 404
        assert is_not_found(error) is True

    def test_message_marker(self):
        """The service's ModelNotFound code in the message is recognized."""
        assert is_not_found(HttpResponseError(message="(ModelNotFound) Model 'x' not found.")) is True

    def test_other_error(self):
        """Other service errors are not a missing model."""
        assert is_not_found(HttpResponseError(message="Internal server error")) is False


class TestAzureDocumentAnalyzer:
    """The production analyzer against a fake SDK client."""

    def test_satisfies_protocol(self, di_config):
        """The analyzer satisfies the DocumentAnalyzer protocol."""
        analyzer = AzureDocumentAnalyzer(di_config, client=FakeClient())
        assert isinstance(analyzer, DocumentAnalyzer)

    def test_missing_endpoint(self):
        """Building a client without an endpoint is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            AzureDocumentAnalyzer(DocumentIntelligenceConfig())
        assert exc_info.value.config_key == "TAXDOC_DI_ENDPOINT"

    def test_missing_api_key(self):
        """Building a client without a key is a configuration error."""
        config = DocumentIntelligenceConfig(endpoint="https://example.cognitiveservices.azure.com")
        with pytest.raises(ConfigurationError) as exc_info:
            AzureDocumentAnalyzer(config)
        assert exc_info.value.config_key == "TAXDOC_DI_API_KEY"

    def test_analyze(self, di_config):
        """Results are flattened into a StructuredExtractionResult."""
        result = SimpleNamespace(
            content="Form W-2 Wage and Tax Statement",
            documents=[SimpleNamespace(fields={
                "Employee": doc_field(value_object={"Name": doc_field(value_string="JOHN Q SMITH")}),
                "WagesAndTips": doc_field(value_currency=SimpleNamespace(amount=52000.0)),
            })],
            key_value_pairs=[
                SimpleNamespace(key=SimpleNamespace(content="Control number"), value=SimpleNamespace(content="A1")),
                SimpleNamespace(key=SimpleNamespace(content="Empty"), value=None),
            ],
        )
        client = FakeClient(result)
        analyzer = AzureDocumentAnalyzer(di_config, client=client)

        extraction = analyzer.analyze("prebuilt-tax.us.w2", b"%PDF-1.7")

        assert client.calls == [("prebuilt-tax.us.w2", b"%PDF-1.7")]
        assert client.poller.timeout == di_config.polling_timeout
        assert extraction.model_id == "prebuilt-tax.us.w2"
        assert extraction.content == "Form W-2 Wage and Tax Statement"
        assert extraction.fields == {"Employee.Name": "JOHN Q SMITH", "WagesAndTips": 52000.0}
        assert extraction.key_value_pairs == {"Control number": "A1"}

    def test_read_model_without_documents(self, di_config):
        """The read model returns a transcript and no documents."""
        client = FakeClient(SimpleNamespace(content="some text", documents=None))
        extraction = AzureDocumentAnalyzer(di_config, client=client).analyze("prebuilt-read", b"x")
        assert extraction.fields == {}
        assert extraction.content == "some text"

    def test_unfinished_analysis_raises_upstream_error(self, di_config):
        """An analysis still running at the polling timeout is an upstream failure."""
        result = SimpleNamespace(content="Form W-2", documents=[])
        client = FakeClient(result, done=False)
        with pytest.raises(UpstreamError) as exc_info:
            AzureDocumentAnalyzer(di_config, client=client).analyze("prebuilt-tax.us.w2", b"x")
        assert not isinstance(exc_info.value, ModelNotFoundError)
        assert exc_info.value.operation == "analyze_document"
        assert exc_info.value.details["polling_timeout"] == di_config.polling_timeout

    def test_not_found_raises_model_not_found(self, di_config):
        """A missing model raises ModelNotFoundError."""
        client = FakeClient(error=ResourceNotFoundError(message="Resource not found"))
        with pytest.raises(ModelNotFoundError) as exc_info:
            AzureDocumentAnalyzer(di_config, client=client).analyze("prebuilt-tax.us.w2", b"x")
        assert exc_info.value.model_id == "prebuilt-tax.us.w2"

    def test_service_error_raises_upstream_error(self, di_config):
        """Other service failures are not mistaken for a missing model."""
        client = FakeClient(error=HttpResponseError(message="Internal server error"))
        with pytest.raises(UpstreamError) as exc_info:
            AzureDocumentAnalyzer(di_config, client=client).analyze("prebuilt-tax.us.w2", b"x")
        assert not isinstance(exc_info.value, ModelNotFoundError)
        assert "Internal server error" in str(exc_info.value)

    def test_transport_error_raises_upstream_error(self, di_config):
        """Transport failures raise UpstreamError."""
        client = FakeClient(error=AzureError("Connection reset"))
        with pytest.raises(UpstreamError):
            AzureDocumentAnalyzer(di_config, client=client).analyze("prebuilt-tax.us.w2", b"x")
