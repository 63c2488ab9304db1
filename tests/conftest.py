"""Shared fixtures for resolver tests."""

from typing import Union

import pytest

from taxdoc_resolver.config import TaxDocConfig
from taxdoc_resolver.events import RecordingEventSink
from taxdoc_resolver.models import StructuredExtractionResult
from taxdoc_resolver.resolver import TaxDocumentResolver


W2_TRANSCRIPT = """Form W-2 Wage and Tax Statement 2023
a Employee's social security number
123-45-6789
b Employer identification number (EIN) 12-3456789
c Employer's name, address, and ZIP code
ACME MANUFACTURING INC
500 Industrial Blvd, Dallas, TX 75201
e Employee's first name and initial Last name JOHN Q SMITH
f Employee's address and ZIP code 123 MAIN ST AUSTIN TX 78701
1 Wages, tips, other comp. $52,000.00
2 Federal income tax withheld $6,240.00
3 Social security wages 52000.00
4 Social security tax withheld 3224.00
5 Medicare wages and tips 52000.00
6 Medicare tax withheld 754.00
"""

DIV_TRANSCRIPT = """Form 1099-DIV Dividends and Distributions
PAYER'S name
ACME FUND
1a Total ordinary dividends $1,200.50
1b Qualified dividends $800.00
4 Federal income tax withheld $0.00
"""

MISC_TRANSCRIPT = """CORRECTED (if checked)
PAYER'S name
Coastal Fisheries LLC
Form 1099-MISC Miscellaneous Information
3 Other income
OMB No. 1545-0115
$350,000.00
4 Federal income tax withheld
$
5 Fishing boat proceeds $100
"""

INT_TRANSCRIPT = """PAYER'S name, street address, city or town, state or province, country, ZIP or foreign postal code, and telephone no.
First National Bank 100 Bank Plaza, Columbus, OH 43215
PAYER'S TIN 31-1234567
RECIPIENT'S TIN
XXX-XX-6789
RECIPIENT'S name
Jane Doe
Street address (including apt. no.)
456 Oak Avenue Apt 2
City or town, state or province, country, and ZIP or foreign postal code
Springfield, IL 62704
Form 1099-INT Interest Income
1 Interest income $1,234.56
"""

W2_FIELDS = {
    "Employee.Name": "JOHN Q SMITH",
    "Employee.SSN": "123-45-6789",
    "Employee.Address": "123 MAIN ST AUSTIN TX 78701",
    "Employer.Name": "ACME MANUFACTURING INC",
    "Employer.EIN": "12-3456789",
    "Employer.Address": "500 Industrial Blvd, Dallas, TX 75201",
    "WagesAndTips": 52000.0,
    "FederalIncomeTaxWithheld": 6240.0,
    "SocialSecurityWages": 52000.0,
    "SocialSecurityTaxWithheld": 3224.0,
    "MedicareWagesAndTips": 52000.0,
    "MedicareTaxWithheld": 754.0,
}

DIV_FIELDS = {
    "Payer.Name": "ACME FUND",
    "OrdinaryDividends": 1200.5,
    "QualifiedDividends": 800.0,
    "NonemployeeCompensation": 999.0,
}


class FakeAnalyzer:
    """In-memory DocumentAnalyzer.

    `responses` maps a model id to a StructuredExtractionResult or to an
    exception instance that the call raises.
    """

    def __init__(self, responses: dict[str, Union[StructuredExtractionResult, Exception]]):
        self.responses = responses
        self.calls: list[str] = []

    def analyze(self, model_id: str, document: bytes) -> StructuredExtractionResult:
        self.calls.append(model_id)
        response = self.responses.get(model_id)
        if response is None:
            raise RuntimeError(f"unexpected model {model_id}")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep developer environment variables out of configuration tests."""
    for name in (
        "TAXDOC_ENV",
        "TAXDOC_LOG_LEVEL",
        "TAXDOC_DI_ENDPOINT",
        "TAXDOC_DI_API_KEY",
        "TAXDOC_DI_GENERIC_MODEL_ID",
        "TAXDOC_DI_FALLBACK_MODEL_ID",
        "TAXDOC_DI_POLLING_TIMEOUT",
        "TAXDOC_RECONCILER_TOLERANCE",
        "TAXDOC_RECONCILER_RECLASSIFY_AMBIGUOUS",
        "TAXDOC_CASCADE_CONTEXT_FLOOR",
        "TAXDOC_CASCADE_SUSPICIOUS_RATIO",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    """Default configuration in the test environment."""
    return TaxDocConfig(env="test")


@pytest.fixture
def sink():
    """Event sink that records checkpoints."""
    return RecordingEventSink()


@pytest.fixture
def w2_result():
    """Structured W-2 extraction with matching transcript."""
    return StructuredExtractionResult(
        model_id="prebuilt-tax.us.w2",
        content=W2_TRANSCRIPT,
        fields=dict(W2_FIELDS),
    )


@pytest.fixture
def div_result():
    """Structured 1099 extraction of a 1099-DIV."""
    return StructuredExtractionResult(
        model_id="prebuilt-tax.us.1099",
        content=DIV_TRANSCRIPT,
        fields=dict(DIV_FIELDS),
    )


@pytest.fixture
def make_resolver(config, sink):
    """Build a resolver around a FakeAnalyzer."""
    def _make(responses):
        analyzer = FakeAnalyzer(responses)
        return TaxDocumentResolver(analyzer, config, sink), analyzer
    return _make
