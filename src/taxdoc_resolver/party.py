"""Party identity extraction (names, tax IDs, addresses) from transcripts.

W-2s carry employee and employer blocks; 1099s carry recipient and payer
blocks. Each field is its own cascade in the pattern library, validated
so that printed label text is never captured as data.
"""

from typing import Optional

import structlog

from .classifier import SubtypeClassifier
from .extractor import CascadeExtractor
from .models import FormFamily, PartyInfo
from .patterns import party_group

logger = structlog.get_logger()

_FIELD_ATTRS = {
    FormFamily.W2: {
        "employeeName": "name",
        "employeeSSN": "tax_id",
        "employeeAddress": "address",
        "employerName": "counterpart_name",
        "employerEIN": "counterpart_tax_id",
        "employerAddress": "counterpart_address",
    },
    FormFamily.FORM_1099: {
        "recipientName": "name",
        "recipientTIN": "tax_id",
        "recipientAddress": "address",
        "payerName": "counterpart_name",
        "payerTIN": "counterpart_tax_id",
        "payerAddress": "counterpart_address",
    },
}


class PartyInfoExtractor:
    """Runs the W-2 or 1099 party cascades over a transcript."""

    def __init__(
        self,
        extractor: Optional[CascadeExtractor] = None,
        classifier: Optional[SubtypeClassifier] = None,
    ) -> None:
        self.extractor = extractor or CascadeExtractor()
        self.classifier = classifier or SubtypeClassifier()

    def detect_family(self, text: str, default: FormFamily = FormFamily.W2) -> FormFamily:
        """Document-wide 1099 check; undecided transcripts use `default`."""
        family = self.classifier.classify_family(text)
        if family is FormFamily.UNKNOWN:
            return FormFamily.FORM_1099 if default is FormFamily.FORM_1099 else FormFamily.W2
        return family

    def extract(self, text: str, default_family: FormFamily = FormFamily.W2) -> PartyInfo:
        if not text:
            return PartyInfo(family=default_family if default_family is not FormFamily.UNKNOWN else FormFamily.W2)

        prepared = text.replace("’", "'")
        family = self.detect_family(prepared, default_family)
        matches = self.extractor.extract_group(prepared, party_group(family))

        info = PartyInfo(family=family)
        for field, attr in _FIELD_ATTRS[family].items():
            match = matches.get(field)
            if match is not None:
                setattr(info, attr, match.value)

        logger.debug(
            "party_info_extracted",
            family=family.value,
            fields=sorted(matches),
            patterns={f: m.pattern_id for f, m in matches.items()},
        )
        return info
