#!/usr/bin/env python3
"""
Resolve a W-2 or 1099 and print the resolved fields as JSON.

A PDF or image is sent to Azure AI Document Intelligence, using the
TAXDOC_DI_ENDPOINT and TAXDOC_DI_API_KEY settings (environment or .env).
With --transcript the file is treated as an OCR transcript and no remote
call is made.

Usage:
    python examples/resolve_document.py w2.pdf --subtype W2
    python examples/resolve_document.py scan.txt --subtype FORM_1099_NEC --transcript
    python examples/resolve_document.py 1099.pdf --subtype FORM_1099_DIV --show-events
"""

import argparse
import json
import sys
from decimal import Decimal
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taxdoc_resolver import (
    AzureDocumentAnalyzer,
    RecordingEventSink,
    TaxDocConfig,
    TaxDocError,
    TaxDocumentResolver,
    configure_logging,
)


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that keeps Decimal amounts exact."""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve tax document fields")
    parser.add_argument("path", type=Path, help="Document (PDF/image) or transcript file")
    parser.add_argument(
        "--subtype",
        default="UNKNOWN",
        help="Claimed subtype: W2, FORM_1099_INT, FORM_1099_DIV, FORM_1099_MISC, FORM_1099_NEC",
    )
    parser.add_argument("--transcript", action="store_true", help="Treat the file as plain-text OCR output")
    parser.add_argument("--show-events", action="store_true", help="Print checkpoint events after the result")
    parser.add_argument("--full-text", action="store_true", help="Include the transcript in the output")
    args = parser.parse_args()

    if not args.path.exists():
        print(f"Error: {args.path} does not exist", file=sys.stderr)
        return 1

    config = TaxDocConfig()
    configure_logging(config.log_level)
    sink = RecordingEventSink()

    try:
        if args.transcript:
            resolver = TaxDocumentResolver(config=config, sink=sink)
            resolved = resolver.resolve_transcript(args.path.read_text(encoding="utf-8"), args.subtype)
        else:
            analyzer = AzureDocumentAnalyzer(config.document_intelligence)
            resolver = TaxDocumentResolver(analyzer, config, sink)
            resolved = resolver.resolve(args.path, args.subtype)
    except TaxDocError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    output = resolved.to_dict()
    if not args.full_text:
        output.pop("fullText", None)
    output["_meta"] = {
        "documentType": resolved.document_type.value,
        "extractionPath": resolved.extraction_path.value,
        "degraded": resolved.degraded,
        "corrections": [
            {
                "field": c.field,
                "action": c.action.value,
                "rule": c.rule,
                "previous": c.previous,
                "value": c.value,
            }
            for c in resolved.corrections
        ],
    }
    print(json.dumps(output, indent=2, cls=DecimalEncoder))

    if args.show_events:
        for event in sink.events:
            print(f"[{event.level}] {event.name} {json.dumps(event.fields, cls=DecimalEncoder)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
