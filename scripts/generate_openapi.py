"""Export the ledger API's OpenAPI document."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from ledgerbook.core.config import get_settings
from ledgerbook.main import create_application


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", type=Path, default=Path("docs/openapi.json"))
    args = parser.parse_args()

    # Audit sampling off so exporting never writes to the audit bucket.
    settings = get_settings().model_copy(update={"audit_log_sample_rate": 0.0})
    document = create_application(settings).openapi()
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
    print(f"OpenAPI document written to {args.output}")


if __name__ == "__main__":
    main()
