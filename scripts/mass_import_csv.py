"""Upload a staff certification CSV to the mass import endpoint.

Prereqs:
- Backend running (`uvicorn src.backend.app:app`) or deployed
- A user access token for the account to import into

Env vars:
- CERTIFY_ACCESS_TOKEN            (or pass --token)
- CERTIFY_BACKEND_BASE_URL        [default: http://127.0.0.1:8000/api/v1]

Run:
  python scripts/mass_import_csv.py staff.csv --errors-out import-errors.csv
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from datetime import date
from pathlib import Path

# Allow running as: `python scripts/mass_import_csv.py`
# by ensuring the repository root (parent of `scripts/`) is on sys.path.
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from dotenv import load_dotenv

# Load .env before the backend modules read their settings.
load_dotenv(override=False)

from src.backend.certify.integrations.certify_api_client import call_mass_import_backend
from src.backend.certify.use_cases.csv_rows import (
    missing_required_columns,
    parse_csv_rows,
    render_error_report,
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--token", default=os.environ.get("CERTIFY_ACCESS_TOKEN"))
    parser.add_argument("--base-url", default=None)
    parser.add_argument(
        "--errors-out",
        type=Path,
        default=None,
        help="Where to write the per-row error report (default: import-errors-<today>.csv)",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    if not args.token:
        raise SystemExit("Missing access token. Set CERTIFY_ACCESS_TOKEN or pass --token.")
    if args.csv_path.suffix.lower() != ".csv":
        raise SystemExit("Please upload a CSV file")

    headers, rows = parse_csv_rows(args.csv_path.read_text(encoding="utf-8"))
    missing = missing_required_columns(headers)
    if missing:
        raise SystemExit(f"Missing required columns: {', '.join(missing)}")
    if not rows:
        raise SystemExit("CSV file is empty")

    print(f"Parsed {len(rows)} rows from {args.csv_path}")
    outcome = asyncio.run(
        call_mass_import_backend(rows=rows, access_token=args.token, backend_base_url=args.base_url)
    )

    if not outcome["ok"]:
        print(f"❌ Import failed ({outcome['status_code']}): {outcome['error']}")
        raise SystemExit(1)

    results = outcome["response"]["results"]
    print(
        "✅ Imported {success} rows | staff +{staffCreated} | templates +{templatesCreated} | "
        "certifications +{certificationsCreated}".format(**results)
    )

    errors = results.get("errors") or []
    if errors:
        out_path = args.errors_out or Path(f"import-errors-{date.today().isoformat()}.csv")
        out_path.write_text(render_error_report(errors), encoding="utf-8")
        print(f"⚠️  {len(errors)} rows failed; report written to {out_path}")
        for err in errors[:5]:
            print(json.dumps({"row": err.get("row"), "error": err.get("error")}))


if __name__ == "__main__":
    main()
