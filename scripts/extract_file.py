"""Extract text from a local file through the same pipeline the API uses."""

import argparse
import asyncio
import json
import os
import sys

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from docflow.core.exceptions import DocFlowError, IncorrectPasswordError, PasswordRequiredError
from docflow.core.logging import setup_logging
from docflow.services.extraction.base import UploadedFile
from docflow.services.extraction.dispatcher import extract_text


def _print_progress(percent: int) -> None:
    print(f"\r  progress: {percent:3d}%", end="", file=sys.stderr, flush=True)


def main() -> int:
    parser = argparse.ArgumentParser(description="Extract text from a document")
    parser.add_argument("path", help="PDF, DOCX, XLSX/XLS, TXT/MD/CSV or image file")
    parser.add_argument("--password", default=None, help="Password for encrypted PDFs")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    setup_logging(args.log_level)

    upload = UploadedFile.from_path(args.path)
    try:
        result = asyncio.run(extract_text(upload, _print_progress, args.password))
    except (PasswordRequiredError, IncorrectPasswordError) as e:
        print(f"\n{e.message}. Re-run with --password.", file=sys.stderr)
        return 2
    except DocFlowError as e:
        print(f"\nExtraction failed: {e.message}", file=sys.stderr)
        return 1
    print(file=sys.stderr)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"# {result.source_kind} via {result.strategy_label} (confidence {result.confidence})")
        print(result.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
