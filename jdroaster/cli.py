"""
Command-line analysis.

Usage:
    jdroaster analyze posting.txt              # Text receipts view
    jdroaster analyze posting.txt --json       # Full report as JSON
    cat posting.txt | jdroaster analyze        # Read from stdin
    jdroaster sentences posting.txt            # Show segmentation
    jdroaster analyze posting.txt --catalog rules.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from jdroaster.analyzer import Analyzer
from jdroaster.catalog import CatalogError, load_catalog
from jdroaster.logging import setup_logging
from jdroaster.normalize import normalize
from jdroaster.receipts import format_report
from jdroaster.sentences import segment


def _read_input(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jdroaster", description="Deterministic job description analyzer",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_analyze = sub.add_parser("analyze", help="Analyze a job description")
    p_analyze.add_argument("file", nargs="?", help="Input file (default: stdin)")
    p_analyze.add_argument("--catalog", help="Rule catalog JSON (default: packaged catalog)")
    p_analyze.add_argument("--json", action="store_true", help="Output the report as JSON")

    p_sentences = sub.add_parser("sentences", help="Show normalization and segmentation")
    p_sentences.add_argument("file", nargs="?", help="Input file (default: stdin)")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(fmt="text", stream=sys.stderr)

    try:
        raw_text = _read_input(args.file)
    except OSError as exc:
        print(f"Error: cannot read input: {exc}", file=sys.stderr)
        return 1

    if args.command == "sentences":
        for s in segment(normalize(raw_text)):
            print(f"{s.id:>6} [{s.start}:{s.end}] {s.text}")
        return 0

    try:
        catalog = load_catalog(args.catalog)
    except CatalogError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    report = Analyzer(catalog).analyze(raw_text)
    if args.json:
        print(json.dumps(report.model_dump(mode="json", by_alias=True), indent=2))
    else:
        print(format_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
