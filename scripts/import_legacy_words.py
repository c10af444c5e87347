"""
Import word records exported by the earlier browser app.

This script:
1. Reads a JSON export (a list of words, or {"words": [...]})
2. Validates each record and moves the legacy "ease" field into stability_days
3. Saves every character not already in the review database

Records whose character already exists are skipped as duplicates; records
whose id belongs to a different character are skipped as conflicts.

Usage:
    python scripts/import_legacy_words.py EXPORT.json [--dry-run]
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from hanzi_review import srs
from hanzi_review.legacy import CONFLICT, DUPLICATE, INVALID, import_legacy_words


def load_export(path: Path) -> list[dict]:
    """Read the raw word records from an export file."""
    if not path.exists():
        raise FileNotFoundError(f"Export not found: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("words", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of words in {path}")
    return data


def import_words(path: Path, dry_run: bool = False) -> None:
    """
    Import legacy words into the review database.

    Args:
        path: JSON export file
        dry_run: If True, validate and report without writing
    """
    records = load_export(path)
    print(f"Loaded {len(records)} words from {path}")

    srs.init_db()
    report = import_legacy_words(records, dry_run=dry_run)

    for outcome in report.outcomes:
        if outcome.status == INVALID:
            print(f"  ✗ [{outcome.index}] Invalid record: {outcome.detail}")
        elif outcome.status == DUPLICATE:
            print(f"  ⚠ [{outcome.index}] {outcome.hanzi} already exists, skipped")
        elif outcome.status == CONFLICT:
            print(f"  ⚠ [{outcome.index}] {outcome.hanzi}: {outcome.detail}, skipped")

    print(f"\n{'='*60}")
    print("Import complete!")
    print(f"{'='*60}")
    print(f"Imported:           {report.imported}")
    print(f"Duplicates skipped: {report.duplicates}")
    print(f"Id conflicts:       {report.conflicts}")
    print(f"Invalid records:    {report.invalid}")

    if dry_run:
        print("\n⚠ DRY RUN MODE - No changes were written")


def main():
    parser = argparse.ArgumentParser(description="Import legacy word exports into the review database")
    parser.add_argument("export", type=Path, help="JSON export file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and report without writing to the database"
    )

    args = parser.parse_args()
    import_words(args.export, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
