"""
Import a member roster from a CSV file.
Usage: python scripts/import_members.py roster.csv [--error-limit 50]
"""
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from app.core.audit import write_audit_log
from app.core.exceptions import CsvImportError
from app.db.base import SessionLocal
from app.services.csv_import import import_members

SCRIPT_ACTOR = "import_script"


def run_import(path: str, error_limit: int = None) -> int:
    """Import ``path`` and print a summary; returns a process exit code."""
    raw_text = Path(path).read_text(encoding="utf-8-sig")
    db = SessionLocal()
    try:
        result = import_members(db, raw_text, error_limit=error_limit, changed_by=SCRIPT_ACTOR)
    except CsvImportError as e:
        print(f"❌ Import refused: {e}")
        return 1
    finally:
        db.close()

    write_audit_log(
        SCRIPT_ACTOR,
        "member_import",
        f"file={Path(path).name} imported={result.imported} updated={result.updated} skipped={result.skipped}",
    )
    print(f"✅ {result.total} row(s) read")
    print(f"   Imported: {result.imported}")
    print(f"   Updated:  {result.updated}")
    print(f"   Skipped:  {result.skipped}")
    for error in result.errors:
        print(f"   - {error}")
    hidden = result.error_count - len(result.errors)
    if hidden > 0:
        print(f"   ... and {hidden} more error(s)")
    return 0


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Import members from a CSV roster")
    parser.add_argument("path", help="CSV file (comma, semicolon or tab separated)")
    parser.add_argument("--error-limit", type=int, default=None, help="Maximum number of row errors to print")

    args = parser.parse_args()

    sys.exit(run_import(args.path, error_limit=args.error_limit))
