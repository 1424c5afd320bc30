"""Roster import: merge CSV rows into existing members or create new ones.

The delimiter (comma, tab or semicolon) is taken from the header row.
Header cells are matched against a fixed alias table, ignoring case and
accents. Each data row is reconciled and committed on its own so a bad
row never loses the rest of the batch. Unique bureau roles are checked
against the holders found in the database when the import starts and
against the roles already claimed earlier in the same file.
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EmptyImportError, MembershipError, MissingColumnsError
from app.models.member import Member, MemberStatus
from app.services.bureau import claim_unique_role, current_role_holders, find_role_holder, is_unique_role_violation
from app.services.history import record_transition
from app.services.lifecycle import approval_stamp, utcnow
from app.services.member import get_member_by_email
from app.services.settings import get_enrollment_tracks
from app.services.taxonomy import UNIQUE_ROLES, fold_text, status_from_label, status_label
from app.services.validation import clean, normalize_email, validate_import_row

logger = logging.getLogger(__name__)

IMPORT_REASON = "Imported from CSV"
DELIMITERS = (",", "\t", ";")

HEADER_ALIASES = {
    "first_name": ("prenom", "first name", "firstname", "first_name", "given name"),
    "last_name": ("nom", "nom de famille", "last name", "lastname", "last_name", "surname", "family name"),
    "email": ("email", "e-mail", "mail", "courriel", "adresse email", "adresse e-mail", "email address"),
    "phone": ("telephone", "tel", "portable", "mobile", "phone", "phone number"),
    "student_id": ("numero etudiant", "n° etudiant", "id etudiant", "student id", "student_id", "studentid"),
    "enrollment_number": (
        "numero d'inscription", "numero inscription", "n° inscription", "no inscription",
        "enrollment number", "enrollment_number",
    ),
    "enrollment_track": ("cursus", "formation", "filiere", "parcours", "track", "enrollment track", "enrollment_track"),
    "status": ("statut", "status", "role", "fonction"),
    "telegram": ("telegram",),
    "discord": ("discord",),
}

# Required columns and the header name shown when one is missing
REQUIRED_COLUMNS = {
    "first_name": "Prénom",
    "last_name": "Nom",
    "email": "Email",
}

# Columns merged into existing members only when the row supplies a value
MERGEABLE_FIELDS = ("phone", "student_id", "enrollment_number", "enrollment_track", "telegram", "discord")

Holder = Tuple[str, str]


@dataclass
class ImportResult:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    total: int = 0
    errors: List[str] = field(default_factory=list)
    error_count: int = 0
    error_limit: int = 10

    def add_error(self, row_number: int, message: str) -> None:
        self.error_count += 1
        if len(self.errors) < self.error_limit:
            self.errors.append(f"Row {row_number}: {message}")

    def to_dict(self) -> Dict:
        return {
            "imported": self.imported,
            "updated": self.updated,
            "skipped": self.skipped,
            "total": self.total,
            "errors": list(self.errors),
        }


@dataclass
class ImportRun:
    """State of one import call; never shared between calls."""
    holders: Dict[MemberStatus, Holder]
    known_tracks: List[str]
    result: ImportResult
    changed_by: Optional[str] = None
    claims: Dict[MemberStatus, Holder] = field(default_factory=dict)

    def skip(self, row_number: int, message: str) -> None:
        self.result.skipped += 1
        self.result.add_error(row_number, message)
        logger.info(f"Import row {row_number} skipped: {message}")

    def role_taken_by(self, role: MemberStatus, email: str) -> Optional[Holder]:
        """Holder of ``role`` if it is someone other than ``email``."""
        holder = self.claims.get(role) or self.holders.get(role)
        if holder and holder[0] != email:
            return holder
        return None

    def release(self, role: MemberStatus, email: str) -> None:
        for table in (self.holders, self.claims):
            if role in table and table[role][0] == email:
                del table[role]


def detect_delimiter(header_line: str) -> str:
    """Most frequent delimiter outside double-quoted cells; comma by default."""
    counts = dict.fromkeys(DELIMITERS, 0)
    in_quotes = False
    for char in header_line:
        if char == '"':
            # A doubled quote inside a cell toggles twice and stays quoted
            in_quotes = not in_quotes
        elif not in_quotes and char in counts:
            counts[char] += 1
    best = max(DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] else ","


def _fold_header(cell: str) -> str:
    return " ".join(fold_text(cell).split())


def map_headers(header: List[str]) -> Dict[str, int]:
    """Logical field -> column index; unknown headers are ignored."""
    lookup = {alias: name for name, aliases in HEADER_ALIASES.items() for alias in aliases}
    mapping = {}
    for index, cell in enumerate(header):
        name = lookup.get(_fold_header(cell))
        if name and name not in mapping:
            mapping[name] = index
    return mapping


def parse_csv(raw_text: str) -> Tuple[List[str], List[Tuple[int, List[str]]]]:
    """Split raw text into a header and numbered data rows.

    Data rows are numbered from 1 by their position after the header, so
    blank lines are skipped but still counted.
    """
    text = (raw_text or "").lstrip("\ufeff")
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    reader = csv.reader(io.StringIO(text), delimiter=detect_delimiter(first_line))
    header = None
    rows = []
    position = 0
    for row in reader:
        blank = not any(cell.strip() for cell in row)
        if header is None:
            if not blank:
                header = row
            continue
        position += 1
        if not blank:
            rows.append((position, row))
    if header is None or not rows:
        raise EmptyImportError()
    return header, rows


def _extract(row: List[str], mapping: Dict[str, int]) -> Dict[str, Optional[str]]:
    record = {}
    for name in HEADER_ALIASES:
        index = mapping.get(name)
        record[name] = clean(row[index]) if index is not None and index < len(row) else None
    return record


def _insert_member(db: Session, run: ImportRun, record: Dict, status: MemberStatus) -> Member:
    now = utcnow()
    member = Member(
        first_name=record["first_name"],
        last_name=record["last_name"],
        email=record["email"],
        phone=record["phone"],
        student_id=record["student_id"],
        enrollment_number=record["enrollment_number"],
        enrollment_track=record["enrollment_track"] or settings.DEFAULT_ENROLLMENT_TRACK,
        telegram=record["telegram"],
        discord=record["discord"],
        status=status,
        updated_at=now,
        **approval_stamp(None, status, now),
    )
    db.add(member)
    db.flush()
    record_transition(db, member.id, None, status, reason=IMPORT_REASON, changed_by=run.changed_by)
    return member


def _merge_member(db: Session, run: ImportRun, member: Member, record: Dict, status: MemberStatus) -> None:
    """Update names and status; blank optional cells keep the stored value."""
    old_status = member.status
    now = utcnow()
    values = {
        "first_name": record["first_name"],
        "last_name": record["last_name"],
        "updated_at": now,
    }
    for name in MERGEABLE_FIELDS:
        if record[name]:
            values[name] = record[name]
    values.update(approval_stamp(old_status, status, now))

    if status in UNIQUE_ROLES:
        claim_unique_role(db, member.id, status, values)
    else:
        db.execute(
            update(Member)
            .where(Member.id == member.id)
            .values(**values, status=status)
            .execution_options(synchronize_session=False)
        )
    if status != old_status:
        record_transition(db, member.id, old_status, status, reason=IMPORT_REASON, changed_by=run.changed_by)


def _import_row(db: Session, run: ImportRun, row_number: int, record: Dict) -> None:
    record["email"] = normalize_email(record["email"])
    email = record["email"]
    status = status_from_label(record["status"])

    problems = validate_import_row(record["first_name"], record["last_name"], email)
    if problems:
        run.skip(row_number, "; ".join(problems))
        return

    if status in UNIQUE_ROLES:
        holder = run.role_taken_by(status, email)
        if holder:
            run.skip(row_number, f"{status_label(status)} is already assigned to {holder[1]}")
            return

    if record["enrollment_track"] and record["enrollment_track"] not in run.known_tracks:
        logger.info(f"Import row {row_number}: enrollment track '{record['enrollment_track']}' is not in settings")

    try:
        existing = get_member_by_email(db, email)
        if existing:
            previous_status = existing.status
            _merge_member(db, run, existing, record, status)
        else:
            previous_status = None
            _insert_member(db, run, record, status)
        db.commit()
    except MembershipError as e:
        db.rollback()
        run.skip(row_number, str(e))
        return
    except IntegrityError as e:
        db.rollback()
        if not is_unique_role_violation(e):
            logger.error(f"Import row {row_number} failed for {email}: {e}", exc_info=True)
            run.skip(row_number, f"Could not save {email} (IntegrityError)")
            return
        holder = find_role_holder(db, status)
        name = holder.full_name if holder else "another member"
        run.skip(row_number, f"{status_label(status)} is already assigned to {name}")
        return
    except Exception as e:
        db.rollback()
        logger.error(f"Import row {row_number} failed for {email}: {e}", exc_info=True)
        run.skip(row_number, f"Could not save {email} ({type(e).__name__})")
        return

    if existing:
        run.result.updated += 1
    else:
        run.result.imported += 1

    if previous_status in UNIQUE_ROLES and previous_status != status:
        run.release(previous_status, email)
    if status in UNIQUE_ROLES:
        run.claims[status] = (email, f"{record['first_name']} {record['last_name']}")


def import_members(
    db: Session,
    raw_text: str,
    error_limit: int = None,
    changed_by: str = None
) -> ImportResult:
    """Reconcile a CSV roster with the member table.

    Raises EmptyImportError or MissingColumnsError when nothing can be
    imported; row-level problems are reported in the result instead.
    """
    header, rows = parse_csv(raw_text)
    mapping = map_headers(header)
    missing = [label for name, label in REQUIRED_COLUMNS.items() if name not in mapping]
    if missing:
        raise MissingColumnsError(missing)

    run = ImportRun(
        holders=current_role_holders(db),
        known_tracks=get_enrollment_tracks(db),
        result=ImportResult(
            total=len(rows),
            error_limit=settings.IMPORT_ERROR_LIMIT if error_limit is None else error_limit,
        ),
        changed_by=changed_by,
    )
    # Reading settings and holders may have opened a transaction
    db.commit()

    for row_number, row in rows:
        _import_row(db, run, row_number, _extract(row, mapping))

    result = run.result
    logger.info(
        f"CSV import finished: {result.imported} imported, {result.updated} updated, "
        f"{result.skipped} skipped of {result.total}"
    )
    return result
