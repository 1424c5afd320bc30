import csv
import io
from typing import Optional, Tuple
from sqlalchemy.orm import Session
from app.core.exceptions import InvalidStatusError
from app.models.member import Member
from app.services.taxonomy import allowed_statuses, parse_status

EXPORT_HEADERS = [
    "ID", "Prénom", "Nom", "Email", "Numéro étudiant", "N° inscription", "Cursus",
    "Téléphone", "Telegram", "Discord", "Statut", "Date adhésion",
    "Date approbation", "Date expiration",
]


def _cell(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat(sep=" ") if hasattr(value, "hour") else value.isoformat()
    return str(value)


def export_members_csv(db: Session, status: Optional[str] = None) -> Tuple[str, str]:
    """Roster as CSV text plus a download filename. Every cell is quoted."""
    query = db.query(Member)
    if status:
        status_enum = parse_status(status)
        if status_enum is None:
            raise InvalidStatusError(status, allowed_statuses())
        query = query.filter(Member.status == status_enum)
    members = query.order_by(Member.last_name, Member.first_name).all()

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for m in members:
        writer.writerow([_cell(v) for v in (
            m.id,
            m.first_name,
            m.last_name,
            m.email,
            m.student_id,
            m.enrollment_number,
            m.enrollment_track,
            m.phone,
            m.telegram,
            m.discord,
            m.status.value,
            m.created_at,
            m.approved_at,
            m.expires_at,
        )])

    filename = f"members_{status}.csv" if status else "members.csv"
    return buffer.getvalue(), filename
