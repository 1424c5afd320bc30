from typing import List
from sqlalchemy.orm import Session
from app.models.member import MembershipHistory
from app.services.taxonomy import StatusLike, parse_status


def record_transition(
    db: Session,
    member_id: int,
    old_status: StatusLike,
    new_status: StatusLike,
    reason: str = None,
    changed_by: str = None
) -> MembershipHistory:
    """Append a history entry. The caller owns the transaction."""
    entry = MembershipHistory(
        member_id=member_id,
        old_status=parse_status(old_status),
        new_status=parse_status(new_status),
        reason=reason,
        changed_by=changed_by
    )
    db.add(entry)
    return entry


def get_member_history(db: Session, member_id: int) -> List[MembershipHistory]:
    """History entries for a member, oldest first."""
    return (
        db.query(MembershipHistory)
        .filter(MembershipHistory.member_id == member_id)
        .order_by(MembershipHistory.id.asc())
        .all()
    )

