import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    ApplicationsClosedError,
    DuplicateApplicationError,
    EmailInUseError,
    InvalidStatusError,
    MemberNotFoundError,
    NoChangesError,
    RoleConflictError,
    ValidationError,
)
from app.models.member import Member, MemberStatus
from app.services.bureau import claim_unique_role, find_role_holder, is_unique_role_violation
from app.services.history import record_transition
from app.services.lifecycle import approval_stamp, utcnow
from app.services.settings import is_membership_open
from app.services.taxonomy import (
    BUREAU_ORDER,
    BUREAU_ROLES,
    UNIQUE_ROLES,
    active_member_statuses,
    allowed_statuses,
    is_active_like,
    parse_status,
)
from app.services.validation import clean, is_valid_email, normalize_email, validate_application

logger = logging.getLogger(__name__)

DEFAULT_STATUS_REASON = "Status updated by admin"
DEFAULT_BATCH_REASON = "Batch update by admin"
BATCH_STATUSES = (MemberStatus.ACTIVE, MemberStatus.REJECTED, MemberStatus.EXPIRED)

REQUIRED_TEXT_FIELDS = {
    "first_name": "First name cannot be empty",
    "last_name": "Last name cannot be empty",
    "enrollment_track": "Enrollment track cannot be empty",
}
OPTIONAL_TEXT_FIELDS = ("student_id", "enrollment_number", "phone", "telegram", "discord", "notes")


def get_member(db: Session, member_id: int) -> Member:
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise MemberNotFoundError(member_id)
    return member


def get_member_by_email(db: Session, email: str) -> Optional[Member]:
    return db.query(Member).filter(Member.email == normalize_email(email)).first()


def list_members(db: Session, status: Optional[str] = None) -> List[Member]:
    """All members, newest first, optionally filtered by status."""
    query = db.query(Member)
    if status:
        status_enum = parse_status(status.lower())
        if status_enum is None:
            raise InvalidStatusError(status, allowed_statuses())
        query = query.filter(Member.status == status_enum)
    return query.order_by(Member.created_at.desc(), Member.id.desc()).all()


def _normalize_fields(patch: Mapping) -> Tuple[Dict, List[str]]:
    """Column values for the editable fields present in ``patch``."""
    values = {}
    errors = []
    for field, message in REQUIRED_TEXT_FIELDS.items():
        if field in patch:
            value = clean(patch[field])
            if value is None:
                errors.append(message)
            else:
                values[field] = value
    if "email" in patch:
        email = normalize_email(patch["email"])
        if not is_valid_email(email):
            errors.append("Invalid email")
        else:
            values["email"] = email
    for field in OPTIONAL_TEXT_FIELDS:
        if field in patch:
            values[field] = clean(patch[field])
    return values, errors


def _raise_for_integrity_error(db: Session, member_id: int, error: IntegrityError, values: dict, status: Optional[MemberStatus]):
    if is_unique_role_violation(error) and status is not None:
        holder = find_role_holder(db, status, exclude_member_id=member_id)
        raise RoleConflictError(status.value, holder.full_name if holder else None) from error
    if "email" in values and "email" in str(getattr(error, "orig", error)).lower():
        raise EmailInUseError(values["email"]) from error
    raise error


def update_member(
    db: Session,
    member_id: int,
    patch: Mapping,
    changed_by: str = None
) -> Member:
    """Apply an admin edit, including an optional status transition.

    Field edits and the status change are written by one UPDATE; a unique
    bureau role is claimed through the conditional update in
    ``claim_unique_role``. Entering the active-like set from outside it
    stamps approval and expiry. A history entry is appended whenever the
    status actually changes. Everything commits together.
    """
    member = get_member(db, member_id)

    values, errors = _normalize_fields(patch)
    new_status = None
    if "status" in patch:
        new_status = parse_status(patch["status"])
        if new_status is None:
            raise InvalidStatusError(patch["status"], allowed_statuses())
    if errors:
        raise ValidationError(errors)
    if new_status is None and not values:
        raise NoChangesError()

    old_status = member.status
    now = utcnow()
    values["updated_at"] = now
    if new_status is not None:
        values.update(approval_stamp(old_status, new_status, now))

    try:
        if new_status in UNIQUE_ROLES:
            claim_unique_role(db, member_id, new_status, values)
        else:
            if new_status is not None:
                values["status"] = new_status
            result = db.execute(
                update(Member)
                .where(Member.id == member_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                raise MemberNotFoundError(member_id)

        if new_status is not None and new_status != old_status:
            record_transition(
                db,
                member_id,
                old_status,
                new_status,
                reason=clean(patch.get("reason")) or DEFAULT_STATUS_REASON,
                changed_by=changed_by
            )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        _raise_for_integrity_error(db, member_id, e, values, new_status)
    except Exception:
        db.rollback()
        raise

    db.refresh(member)
    if new_status is not None and new_status != old_status:
        logger.info(f"Member {member_id} status {old_status.value} -> {new_status.value}")
    else:
        logger.info(f"Member {member_id} updated: {', '.join(sorted(k for k in values if k != 'updated_at'))}")
    return member


def batch_update_status(
    db: Session,
    member_ids: Iterable[int],
    status: str,
    reason: str = None,
    changed_by: str = None
) -> Dict:
    """Move several members to active, rejected or expired, one transition each."""
    member_ids = list(member_ids or [])
    if not member_ids:
        raise ValidationError(["No members specified"])
    new_status = parse_status(status)
    if new_status not in BATCH_STATUSES:
        raise InvalidStatusError(status, [s.value for s in BATCH_STATUSES])

    updated = []
    not_found = []
    for member_id in member_ids:
        try:
            update_member(
                db,
                member_id,
                {"status": new_status, "reason": reason or DEFAULT_BATCH_REASON},
                changed_by=changed_by
            )
            updated.append(member_id)
        except MemberNotFoundError:
            not_found.append(member_id)
    return {"updated": len(updated), "not_found": not_found}


def delete_member(db: Session, member_id: int) -> None:
    """Delete a member together with its history."""
    member = get_member(db, member_id)
    db.delete(member)
    db.commit()
    logger.info(f"Member {member_id} deleted")


def _application_values(data: Mapping) -> Dict:
    return {
        "first_name": clean(data.get("first_name")),
        "last_name": clean(data.get("last_name")),
        "email": normalize_email(data.get("email")),
        "student_id": clean(data.get("student_id")),
        "enrollment_number": clean(data.get("enrollment_number")),
        "enrollment_track": clean(data.get("enrollment_track")),
        "phone": clean(data.get("phone")),
        "telegram": clean(data.get("telegram")),
        "discord": clean(data.get("discord")),
    }


def submit_application(db: Session, data: Mapping) -> Member:
    """Register a new application with status pending.

    A previously rejected or expired member may re-apply; their record is
    reset to pending. Pending and current members are refused.
    """
    if not is_membership_open(db):
        raise ApplicationsClosedError()

    errors = validate_application(data)
    if errors:
        raise ValidationError(errors)

    values = _application_values(data)
    existing = db.query(Member).filter(Member.email == values["email"]).first()
    if existing:
        if existing.status == MemberStatus.PENDING:
            raise DuplicateApplicationError("Une demande avec cet email est déjà en attente de validation.")
        if is_active_like(existing.status):
            raise DuplicateApplicationError("Cet email est déjà associé à un membre actif.")

        old_status = existing.status
        for key, value in values.items():
            setattr(existing, key, value)
        existing.status = MemberStatus.PENDING
        existing.updated_at = utcnow()
        record_transition(db, existing.id, old_status, MemberStatus.PENDING, reason="Application resubmitted")
        member = existing
    else:
        member = Member(**values, status=MemberStatus.PENDING)
        db.add(member)

    try:
        db.flush()
        if member is not existing:
            record_transition(db, member.id, None, MemberStatus.PENDING, reason="Application submitted")
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Concurrent application for {values['email']}: {e}")
        raise DuplicateApplicationError("Une demande avec cet email est déjà en attente de validation.") from e

    db.refresh(member)
    logger.info(f"Application submitted for {member.email} (member {member.id})")
    return member


def get_member_stats(db: Session, include_honorary_president: bool = None) -> Dict[str, int]:
    """Counts per lifecycle bucket.

    Whether honorary presidents count as active members follows
    HONORARY_PRESIDENT_IS_ACTIVE_MEMBER unless overridden.
    """
    if include_honorary_president is None:
        include_honorary_president = settings.HONORARY_PRESIDENT_IS_ACTIVE_MEMBER
    counts = dict(
        db.query(Member.status, func.count(Member.id)).group_by(Member.status).all()
    )
    active_statuses = active_member_statuses(include_honorary_president)
    return {
        "total": sum(counts.values()),
        "active": sum(n for s, n in counts.items() if s in active_statuses),
        "pending": counts.get(MemberStatus.PENDING, 0),
        "rejected": counts.get(MemberStatus.REJECTED, 0),
        "expired": counts.get(MemberStatus.EXPIRED, 0),
        "bureau": sum(n for s, n in counts.items() if s in BUREAU_ROLES),
    }


def get_track_distribution(db: Session) -> List[Dict]:
    """Active members per enrollment track, largest first."""
    statuses = list(active_member_statuses(settings.HONORARY_PRESIDENT_IS_ACTIVE_MEMBER))
    rows = (
        db.query(Member.enrollment_track, func.count(Member.id).label("count"))
        .filter(Member.status.in_(statuses))
        .group_by(Member.enrollment_track)
        .order_by(func.count(Member.id).desc(), Member.enrollment_track.asc())
        .all()
    )
    return [{"enrollment_track": track, "count": count} for track, count in rows]


def get_recent_applications(db: Session, limit: int = 10) -> List[Member]:
    return (
        db.query(Member)
        .filter(Member.status == MemberStatus.PENDING)
        .order_by(Member.created_at.desc(), Member.id.desc())
        .limit(limit)
        .all()
    )


def get_bureau(db: Session) -> List[Member]:
    """Bureau members in role order (president first)."""
    members = db.query(Member).filter(Member.status.in_(list(BUREAU_ROLES))).all()
    order = {role: i for i, role in enumerate(BUREAU_ORDER)}
    return sorted(members, key=lambda m: (order[m.status], m.last_name, m.first_name))
