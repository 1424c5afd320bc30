"""Atomic assignment of unique bureau roles.

The uniqueness check and the write are a single conditional UPDATE
evaluated by the database, so two concurrent assignments of the same
role can never both succeed. The partial unique index on
``members.status`` is the last line: a violation surfaces as
IntegrityError and is reported as a role conflict.
"""
import logging
from typing import Dict, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from app.core.exceptions import MemberNotFoundError, RoleConflictError
from app.models.member import Member, MemberStatus
from app.services.taxonomy import UNIQUE_ROLES, parse_status

logger = logging.getLogger(__name__)

UNIQUE_ROLE_INDEX = "uq_members_unique_role"


def find_role_holder(db: Session, role: MemberStatus, exclude_member_id: Optional[int] = None) -> Optional[Member]:
    query = db.query(Member).filter(Member.status == role)
    if exclude_member_id is not None:
        query = query.filter(Member.id != exclude_member_id)
    return query.order_by(Member.id.asc()).first()


def current_role_holders(db: Session) -> Dict[MemberStatus, Tuple[str, str]]:
    """Map each held unique role to (email, full name) in one query."""
    rows = (
        db.query(Member.status, Member.email, Member.first_name, Member.last_name)
        .filter(Member.status.in_(list(UNIQUE_ROLES)))
        .all()
    )
    return {status: (email, f"{first} {last}") for status, email, first, last in rows}


def is_unique_role_violation(error: IntegrityError) -> bool:
    message = str(getattr(error, "orig", error)).lower()
    return UNIQUE_ROLE_INDEX in message or "members.status" in message


def claim_unique_role(db: Session, member_id: int, role, values: dict = None) -> None:
    """Set ``status = role`` (plus ``values``) on one member, if nobody else holds it.

    Runs inside the caller's transaction and does not commit. Raises
    MemberNotFoundError or RoleConflictError when no row was updated.
    A member that already holds the role is never in conflict with itself.
    """
    role = parse_status(role)
    if role not in UNIQUE_ROLES:
        raise ValueError(f"'{role}' is not a unique bureau role")

    holder = aliased(Member)
    taken = (
        select(holder.id)
        .where(holder.status == role, holder.id != member_id)
        .exists()
    )
    stmt = (
        update(Member)
        .where(Member.id == member_id)
        .where(~taken)
        .values(**{**(values or {}), "status": role})
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
    except IntegrityError as e:
        if not is_unique_role_violation(e):
            raise
        db.rollback()
        logger.warning(f"Unique index rejected {role.value} for member {member_id}")
        current = find_role_holder(db, role, exclude_member_id=member_id)
        raise RoleConflictError(role.value, current.full_name if current else None) from e

    if result.rowcount:
        return

    # Nothing updated: only now look at why. This read may race, it only
    # feeds the error message.
    if db.query(Member.id).filter(Member.id == member_id).first() is None:
        raise MemberNotFoundError(member_id)
    current = find_role_holder(db, role, exclude_member_id=member_id)
    logger.warning(f"Role {role.value} refused for member {member_id}: held by member {current.id if current else '?'}")
    raise RoleConflictError(role.value, current.full_name if current else None)
