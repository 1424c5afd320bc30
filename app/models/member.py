from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Enum as SQLEnum, Index, Text, text, func
from sqlalchemy.orm import relationship
from app.db.base import Base
import enum


class MemberStatus(str, enum.Enum):
    """Member status enum (closed set)."""
    PENDING = "pending"
    ACTIVE = "active"
    HONOR = "honor"
    REJECTED = "rejected"
    EXPIRED = "expired"
    PRESIDENT = "president"
    VICE_PRESIDENT = "vice_president"
    SECRETARY = "secretary"
    TREASURER = "treasurer"
    HONORARY_PRESIDENT = "honorary_president"


def _status_column_type():
    return SQLEnum(
        MemberStatus,
        native_enum=False,
        length=32,
        values_callable=lambda obj: [e.value for e in obj],
    )


# Raw predicate shared by the partial unique index and the migration
UNIQUE_ROLE_PREDICATE = "status IN ('president', 'vice_president', 'secretary', 'treasurer')"


class Member(Base):
    """Applicant or member of the association."""
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False, unique=True, index=True)
    student_id = Column(String(50), nullable=True)
    enrollment_number = Column(String(50), nullable=True, index=True)
    enrollment_track = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    telegram = Column(String(100), nullable=True)
    discord = Column(String(100), nullable=True)
    status = Column(_status_column_type(), default=MemberStatus.PENDING, nullable=False, index=True)
    approved_at = Column(DateTime, nullable=True)
    expires_at = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"), onupdate=func.now())

    # Relationships
    history = relationship(
        "MembershipHistory",
        back_populates="member",
        order_by="MembershipHistory.id.desc()",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # At most one holder per unique bureau role, enforced by the database
        Index(
            "uq_members_unique_role",
            "status",
            unique=True,
            sqlite_where=text(UNIQUE_ROLE_PREDICATE),
            postgresql_where=text(UNIQUE_ROLE_PREDICATE),
        ),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class MembershipHistory(Base):
    """Append-only audit trail of member status transitions."""
    __tablename__ = "membership_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    old_status = Column(_status_column_type(), nullable=True)
    new_status = Column(_status_column_type(), nullable=False)
    changed_by = Column(String(100), nullable=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    member = relationship("Member", back_populates="history")
