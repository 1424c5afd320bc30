from app.db.base import Base

# Import all models so Alembic can detect them
from app.models.member import Member, MemberStatus, MembershipHistory
from app.models.system import Setting

__all__ = [
    "Base",
    "Member",
    "MemberStatus",
    "MembershipHistory",
    "Setting",
]
