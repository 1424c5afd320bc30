from sqlalchemy import Column, String, DateTime, Text, text, func
from app.db.base import Base


class Setting(Base):
    """Global key-value settings (JSON-encoded when not a plain string)."""
    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"), onupdate=func.now())
