"""SQLAlchemy tables backing the key-value store."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint

from tasktimer.database.database import Base


class KVRecordDB(Base):
    """One serialized record per key (`task:<id>`, `category:<id>`, `timer:<id>`)."""

    __tablename__ = "kv_records"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class KVSetMemberDB(Base):
    """Membership of an id in an index set (`tasks`, `categories`)."""

    __tablename__ = "kv_set_members"
    __table_args__ = (
        UniqueConstraint("set_key", "member", name="uq_kv_set_member"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    set_key = Column(String, nullable=False, index=True)
    member = Column(String, nullable=False)
