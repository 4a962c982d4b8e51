from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from datetime import datetime, timezone

from catalog_admin.db.base import Base
from catalog_admin.utils.ids import new_object_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Attribute(Base):
    """Axis of variation (e.g. Color). Managed outside this service; read-only here."""

    __tablename__ = "attributes"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String(255), nullable=False)
    code = Column(String(100), nullable=False, unique=True, index=True)
    type = Column(String(20), nullable=False, default="text")  # text | color | size | number | select
    # [{id, label, value, meta}]; value ids are unique within one attribute only
    values = Column(JSONB, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
