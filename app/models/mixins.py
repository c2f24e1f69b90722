from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class SoftDeleteMixin:
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def mark_deleted(self, now: datetime) -> None:
        self.is_deleted = True
        self.deleted_at = now

    def mark_restored(self) -> None:
        self.is_deleted = False
        self.deleted_at = None
