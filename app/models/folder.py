from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from app.core.database import Base
from app.models.mixins import SoftDeleteMixin, TimestampMixin


class Folder(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_owner_path", "owner_id", "path"),
        Index("ix_folders_owner_parent_name", "owner_id", "parent_folder_id", "name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    parent_folder_id = Column(Integer, ForeignKey("folders.id"), nullable=True)
    name = Column(String(255), nullable=False)
    path = Column(Text, nullable=False)
