from sqlalchemy import Column, Integer, String, ForeignKey
from app.core.database import Base
from app.models.mixins import SoftDeleteMixin, TimestampMixin


class Image(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "images"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    folder_id = Column(Integer, ForeignKey("folders.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    public_id = Column(String(512), nullable=True)
    size = Column(Integer, nullable=False)
    mime_type = Column(String(128), nullable=False)
