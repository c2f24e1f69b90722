from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.mixins import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    passwordhash = Column(String(255), nullable=False)
    reset_code = Column(String(255), nullable=True)
    reset_code_expiration = Column(DateTime(timezone=True), nullable=True)

    tokens = relationship("Token", back_populates="user", cascade="all, delete-orphan")
