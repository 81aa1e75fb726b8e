from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from famli.core.database import Base
import uuid

def _utcnow():
    return datetime.now(timezone.utc)

def _user_id():
    return f"usr_{uuid.uuid4()}"

class User(Base):
    __tablename__ = "users"

    id = Column(String(50), primary_key=True, default=_user_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    locale = Column(String(10), nullable=False, default="pt-BR")

    created_at = Column(DateTime(timezone=True), default=_utcnow)

    # Relationships
    items = relationship("BoxItem", back_populates="owner", cascade="all, delete-orphan")
    guardians = relationship("Guardian", back_populates="owner", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
