from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from famli.core.database import Base
from famli.models.user import _utcnow
import uuid

def _guardian_id():
    return f"grd_{uuid.uuid4()}"

class Guardian(Base):
    """Pessoa de confiança que pode receber avisos e acessar itens compartilhados."""

    __tablename__ = "guardians"

    id = Column(String(50), primary_key=True, default=_guardian_id)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(512), nullable=False)
    email = Column(String(512), nullable=True)
    phone = Column(String(128), nullable=True)
    relationship_label = Column("relationship", String(255), nullable=True)  # filho, neto, amigo...
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="guardians")

    def __repr__(self):
        return f"<Guardian(id={self.id}, user_id={self.user_id})>"
