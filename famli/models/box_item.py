from enum import Enum
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from famli.core.database import Base
from famli.models.user import _utcnow
import uuid

class ItemType(str, Enum):
    """Tipos de item da Caixa Famli."""

    INFO = "info"          # Informação importante
    MEMORY = "memory"      # Memória/mensagem
    NOTE = "note"          # Nota pessoal
    ACCESS = "access"      # Instruções de acesso (não senhas!)
    ROUTINE = "routine"    # Rotina que não pode parar
    LOCATION = "location"  # Onde estão as coisas

def _item_id():
    return f"itm_{uuid.uuid4()}"

class BoxItem(Base):
    __tablename__ = "box_items"

    id = Column(String(50), primary_key=True, default=_item_id)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False, default=ItemType.INFO.value, index=True)
    title = Column(String(512), nullable=False)
    content = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)  # família, saúde, finanças, documentos, memórias, outros
    media_url = Column(String(1024), nullable=True)
    media_type = Column(String(100), nullable=True)
    is_important = Column(Boolean, default=False, nullable=False)
    is_shared = Column(Boolean, default=False, nullable=False)  # visível para guardiões

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="items")

    def __repr__(self):
        return f"<BoxItem(id={self.id}, type={self.type}, category={self.category})>"
