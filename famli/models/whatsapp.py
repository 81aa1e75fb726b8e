"""
Schemas Pydantic da integração WhatsApp.
Mensagens recebidas do Twilio, sessões de conversa e itens pendentes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageType(str, Enum):
    """Tipos de mensagem que podemos receber do WhatsApp."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    DOCUMENT = "document"
    LOCATION = "location"


class DialogueState(str, Enum):
    """Estados do fluxo guiado de "guardar um item"."""

    IDLE = "idle"
    AWAITING_CATEGORY = "awaiting_category"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


class Command(str, Enum):
    """Comandos reconhecidos no chat."""

    HELP = "ajuda"
    SAVE = "guardar"
    LIST = "listar"
    CANCEL = "cancelar"
    STATUS = "status"
    LINK = "vincular"


class IncomingMessage(BaseModel):
    """Mensagem recebida do webhook Twilio (apenas a primeira mídia)."""

    message_sid: str = ""
    from_number: str = Field("", description="whatsapp:+5511999999999")
    to_number: str = ""
    body: str = ""
    num_media: int = 0
    media_url: Optional[str] = None
    media_content_type: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    profile_name: Optional[str] = None
    received_at: datetime = Field(default_factory=_utcnow)


class PendingItem(BaseModel):
    """Rascunho de item sendo montado pela conversa. Pertence a uma única sessão."""

    content: str
    type: str
    title: str
    category: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[str] = None


class WhatsAppSession(BaseModel):
    """Estado da conversa com um número de telefone."""

    phone_number: str
    user_id: Optional[str] = None
    state: DialogueState = DialogueState.IDLE
    pending_item: Optional[PendingItem] = None
    last_message_at: datetime = Field(default_factory=_utcnow)
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_linked(self) -> bool:
        return bool(self.user_id)

    def start_draft(self, item: PendingItem, state: DialogueState) -> None:
        """Substitui o rascunho atual e avança o fluxo."""
        if state == DialogueState.IDLE:
            raise ValueError("Um rascunho não pode existir no estado idle")
        self.pending_item = item
        self.state = state

    def reset(self) -> None:
        """Descarta o rascunho e volta para idle."""
        self.pending_item = None
        self.state = DialogueState.IDLE


class LinkPayload(BaseModel):
    code: str = Field(..., min_length=1, max_length=12)
    phone_number: str = Field(..., min_length=8, max_length=32)


class WhatsAppStatusResponse(BaseModel):
    enabled: bool
    phone_number: Optional[str] = None
    webhook_url: Optional[str] = None
