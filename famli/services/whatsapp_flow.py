"""
Fluxo de conversa do WhatsApp - guardar itens na Caixa Famli.

Estados:
    idle -> awaiting_category -> awaiting_confirmation -> idle

1. Conteúdo recebido (texto/foto/áudio/documento) cria um rascunho e pede a categoria
2. Localização pula a categoria (usa "família") e vai direto para a confirmação
3. Na confirmação: "sim" salva, "não" descarta, qualquer outro texto vira o novo título
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from famli.core.config import settings
from famli.core.session_store import WhatsAppSessionStore, session_store
from famli.models.box_item import ItemType
from famli.models.whatsapp import (
    Command,
    DialogueState,
    IncomingMessage,
    MessageType,
    PendingItem,
    WhatsAppSession,
)
from famli.services.box_service import BoxService
from famli.services.command_parser import (
    LOCATION_CATEGORY,
    clean_phone_number,
    detect_item_type,
    generate_title,
    is_affirmative,
    is_negative,
    mask_phone,
    parse_category,
    parse_command,
)
from famli.services.message_classifier import classify_message
from famli.services.whatsapp_messages import WhatsAppMessages

logger = logging.getLogger(__name__)

LIST_LIMIT = 5
LOCATION_TITLE = "Localização importante"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WhatsAppConversationService:
    """Transforma mensagens recebidas em respostas e itens salvos"""

    def __init__(
        self,
        store: Optional[WhatsAppSessionStore] = None,
        box_service: Optional[BoxService] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store or session_store
        self.box_service = box_service or BoxService()
        self.clock = clock

    async def process_message(self, message: IncomingMessage, db: Session) -> str:
        """
        Ponto de entrada: processa uma mensagem e retorna o texto da resposta.
        A sessão é salva antes de retornar.
        """
        phone = clean_phone_number(message.from_number)
        message_type = classify_message(message)
        logger.info(f"WhatsApp message from {mask_phone(phone)}: type={message_type.value}, media={message.num_media}")

        session = self.store.get_or_create(phone)
        session.last_message_at = self.clock()

        command = parse_command(message.body)
        if command is not None:
            reply = self._handle_command(session, command, db)
        else:
            handler = {
                MessageType.TEXT: self._process_text,
                MessageType.IMAGE: self._process_image,
                MessageType.AUDIO: self._process_audio,
                MessageType.DOCUMENT: self._process_document,
                MessageType.LOCATION: self._process_location,
            }[message_type]
            reply = handler(session, message, db)

        self.store.save(session)
        logger.info(f"Session {mask_phone(phone)} now in state {session.state.value}")
        return reply

    # ========================================================================
    # PROCESSAMENTO POR TIPO
    # ========================================================================

    def _process_text(self, session: WhatsAppSession, message: IncomingMessage, db: Session) -> str:
        text = message.body.strip()

        if not session.is_linked:
            return WhatsAppMessages.unlinked_text(text)

        if not text:
            return WhatsAppMessages.help()

        handler = {
            DialogueState.IDLE: self._start_text_item,
            DialogueState.AWAITING_CATEGORY: self._handle_category_selection,
            DialogueState.AWAITING_CONFIRMATION: self._handle_confirmation,
        }[session.state]
        return handler(session, text, db)

    def _process_image(self, session: WhatsAppSession, message: IncomingMessage, db: Session) -> str:
        if not session.is_linked:
            return WhatsAppMessages.unlinked_media(MessageType.IMAGE.value)

        caption = message.body.strip() or "Foto enviada via WhatsApp"
        session.start_draft(
            PendingItem(
                content=caption,
                type=ItemType.MEMORY.value,
                title=generate_title(caption),
                media_url=message.media_url,
                media_type=message.media_content_type,
            ),
            DialogueState.AWAITING_CATEGORY,
        )
        return WhatsAppMessages.ask_category_for_image(caption)

    def _process_audio(self, session: WhatsAppSession, message: IncomingMessage, db: Session) -> str:
        if not session.is_linked:
            return WhatsAppMessages.unlinked_media(MessageType.AUDIO.value)

        # TODO: transcrever o áudio e usar o texto como conteúdo
        session.start_draft(
            PendingItem(
                content="Mensagem de voz enviada via WhatsApp",
                type=ItemType.NOTE.value,
                title=f"Áudio de {self.clock().strftime('%d/%m/%Y %H:%M')}",
                media_url=message.media_url,
                media_type=message.media_content_type,
            ),
            DialogueState.AWAITING_CATEGORY,
        )
        return WhatsAppMessages.ask_category_for_audio()

    def _process_document(self, session: WhatsAppSession, message: IncomingMessage, db: Session) -> str:
        if not session.is_linked:
            return WhatsAppMessages.unlinked_media(MessageType.DOCUMENT.value)

        caption = message.body.strip() or "Documento enviado via WhatsApp"
        session.start_draft(
            PendingItem(
                content=caption,
                type=ItemType.INFO.value,
                title=generate_title(caption),
                media_url=message.media_url,
                media_type=message.media_content_type,
            ),
            DialogueState.AWAITING_CATEGORY,
        )
        return WhatsAppMessages.ask_category_for_document()

    def _process_location(self, session: WhatsAppSession, message: IncomingMessage, db: Session) -> str:
        if not session.is_linked:
            return WhatsAppMessages.unlinked_media(MessageType.LOCATION.value)

        lat, lng = message.latitude, message.longitude
        content = (
            f"Localização: {lat}, {lng}\n"
            f"Google Maps: https://maps.google.com/?q={lat},{lng}"
        )
        session.start_draft(
            PendingItem(
                content=content,
                type=ItemType.LOCATION.value,
                title=LOCATION_TITLE,
                category=LOCATION_CATEGORY,
            ),
            DialogueState.AWAITING_CONFIRMATION,
        )
        return WhatsAppMessages.confirm_location(lat, lng, LOCATION_TITLE)

    # ========================================================================
    # FLUXO DE CRIAÇÃO
    # ========================================================================

    def _start_text_item(self, session: WhatsAppSession, text: str, db: Session) -> str:
        session.start_draft(
            PendingItem(
                content=text,
                type=detect_item_type(text),
                title=generate_title(text),
            ),
            DialogueState.AWAITING_CATEGORY,
        )
        return WhatsAppMessages.ask_category_for_text(text)

    def _handle_category_selection(self, session: WhatsAppSession, text: str, db: Session) -> str:
        if session.pending_item is None:
            session.reset()
            return WhatsAppMessages.lost_draft()

        session.pending_item.category = parse_category(text)
        session.state = DialogueState.AWAITING_CONFIRMATION
        return WhatsAppMessages.confirmation_summary(session.pending_item)

    def _handle_confirmation(self, session: WhatsAppSession, text: str, db: Session) -> str:
        if session.pending_item is None:
            session.reset()
            return WhatsAppMessages.lost_draft()

        if is_affirmative(text):
            return self._save_pending_item(session, db)

        if is_negative(text):
            session.reset()
            return WhatsAppMessages.draft_discarded()

        # Qualquer outro texto é um novo título
        session.pending_item.title = text
        return WhatsAppMessages.title_updated(session.pending_item)

    def _save_pending_item(self, session: WhatsAppSession, db: Session) -> str:
        """
        Persiste o rascunho. Com ou sem sucesso, o rascunho é descartado
        e a sessão volta para idle; o usuário reinicia o fluxo se falhar.
        """
        draft = session.pending_item
        session.reset()

        try:
            item = self.box_service.create_item(
                user_id=session.user_id,
                item_type=draft.type,
                title=draft.title,
                content=draft.content,
                category=draft.category,
                media_url=draft.media_url,
                media_type=draft.media_type,
                db=db,
            )
        except SQLAlchemyError as e:
            logger.error(f"Error saving WhatsApp item for {mask_phone(session.phone_number)}: {e}")
            return WhatsAppMessages.save_failed()

        logger.info(f"WhatsApp item {item.id} saved for user {session.user_id}")
        return WhatsAppMessages.saved(item)

    # ========================================================================
    # COMANDOS
    # ========================================================================

    def _handle_command(self, session: WhatsAppSession, command: Command, db: Session) -> str:
        logger.info(f"Command from {mask_phone(session.phone_number)}: {command.value}")

        if command == Command.HELP:
            return WhatsAppMessages.help()

        if command == Command.SAVE:
            return WhatsAppMessages.save_mode()

        if command == Command.CANCEL:
            session.reset()
            return WhatsAppMessages.cancelled()

        if command == Command.LIST:
            return self._handle_list(session, db)

        if command == Command.STATUS:
            return self._handle_status(session, db)

        if command == Command.LINK:
            return self._handle_link(session)

        return WhatsAppMessages.help()

    def _handle_list(self, session: WhatsAppSession, db: Session) -> str:
        if not session.is_linked:
            return WhatsAppMessages.list_requires_link()

        try:
            items = self.box_service.list_items(session.user_id, db, limit=LIST_LIMIT)
            total = self.box_service.count_items(session.user_id, db)
        except SQLAlchemyError as e:
            logger.error(f"Error listing items for user {session.user_id}: {e}")
            return WhatsAppMessages.box_unavailable()

        if not items:
            return WhatsAppMessages.empty_box()
        return WhatsAppMessages.item_list(items, total)

    def _handle_status(self, session: WhatsAppSession, db: Session) -> str:
        if not session.is_linked:
            return WhatsAppMessages.status_unlinked()

        try:
            item_count = self.box_service.count_items(session.user_id, db)
        except SQLAlchemyError as e:
            logger.error(f"Error counting items for user {session.user_id}: {e}")
            return WhatsAppMessages.box_unavailable()

        return WhatsAppMessages.status_linked(item_count, session.last_message_at)

    def _handle_link(self, session: WhatsAppSession) -> str:
        if session.is_linked:
            return WhatsAppMessages.already_linked()

        code = self.store.issue_link_code(session.phone_number, settings.LINK_CODE_TTL_MINUTES)
        logger.info(f"Link code issued for {mask_phone(session.phone_number)}")
        return WhatsAppMessages.link_instructions(code, settings.LINK_CODE_TTL_MINUTES)


conversation_service = WhatsAppConversationService()


def get_conversation_service() -> WhatsAppConversationService:
    """Dependência FastAPI (substituível nos testes)"""
    return conversation_service
