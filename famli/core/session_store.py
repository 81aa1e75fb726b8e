import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple
from famli.models.whatsapp import WhatsAppSession
from famli.services.command_parser import clean_phone_number, mask_phone

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WhatsAppSessionStore:
    """
    Sessões de conversa do WhatsApp em memória, por número de telefone.

    Também guarda o vínculo telefone -> usuário Famli e os códigos de
    vinculação pendentes. Tudo sob um único lock; nenhuma I/O acontece
    com o lock adquirido. Sessões vivem enquanto o processo viver.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, WhatsAppSession] = {}
        self._phone_to_user: Dict[str, str] = {}
        self._link_codes: Dict[str, Tuple[str, datetime]] = {}

    # ------------------------------------------------------------------
    # Sessões
    # ------------------------------------------------------------------

    def get_or_create(self, phone: str) -> WhatsAppSession:
        """
        Busca a sessão do telefone, criando uma sessão idle se não existir.

        Returns:
            Uma cópia da sessão. Alterações só valem depois de save().
        """
        phone = clean_phone_number(phone)
        with self._lock:
            session = self._sessions.get(phone)
            if session is None:
                now = self._clock()
                session = WhatsAppSession(
                    phone_number=phone,
                    created_at=now,
                    last_message_at=now,
                )
                self._sessions[phone] = session
                logger.info(f"Created WhatsApp session for {mask_phone(phone)}")

            # O vínculo pode ter mudado depois que a sessão foi criada
            session.user_id = self._phone_to_user.get(phone)
            return session.model_copy(deep=True)

    def save(self, session: WhatsAppSession) -> None:
        with self._lock:
            stored = session.model_copy(deep=True)
            stored.user_id = self._phone_to_user.get(session.phone_number)
            self._sessions[session.phone_number] = stored

    def get(self, phone: str) -> Optional[WhatsAppSession]:
        with self._lock:
            session = self._sessions.get(clean_phone_number(phone))
            return session.model_copy(deep=True) if session else None

    # ------------------------------------------------------------------
    # Vínculo telefone -> usuário
    # ------------------------------------------------------------------

    def link_phone(self, phone: str, user_id: str) -> None:
        phone = clean_phone_number(phone)
        with self._lock:
            # Um usuário tem no máximo um número vinculado
            for linked_phone, linked_user in list(self._phone_to_user.items()):
                if linked_user == user_id and linked_phone != phone:
                    del self._phone_to_user[linked_phone]
            self._phone_to_user[phone] = user_id
            if phone in self._sessions:
                self._sessions[phone].user_id = user_id
        logger.info(f"Phone {mask_phone(phone)} linked to user {user_id}")

    def unlink_phone(self, phone: str) -> bool:
        phone = clean_phone_number(phone)
        with self._lock:
            removed = self._phone_to_user.pop(phone, None) is not None
            if phone in self._sessions:
                self._sessions[phone].user_id = None
        if removed:
            logger.info(f"Phone {mask_phone(phone)} unlinked")
        return removed

    def unlink_user(self, user_id: str) -> Optional[str]:
        """Remove o vínculo do usuário. Retorna o número desvinculado, se havia."""
        with self._lock:
            phone = self._find_phone(user_id)
            if phone is None:
                return None
            del self._phone_to_user[phone]
            if phone in self._sessions:
                self._sessions[phone].user_id = None
        logger.info(f"User {user_id} unlinked from {mask_phone(phone)}")
        return phone

    def get_linked_user(self, phone: str) -> Optional[str]:
        with self._lock:
            return self._phone_to_user.get(clean_phone_number(phone))

    def get_linked_phone(self, user_id: str) -> Optional[str]:
        with self._lock:
            return self._find_phone(user_id)

    def _find_phone(self, user_id: str) -> Optional[str]:
        for phone, linked_user in self._phone_to_user.items():
            if linked_user == user_id:
                return phone
        return None

    # ------------------------------------------------------------------
    # Códigos de vinculação
    # ------------------------------------------------------------------

    def issue_link_code(self, phone: str, ttl_minutes: int) -> str:
        """Gera um código de 6 dígitos para o telefone (substitui o anterior)."""
        code = f"{secrets.randbelow(1_000_000):06d}"
        expires_at = self._clock() + timedelta(minutes=ttl_minutes)
        with self._lock:
            self._link_codes[clean_phone_number(phone)] = (code, expires_at)
        return code

    def consume_link_code(self, phone: str, code: str) -> bool:
        """Valida e invalida o código. Só funciona uma vez e antes de expirar."""
        phone = clean_phone_number(phone)
        now = self._clock()
        with self._lock:
            entry = self._link_codes.get(phone)
            if entry is None:
                return False
            expected, expires_at = entry
            if expires_at <= now:
                del self._link_codes[phone]
                return False
            if not secrets.compare_digest(expected.encode("utf-8"), code.strip().encode("utf-8")):
                return False
            del self._link_codes[phone]
            return True


# Instância única do processo (substituível via dependência do FastAPI)
session_store = WhatsAppSessionStore()
