"""
Cliente Twilio para WhatsApp.

O Twilio fica entre o Famli e o WhatsApp:
- Mensagens recebidas chegam no webhook como form-urlencoded
- A resposta síncrona volta como TwiML (XML)
- Mensagens ativas saem pela REST API com autenticação básica

Documentação: https://www.twilio.com/docs/whatsapp
"""

import base64
import hashlib
import hmac
import logging
from typing import Mapping, Optional
from xml.sax.saxutils import escape

import httpx

from famli.models.whatsapp import IncomingMessage
from famli.services.command_parser import mask_phone

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"


class TwilioError(Exception):
    """Falha de envio pela API do Twilio (status não-2xx ou erro de rede)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WebhookParseError(ValueError):
    """Payload do webhook em formato inesperado."""


class TwilioClient:
    """Cliente da REST API de mensagens do Twilio."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json"

    async def send_message(self, to: str, body: str, media_url: Optional[str] = None) -> dict:
        """
        Envia uma mensagem WhatsApp.

        Args:
            to: Número de destino (com ou sem prefixo whatsapp:)
            body: Texto da mensagem
            media_url: URL pública de mídia (opcional)

        Returns:
            JSON de resposta do Twilio

        Raises:
            TwilioError: status >= 300 ou falha de rede
        """
        if not to.startswith(WHATSAPP_PREFIX):
            to = f"{WHATSAPP_PREFIX}{to}"

        data = {"To": to, "From": self.from_number, "Body": body}
        if media_url:
            data["MediaUrl"] = media_url

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.messages_url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                )
        except httpx.HTTPError as e:
            raise TwilioError(f"Erro de rede ao enviar mensagem: {e}") from e

        if not response.is_success:
            logger.error(f"Twilio API error: status={response.status_code}")
            raise TwilioError(
                f"Erro da API Twilio: status {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(f"Twilio message sent to {mask_phone(to)}")
        return response.json() if response.content else {}


# ============================================================================
# WEBHOOK
# ============================================================================

def compute_signature(auth_token: str, url: str, params: Mapping[str, str]) -> str:
    """
    Assinatura X-Twilio-Signature: HMAC-SHA1 (chave = auth token) sobre
    a URL completa seguida dos parâmetros POST ordenados (nome + valor),
    codificada em base64.
    """
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def validate_signature(auth_token: str, url: str, params: Mapping[str, str], signature: Optional[str]) -> bool:
    """Confere a assinatura do webhook em tempo constante."""
    if not auth_token or not signature:
        return False
    expected = compute_signature(auth_token, url, params)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


def _optional(form: Mapping[str, str], key: str) -> Optional[str]:
    value = form.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_webhook_form(form: Mapping[str, str]) -> IncomingMessage:
    """
    Converte os campos do webhook do Twilio em IncomingMessage.

    Campos: MessageSid, From, To, Body, NumMedia, MediaUrl0,
    MediaContentType0, ProfileName, Latitude, Longitude.
    Apenas a primeira mídia é considerada.

    Raises:
        WebhookParseError: NumMedia inválido ou remetente ausente
    """
    raw_num_media = str(form.get("NumMedia") or "0").strip()
    try:
        num_media = int(raw_num_media)
    except ValueError as e:
        raise WebhookParseError(f"NumMedia inválido: {raw_num_media!r}") from e
    if num_media < 0:
        raise WebhookParseError(f"NumMedia inválido: {raw_num_media!r}")

    sender = str(form.get("From") or "").strip()
    if not sender:
        raise WebhookParseError("Campo From ausente")

    return IncomingMessage(
        message_sid=str(form.get("MessageSid") or ""),
        from_number=sender,
        to_number=str(form.get("To") or ""),
        body=str(form.get("Body") or ""),
        num_media=num_media,
        media_url=_optional(form, "MediaUrl0") if num_media > 0 else None,
        media_content_type=_optional(form, "MediaContentType0") if num_media > 0 else None,
        profile_name=_optional(form, "ProfileName"),
        latitude=_optional(form, "Latitude"),
        longitude=_optional(form, "Longitude"),
    )


TWIML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


def build_twiml(message: str) -> str:
    """Envelope TwiML com uma única mensagem de resposta."""
    body = escape(message, {'"': "&quot;", "'": "&apos;"})
    return f"{TWIML_HEADER}\n<Response>\n    <Message>{body}</Message>\n</Response>"


def empty_twiml() -> str:
    """Envelope sem resposta (nenhuma mensagem é enviada)."""
    return f"{TWIML_HEADER}<Response></Response>"
