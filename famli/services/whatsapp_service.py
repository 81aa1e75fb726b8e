import logging
from typing import Optional
from famli.core.config import settings
from famli.services.command_parser import mask_phone
from famli.services.twilio_client import TwilioClient, TwilioError

logger = logging.getLogger(__name__)

class WhatsAppService:
    """Envio de mensagens ativas via Twilio (fora da resposta do webhook)"""

    def __init__(self, client: Optional[TwilioClient] = None):
        self._client = client

    @property
    def client(self) -> Optional[TwilioClient]:
        if self._client is None and settings.whatsapp_enabled:
            self._client = TwilioClient(
                account_sid=settings.TWILIO_ACCOUNT_SID,
                auth_token=settings.TWILIO_AUTH_TOKEN,
                from_number=settings.TWILIO_PHONE_NUMBER,
                base_url=settings.TWILIO_API_BASE_URL,
                timeout=settings.WHATSAPP_HTTP_TIMEOUT,
            )
        return self._client

    async def send_message(self, phone: str, message: str, media_url: Optional[str] = None) -> dict:
        """
        Send a message via WhatsApp

        Args:
            phone: Phone number (with or without whatsapp: prefix)
            message: Message text to send
            media_url: Optional public media URL

        Returns:
            dict with 'success' key and optional 'error' message.
            Never raises: callers only log failures.
        """
        client = self.client
        if client is None:
            logger.info(f"📤 WhatsApp disabled: would send message to {mask_phone(phone)}")
            logger.debug(f"Message: {message[:100]}...")
            return {"success": True, "skipped": True}

        try:
            await client.send_message(phone, message, media_url=media_url)
            return {"success": True}
        except TwilioError as e:
            error_msg = f"Failed to send message: {e}"
            logger.error(f"{error_msg} (to={mask_phone(phone)})")
            return {"success": False, "error": error_msg}
        except Exception as e:
            error_msg = f"Error sending WhatsApp message: {str(e)}"
            logger.error(error_msg, exc_info=True)
            return {"success": False, "error": error_msg}


whatsapp_service = WhatsAppService()


def get_whatsapp_service() -> WhatsAppService:
    return whatsapp_service
