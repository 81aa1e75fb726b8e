"""
Endpoints da integração WhatsApp (Twilio).

Fluxo do webhook:
1. Twilio recebe a mensagem no WhatsApp e faz POST no webhook
2. Processamos a mensagem e geramos a resposta
3. Devolvemos TwiML; o Twilio entrega a resposta ao usuário
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session
from famli.core.config import settings
from famli.core.database import get_db
from famli.core.rate_limiter import api_limiter, rate_limit, webhook_limiter
from famli.core.session_store import WhatsAppSessionStore, session_store
from famli.models.user import User
from famli.models.whatsapp import LinkPayload, WhatsAppStatusResponse
from famli.routes.auth import get_current_user
from famli.services.command_parser import clean_phone_number, mask_phone
from famli.services.twilio_client import (
    WebhookParseError,
    build_twiml,
    empty_twiml,
    parse_webhook_form,
    validate_signature,
)
from famli.services.whatsapp_flow import WhatsAppConversationService, get_conversation_service
from famli.services.whatsapp_messages import WhatsAppMessages
from famli.services.whatsapp_service import WhatsAppService, get_whatsapp_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/whatsapp", tags=["WhatsApp"])

WEBHOOK_OK = "Famli WhatsApp Webhook OK"


def get_session_store() -> WhatsAppSessionStore:
    return session_store


def _twiml_response(body: str) -> Response:
    return Response(content=body, media_type="application/xml")


def _signature_url(request: Request) -> str:
    """URL pública usada pelo Twilio para assinar (inclui query string)."""
    url = settings.webhook_url
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


@router.post("/webhook", dependencies=[Depends(rate_limit(webhook_limiter))])
async def webhook(
    request: Request,
    db: Session = Depends(get_db),
    conversation: WhatsAppConversationService = Depends(get_conversation_service),
):
    """
    Recebe mensagens do Twilio (application/x-www-form-urlencoded)
    e responde com TwiML.
    """
    if not settings.whatsapp_enabled:
        logger.info("Webhook received but WhatsApp integration is disabled")
        return _twiml_response(empty_twiml())

    form = await request.form()
    params = {key: str(value) for key, value in form.items()}

    if settings.TWILIO_VALIDATE_SIGNATURE:
        signature = request.headers.get("x-twilio-signature")
        if not validate_signature(settings.TWILIO_AUTH_TOKEN, _signature_url(request), params, signature):
            logger.warning("Rejected webhook with invalid Twilio signature")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Assinatura inválida")

    try:
        message = parse_webhook_form(params)
    except WebhookParseError as e:
        logger.warning(f"Could not parse webhook payload: {e}")
        return _twiml_response(build_twiml(WhatsAppMessages.not_understood()))

    try:
        reply = await conversation.process_message(message, db)
    except Exception as e:
        logger.error(f"Error processing WhatsApp message from {mask_phone(message.from_number)}: {e}", exc_info=True)
        reply = WhatsAppMessages.generic_error()

    if not reply:
        return _twiml_response(empty_twiml())
    return _twiml_response(build_twiml(reply))


@router.get("/webhook")
async def webhook_verify():
    """Usado pelo Twilio para validar que o endpoint existe."""
    return Response(content=WEBHOOK_OK, media_type="text/plain")


@router.post("/link", dependencies=[Depends(rate_limit(api_limiter))])
async def link(
    payload: LinkPayload,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    store: WhatsAppSessionStore = Depends(get_session_store),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
):
    """
    Vincula um número WhatsApp à conta logada.

    O usuário digita "vincular" no WhatsApp, recebe um código e o informa
    aqui junto com o número. A confirmação é enviada em segundo plano.
    """
    phone = clean_phone_number(payload.phone_number)
    if not phone:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Número de telefone é obrigatório"
        )

    if not store.consume_link_code(phone, payload.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Código inválido ou expirado"
        )

    store.link_phone(phone, current_user.id)
    background_tasks.add_task(whatsapp.send_message, phone, WhatsAppMessages.link_confirmed())

    return {"success": True, "message": "WhatsApp vinculado com sucesso!"}


@router.delete("/link", dependencies=[Depends(rate_limit(api_limiter))])
async def unlink(
    current_user: User = Depends(get_current_user),
    store: WhatsAppSessionStore = Depends(get_session_store),
):
    phone = store.unlink_user(current_user.id)
    if phone is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Nenhum WhatsApp vinculado"
        )
    return {"success": True, "message": "WhatsApp desvinculado"}


@router.get("/status", response_model=WhatsAppStatusResponse, response_model_exclude_none=True)
async def whatsapp_status():
    if not settings.whatsapp_enabled:
        return WhatsAppStatusResponse(enabled=False)

    return WhatsAppStatusResponse(
        enabled=True,
        phone_number=mask_phone(settings.TWILIO_PHONE_NUMBER),
        webhook_url=settings.webhook_url,
    )
