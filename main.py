"""
Famli Backend
API FastAPI da Caixa Famli com integração WhatsApp via Twilio.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from famli.core.config import settings
from famli.core.database import init_db
# Import routers
from famli.routes.auth import router as auth_router
from famli.routes.box import router as box_router
from famli.routes.guardians import router as guardians_router
from famli.routes.whatsapp import router as whatsapp_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerencia ciclo de vida da aplicação."""
    logger.info(f"🏠 Famli - Ambiente: {settings.ENV}")
    logger.info("Initializing database tables...")
    init_db()

    if settings.whatsapp_enabled:
        logger.info("📱 WhatsApp: habilitado")
    else:
        logger.info("📱 WhatsApp: desabilitado (configure TWILIO_ACCOUNT_SID)")

    if not settings.is_development and len(settings.JWT_SECRET) < 32:
        logger.warning("JWT_SECRET deve ter pelo menos 32 caracteres em produção")

    yield

    logger.info("Encerrando Famli backend...")


app = FastAPI(title="Famli Backend", version="1.0.0", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Accept", "Authorization", "Content-Type", "Accept-Language"],
)

# Standardize error responses to {"message": "..."}
@app.exception_handler(FastAPIHTTPException)
async def custom_http_exception_handler(request: Request, exc: FastAPIHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )

# Include routers
app.include_router(auth_router)
app.include_router(box_router)
app.include_router(guardians_router)
app.include_router(whatsapp_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "whatsapp": settings.whatsapp_enabled}


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.is_development)
