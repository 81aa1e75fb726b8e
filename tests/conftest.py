import os

# Banco em memória e WhatsApp desligado antes de importar a aplicação
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["JWT_SECRET"] = "test-secret-with-at-least-32-characters!"

import pytest

from famli.core.database import Base, SessionLocal, engine, init_db
from famli.core.rate_limiter import api_limiter, webhook_limiter
from famli.models.user import User
from famli.services.auth_service import AuthService


@pytest.fixture(autouse=True)
def _reset_limiters():
    api_limiter.reset()
    webhook_limiter.reset()
    yield


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db):
    user = User(
        email="maria@famli.net",
        name="Maria",
        password_hash=AuthService.hash_password("segredo123"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db):
    other = User(
        email="jose@famli.net",
        name="José",
        password_hash=AuthService.hash_password("segredo456"),
    )
    db.add(other)
    db.commit()
    db.refresh(other)
    return other
