from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from .config import settings

def _engine_options(url: str) -> dict:
    """SQLite (dev/testes) precisa de ajustes para rodar com threads do FastAPI."""
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url or url == "sqlite://":
        # Um único banco em memória compartilhado por todas as conexões
        options["poolclass"] = StaticPool
    return options

engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Creates all tables defined in the metadata.
    """
    # Import models here to ensure they are registered with Base
    from famli.models.user import User  # noqa
    from famli.models.box_item import BoxItem  # noqa
    from famli.models.guardian import Guardian  # noqa

    Base.metadata.create_all(bind=engine)
