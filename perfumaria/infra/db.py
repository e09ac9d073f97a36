from __future__ import annotations

import logging
import os
from typing import Iterator

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./perfumaria.db").strip()

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    pool_pre_ping=True,
    future=True,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def get_db() -> Iterator[Session]:
    """
    uma sessão por request: commit no sucesso, rollback em qualquer erro.
    """
    db = SessionLocal()
    try:
        yield db
        try:
            db.commit()
        except SQLAlchemyError:
            logger.exception("Erro ao salvar alterações no commit")
            raise
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
