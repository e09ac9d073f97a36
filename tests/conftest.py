from __future__ import annotations

import os

# o app lê DATABASE_URL no import; nunca tocar no banco real nos testes
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

from decimal import Decimal

import freezegun
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from perfumaria.main import app
from perfumaria.infra.models import Base, CustomerORM, ProductORM
from perfumaria.infra.db import get_db

# os schemas resolvem anotações (date/datetime) sob demanda; o freezegun não pode
# trocar essas referências pelos tipos falsos dele
freezegun.configure(extend_ignore_list=["perfumaria.schemas", "fastapi", "pydantic"])


def D(v) -> Decimal:
    """valores monetários podem voltar como str ou número no JSON"""
    return Decimal(str(v))


@pytest.fixture()
def engine():
    """
    Banco de teste em SQLite em memória.
    - Rápido
    - Isolado (um banco novo por teste)
    - Sem depender do Postgres instalado
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture()
def client(db_session):
    # override do get_db para usar SQLite em memória nos testes
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def make_product(db_session):
    def _make(name="Dior Sauvage", brand="Dior", cost="200.00", price="500.00", stock=10, **kw):
        p = ProductORM(
            name=name,
            brand=brand,
            size=kw.pop("size", "100ml"),
            purchase_price=Decimal(cost),
            sale_price=Decimal(price),
            stock_quantity=stock,
            **kw,
        )
        db_session.add(p)
        db_session.flush()
        return p
    return _make


@pytest.fixture()
def make_customer(db_session):
    def _make(name="Maria Silva", phone="11987654321", cpf="12345678900"):
        c = CustomerORM(name=name, phone=phone, cpf=cpf)
        db_session.add(c)
        db_session.flush()
        return c
    return _make
