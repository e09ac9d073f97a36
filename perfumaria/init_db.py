from __future__ import annotations

import logging
import sys
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from perfumaria.infra.db import SessionLocal, engine
from perfumaria.infra.logs import setup_logging
from perfumaria.infra.models import Base, CustomerORM, ProductORM

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    ("Chanel Nº 5", "Chanel", "100ml", "280.00", "450.00", 15),
    ("Dior Sauvage", "Dior", "100ml", "230.00", "380.00", 22),
    ("Carolina Herrera Good Girl", "Carolina Herrera", "80ml", "190.00", "320.00", 18),
    ("Hugo Boss Bottled", "Hugo Boss", "100ml", "160.00", "280.00", 30),
    ("Paco Rabanne One Million", "Paco Rabanne", "100ml", "210.00", "350.00", 12),
    ("Versace Eros", "Versace", "100ml", "200.00", "340.00", 20),
]

DEMO_CUSTOMERS = [
    ("Maria Silva", "11987654321", "12345678900"),
    ("João Santos", "11987654322", "12345678901"),
    ("Ana Costa", "11987654323", "12345678902"),
]


def seed_demo(db: Session) -> int:
    """
    cadastra produtos/clientes de exemplo; não faz nada se já houver produtos.
    """
    if db.scalar(select(ProductORM.id).limit(1)):
        return 0

    for name, brand, size, cost, price, stock in DEMO_PRODUCTS:
        db.add(ProductORM(
            name=name,
            brand=brand,
            size=size,
            purchase_price=Decimal(cost),
            sale_price=Decimal(price),
            stock_quantity=stock,
        ))
    for name, phone, cpf in DEMO_CUSTOMERS:
        db.add(CustomerORM(name=name, phone=phone, cpf=cpf))

    db.flush()
    return len(DEMO_PRODUCTS) + len(DEMO_CUSTOMERS)


def main() -> None:
    setup_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas criadas!")

    if "--seed" in sys.argv[1:]:
        db = SessionLocal()
        try:
            created = seed_demo(db)
            db.commit()
            logger.info("seed: %s registros criados", created)
        finally:
            db.close()


if __name__ == "__main__":
    main()
