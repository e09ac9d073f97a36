# perfumaria/worker.py
"""
Worker de manutenção do cache de status.

O status de parcelas e vendas é derivado (services.receivables); a coluna
gravada é só cache. Com o passar dos dias uma parcela "open" vira "overdue"
sem nenhum pagamento acontecer, então o worker recalcula periodicamente.

    python -m perfumaria.worker           # loop
    python -m perfumaria.worker --once    # uma passada
"""
from __future__ import annotations

import logging
import os
import sys
import time
from datetime import datetime, date

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from perfumaria.infra.db import SessionLocal
from perfumaria.infra.logs import setup_logging
from perfumaria.services.payments_service import refresh_receivable_statuses

# carrega .env quando rodar como script
load_dotenv()

logger = logging.getLogger(__name__)


def today_local_date() -> date:
    return datetime.now().date()


def run_once(db: Session) -> int:
    changed = refresh_receivable_statuses(db, today_local_date())
    db.commit()
    return changed


def run_loop() -> None:
    interval = int(os.getenv("WORKER_INTERVAL_SECONDS", "300"))
    logger.info("[worker] started interval=%ss", interval)

    while True:
        started = time.time()
        db = SessionLocal()
        try:
            changed = run_once(db)
            logger.info("[worker] receivables refreshed changed=%s", changed)
        except Exception:
            db.rollback()
            logger.exception("[worker] ERROR")
        finally:
            db.close()

        elapsed = time.time() - started
        sleep_for = max(1, interval - int(elapsed))
        time.sleep(sleep_for)


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    argv = sys.argv[1:] if argv is None else argv

    if "--once" in argv:
        db = SessionLocal()
        try:
            changed = run_once(db)
            logger.info("[worker] receivables refreshed changed=%s", changed)
        finally:
            db.close()
        return

    try:
        run_loop()
    except KeyboardInterrupt:
        logger.info("[worker] stopped (Ctrl+C)")


if __name__ == "__main__":
    main()
