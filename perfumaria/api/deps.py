from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from perfumaria.infra.db import get_db
from perfumaria.services.errors import NotFoundError

DBSession = Depends(get_db)


@contextmanager
def handle_errors(action: str, logger: logging.Logger) -> Iterator[None]:
    """
    traduz erros de serviço para HTTP:
      - NotFoundError -> 404
      - ValueError (regra de negócio) -> 400
      - erro de banco -> 500 com mensagem genérica ("Erro ao salvar venda. Tente novamente.")
    """
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError:
        logger.exception("Erro ao %s", action)
        raise HTTPException(status_code=500, detail=f"Erro ao {action}. Tente novamente.")
