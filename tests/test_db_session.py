from __future__ import annotations

import logging

import pytest
from sqlalchemy.exc import OperationalError

from perfumaria.infra import db as db_module


class _FailingCommitSession:
    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def commit(self):
        raise OperationalError("COMMIT", {}, Exception("conexão perdida"))

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def test_commit_error_is_logged_and_rolled_back(monkeypatch, caplog):
    session = _FailingCommitSession()
    monkeypatch.setattr(db_module, "SessionLocal", lambda: session)

    gen = db_module.get_db()
    assert next(gen) is session

    with caplog.at_level(logging.ERROR, logger="perfumaria.infra.db"):
        with pytest.raises(OperationalError):
            next(gen)

    assert "Erro ao salvar alterações" in caplog.text
    assert session.rolled_back
    assert session.closed
