# database/transacao.py
"""
Escopo transacional dos serviços
-------------------------------------------------------------------------------
    with transacao(session, "criar pedido"):
        ...  # add/flush/delete

- Sai sem erro  -> commit.
- AppError      -> rollback e propaga (erro de validação/dono/404).
- IntegrityError com `conflito` informado -> rollback + ConflictError (409).
- Qualquer SQLAlchemyError -> rollback, log com contexto, InternalError (500).
- Outras exceções -> rollback e propaga sem alteração.

Nenhum estado parcial fica visível fora da transação.
-------------------------------------------------------------------------------
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from utils.errors import AppError, ConflictError, InternalError

log = logging.getLogger(__name__)


@contextmanager
def transacao(session, contexto: str, conflito: str | None = None):
    try:
        yield session
        session.commit()
    except AppError:
        session.rollback()
        raise
    except IntegrityError:
        session.rollback()
        if conflito:
            raise ConflictError(conflito)
        log.exception("Violação de integridade em '%s'", contexto)
        raise InternalError()
    except SQLAlchemyError:
        session.rollback()
        log.exception("Erro de banco de dados em '%s'", contexto)
        raise InternalError()
    except Exception:
        session.rollback()
        raise
