# app/shared/database/transaction.py
import logging
from contextlib import contextmanager

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.exceptions import UnexpectedError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session, action: str):
    """
    Commit al salir del bloque; rollback ante cualquier error

    Los errores de dominio (HTTPException) se propagan tal cual; el resto se
    registra y se reporta como 500 genérico sin detalles internos.
    """
    try:
        yield
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"💥 Error inesperado: {action}")
        raise UnexpectedError(f"Failed to {action}")
