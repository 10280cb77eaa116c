# logic/storage.py

import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from .errors import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(action):
    """
    Откатывает сессию и превращает сбои SQLAlchemy в StorageError.
    IntegrityError пропускается дальше: его разбирает вызывающий код,
    потому что только он знает, какое ограничение нарушено.
    """
    try:
        yield
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[storage] {action} failed: {e}")
        raise StorageError(f'Ошибка хранилища при операции "{action}"', action=action) from e


def commit(action):
    with storage_errors(action):
        db.session.commit()
