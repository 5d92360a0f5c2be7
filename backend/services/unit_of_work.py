# backend/services/unit_of_work.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from utils.errors import ConcurrentUpdateError, DuplicateSerialError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session):
    """Commit everything done inside the block once, or nothing at all.

    Storage-level conflicts are translated: the serial unique index becomes
    DuplicateSerialError, a version mismatch on an item becomes ConcurrentUpdateError.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if "serial" in str(e.orig).lower():
            raise DuplicateSerialError("") from e
        logger.exception("Integrity error while committing unit of work")
        raise
    except StaleDataError as e:
        db.rollback()
        logger.warning("Concurrent update detected: %s", e)
        raise ConcurrentUpdateError() from e
    except Exception:
        db.rollback()
        raise
