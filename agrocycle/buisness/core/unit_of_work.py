"""
Transaction scope for domain facades.

Every facade operation runs inside `transaction()`: the session is committed
when the block exits cleanly and rolled back on any error. A lost uniqueness
race surfaces as IntegrityError at flush/commit time; callers pass
`on_conflict` to turn it into a domain error.
"""

from contextlib import contextmanager
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError
from agrocycle import db
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.domain.core.unit_of_work")


@contextmanager
def transaction(on_conflict: Optional[Callable[[IntegrityError], Exception]] = None):
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning(f"Integrity conflict rolled back: {exc.orig}")
        if on_conflict is None:
            raise
        raise on_conflict(exc) from exc
    except Exception:
        db.session.rollback()
        raise
