# Overview: Transaction boundary and retry policy shared by every lifecycle operation.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrencyConflictError

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Optimistic version_id columns cover SQLite.
    """
    return query.with_for_update()


def run_in_transaction(
    session,
    op,
    *,
    attempts: int = 3,
    backoff_base: float = 0.05,
    retry_integrity_errors: bool = False,
):
    """
    Run op() and commit, as one transaction.

    - StaleDataError / OperationalError: roll back and re-run op() from the
      top, so guards see fresh state. After the last attempt raise
      ConcurrencyConflictError.
    - IntegrityError: same, but only when retry_integrity_errors is set.
      Operations that allocate a document number set it: two requests
      drawing the same next number collide on the unique constraint and
      the loser re-reads the sequence.
    - Any other exception: roll back and re-raise unchanged.
    """
    attempts = max(1, int(attempts))
    retryable = (OperationalError, StaleDataError)
    if retry_integrity_errors:
        retryable += (IntegrityError,)
    for attempt in range(attempts):
        try:
            result = op()
            session.commit()
            return result
        except retryable as exc:
            session.rollback()
            logger.warning("Concurrent modification (attempt %s/%s): %s", attempt + 1, attempts, exc)
            if attempt >= attempts - 1:
                raise ConcurrencyConflictError(
                    "The record was modified by another request; please retry",
                    details={"attempts": attempts},
                ) from exc
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            session.rollback()
            raise
