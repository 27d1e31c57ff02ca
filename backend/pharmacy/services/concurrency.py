# Overview: Service-layer operations for concurrency; transaction boundary, row locking and retry.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import PharmacyError, LoggingFailedError, TransactionFailedError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() covers it there.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    On SQLite, take the database write lock before the first read.

    Concurrent writers then queue on the lock (busy timeout) instead of
    interleaving their read-modify-write of stock.
    """
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_conn = db.session.connection().connection.dbapi_connection
    if not dbapi_conn.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.info(
                "Retrying transaction after %s (attempt %d/%d)",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Run `func` as one atomic unit of work and commit it.

    - Domain errors (PharmacyError) roll back and propagate unchanged.
    - LoggingFailedError rolls back and surfaces as TransactionFailedError:
      an audit append is part of the mutation it records.
    - Storage errors that survive the retries roll back and surface as
      TransactionFailedError.
    - Anything else (KeyboardInterrupt, cancellation) rolls back and propagates.

    No partial writes are ever committed.
    """
    if attempts is None:
        attempts = current_app.config.get("TRANSACTION_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("TRANSACTION_RETRY_BACKOFF", 0.1)

    def _op():
        begin_write()
        result = func()
        db.session.commit()
        return result

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except LoggingFailedError as exc:
        db.session.rollback()
        current_app.logger.warning("Audit append failed, transaction rolled back: %s", exc)
        raise TransactionFailedError(
            "Transaction rolled back: audit log append failed",
            details={"cause": str(exc), **exc.details},
        ) from exc
    except PharmacyError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning("Transaction failed: %s", exc)
        raise TransactionFailedError(
            "Transaction could not be committed",
            details={"cause": type(exc).__name__},
        ) from exc
    except BaseException:
        db.session.rollback()
        raise
