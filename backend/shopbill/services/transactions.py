# Overview: Transaction boundary helpers; every multi-step mutation runs inside atomic().

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, TransactionFailure


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic(session):
    """
    Run a block as one transaction: commit on success, roll back on any error.

    There is no retry here. A caller that sees TransactionFailure may repeat the
    whole logical operation, since nothing from the failed attempt persisted.

    Store errors are translated:
    - IntegrityError -> ConflictError (unique/foreign key violation)
    - any other SQLAlchemyError -> TransactionFailure
    Domain errors raised inside the block propagate unchanged.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError("Constraint violation", details={"reason": str(exc.orig)}) from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise TransactionFailure("Database transaction failed", details={"reason": str(exc)}) from exc
    except BaseException:
        session.rollback()
        raise
