from contextlib import contextmanager

from loguru import logger
from sqlalchemy.orm import Session


@contextmanager
def best_effort(operation: str, db: Session | None = None, **context):
    """Run a non-critical side effect; failures are logged and discarded.

    The surrounding operation always continues. When ``db`` is given its
    transaction is rolled back so the session stays usable.

        with best_effort("redeem.usage", db=db, code=mask_code(code)):
            ...
    """
    try:
        yield
    except Exception:
        if db is not None:
            db.rollback()
        logger.bind(operation=operation, **context).opt(exception=True).warning(
            "best-effort step failed: {}", operation
        )
