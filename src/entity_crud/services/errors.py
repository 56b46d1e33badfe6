"""Error mapping for persistence calls.

Every call into a ``QueryableEntity`` runs inside ``persistence_guard``, so the
controller only ever sees the three domain error kinds.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from entity_crud.exceptions import DomainError, PersistenceError

DB_READ = "DBReadError"
DB_CREATE = "DBCreateError"
DB_SAVE = "DBSaveError"
DB_DELETE = "DBDeleteError"


@asynccontextmanager
async def persistence_guard(kind: str, timeout: float | None = None) -> AsyncIterator[None]:
    """Wrap any failure (including a timeout) of the enclosed call as ``PersistenceError``.

    Domain errors pass through untouched; cancellation is not an ``Exception``
    and propagates as usual. Nothing is retried.

    Usage:
        async with persistence_guard(DB_READ, timeout=30):
            row = await entity.find(db, filters)
    """
    try:
        async with asyncio.timeout(timeout):
            yield
    except DomainError:
        raise
    except TimeoutError as exc:
        raise PersistenceError(kind, TimeoutError(f"no response within {timeout}s")) from exc
    except Exception as exc:
        raise PersistenceError(kind, exc) from exc
