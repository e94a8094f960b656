"""
Bounded retry with exponential backoff for transient store failures.

Only infrastructure faults are retried here (timeouts, dropped connections,
SQLite lock contention). Ledger errors always propagate on the first raise so
a capacity conflict is never disguised as a transient fault.
"""

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, DisconnectionError, InterfaceError, OperationalError

from ticketbook.core.logging import get_logger
from ticketbook.core.metrics import record_store_retry
from ticketbook.ledger.errors import StoreUnavailableError

logger = get_logger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (
    asyncio.TimeoutError,
    ConnectionError,
    OperationalError,
    InterfaceError,
    DisconnectionError,
)


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, TRANSIENT_ERRORS):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    attempts: int,
    timeout: float,
    backoff: float,
) -> T:
    """
    Await `operation()` under `timeout`, retrying transient failures.

    `operation` is a factory, called afresh for every attempt.
    """
    for attempt in range(1, attempts + 1):
        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except Exception as exc:
            if not is_transient(exc):
                raise

            logger.warning(
                "store_transient_failure",
                operation=name,
                attempt=attempt,
                max_attempts=attempts,
                error=repr(exc),
            )
            if attempt == attempts:
                raise StoreUnavailableError(name, attempts) from exc

            record_store_retry(name)
            delay = backoff * (2 ** (attempt - 1))
            await asyncio.sleep(delay + random.uniform(0, backoff))

    raise StoreUnavailableError(name, attempts)
