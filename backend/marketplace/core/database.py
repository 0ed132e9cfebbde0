"""
PostgreSQL connection gateway

Wraps a psycopg2 ThreadedConnectionPool and is injected into every
repository. Nothing in the application reaches for a module-level
connection: main.py creates one Database at startup and stores it on
app.state.

- cursor() / transaction(): dict cursor, COMMIT on success, ROLLBACK on any error
- run_in_transaction(): retries a whole unit of work on deadlock / serialization failure
- driver errors are translated into marketplace.core.errors after rollback

Author: TM3
Updated: 2026-10-17
"""
import time
import logging
from contextlib import contextmanager
from typing import Any, Callable, Optional, TypeVar

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool, PoolError

from .errors import MarketplaceError, ConflictError, InternalError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransientTransactionError(InternalError):
    """Deadlock or serialization failure; the whole transaction may be retried"""


TRANSIENT_ERRORS = (pg_errors.DeadlockDetected, pg_errors.SerializationFailure)


def translate_error(error: psycopg2.Error) -> MarketplaceError:
    """Map a psycopg2 error onto the application error taxonomy"""
    if isinstance(error, pg_errors.UniqueViolation):
        detail = getattr(error.diag, "message_detail", None) or str(error).strip()
        return ConflictError(detail)
    if isinstance(error, pg_errors.ForeignKeyViolation):
        detail = getattr(error.diag, "message_detail", None) or str(error).strip()
        return NotFoundError(f"referenced row does not exist: {detail}")
    if isinstance(error, TRANSIENT_ERRORS):
        return TransientTransactionError(f"transaction conflict: {str(error).strip()}")
    if isinstance(error, pg_errors.QueryCanceled):
        return InternalError(f"statement timed out: {str(error).strip()}")
    return InternalError(f"database error: {str(error).strip()}")


class Database:
    """
    Connection pool handle

    Usage:
        db = Database(settings.DATABASE_URL)
        db.open()
        with db.cursor() as cursor:
            cursor.execute("SELECT 1 AS ok")
            cursor.fetchone()  # {'ok': 1}
        db.close()
    """

    def __init__(
        self,
        database_url: str,
        min_connections: int = 1,
        max_connections: int = 10,
        connect_timeout: int = 10,
        statement_timeout_ms: int = 15000,
        connect_retries: int = 3,
        retry_delay: float = 1.0,
        transaction_retries: int = 3,
    ):
        self.database_url = database_url
        self.min_connections = min_connections
        self.max_connections = max_connections
        self.connect_timeout = connect_timeout
        self.statement_timeout_ms = statement_timeout_ms
        self.connect_retries = connect_retries
        self.retry_delay = retry_delay
        self.transaction_retries = transaction_retries
        self._pool: Optional[ThreadedConnectionPool] = None

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            min_connections=settings.DB_POOL_MIN,
            max_connections=settings.DB_POOL_MAX,
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
            statement_timeout_ms=settings.DB_STATEMENT_TIMEOUT_MS,
            connect_retries=settings.DB_CONNECT_RETRIES,
            transaction_retries=settings.DB_TRANSACTION_RETRIES,
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None and not self._pool.closed

    def open(self) -> None:
        """
        Create the pool, retrying on connection failures with exponential backoff

        Raises:
            InternalError: If DATABASE_URL is missing or all attempts fail
        """
        if self.is_open:
            return
        if not self.database_url:
            raise InternalError("DATABASE_URL not configured")

        last_error = None
        for attempt in range(1, self.connect_retries + 1):
            try:
                logger.debug(f"Database pool attempt {attempt}/{self.connect_retries}")
                self._pool = ThreadedConnectionPool(
                    self.min_connections,
                    self.max_connections,
                    self.database_url,
                    connect_timeout=self.connect_timeout,
                    options=f"-c statement_timeout={self.statement_timeout_ms}",
                    cursor_factory=RealDictCursor,
                )
                logger.info(f"Database pool ready (max {self.max_connections} connections)")
                return
            except psycopg2.OperationalError as e:
                last_error = e
                logger.warning(f"Connection error on attempt {attempt}/{self.connect_retries}: {e}")
                if attempt < self.connect_retries:
                    delay = self.retry_delay * (2 ** (attempt - 1))
                    logger.info(f"Retrying in {delay:.2f} seconds...")
                    time.sleep(delay)

        logger.error(f"All {self.connect_retries} connection attempts failed")
        raise InternalError(f"could not connect to database: {last_error}")

    def close(self) -> None:
        if self.is_open:
            self._pool.closeall()
            logger.info("Database pool closed")
        self._pool = None

    @contextmanager
    def connection(self):
        """Borrow a connection from the pool; broken connections are discarded on return"""
        if not self.is_open:
            raise InternalError("database pool is not open")
        try:
            conn = self._pool.getconn()
        except PoolError as e:
            raise InternalError(f"connection pool exhausted: {e}") from e
        try:
            yield conn
        finally:
            self._pool.putconn(conn, close=bool(conn.closed))

    @contextmanager
    def cursor(self):
        """
        Yield a dict cursor inside a transaction

        Commits when the block exits cleanly. On any exception the
        transaction is rolled back before the error propagates; psycopg2
        errors are translated (UniqueViolation -> ConflictError, ...).
        """
        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except psycopg2.Error as e:
                self._rollback(conn)
                raise translate_error(e) from e
            except BaseException:
                self._rollback(conn)
                raise
            finally:
                cursor.close()

    # Multi-statement writes read better as "with db.transaction()"
    transaction = cursor

    def run_in_transaction(self, work: Callable[[Any], T], retries: Optional[int] = None) -> T:
        """
        Run work(cursor) in one transaction, retrying the whole unit on
        deadlock / serialization failure

        Any other error is raised after rollback without retrying.
        """
        attempts = retries if retries is not None else self.transaction_retries
        attempts = max(1, attempts)

        for attempt in range(1, attempts + 1):
            try:
                with self.transaction() as cursor:
                    return work(cursor)
            except TransientTransactionError as e:
                if attempt == attempts:
                    logger.error(f"Transaction failed after {attempts} attempts: {e}")
                    raise
                delay = self.retry_delay * (2 ** (attempt - 1)) / 10
                logger.warning(f"Transient conflict on attempt {attempt}/{attempts}, retrying in {delay:.2f}s")
                time.sleep(delay)

        raise InternalError("transaction retry loop exhausted")

    def ping(self) -> float:
        """Run SELECT 1 and return the round-trip latency in milliseconds"""
        start = time.time()
        with self.cursor() as cursor:
            cursor.execute("SELECT 1 AS ok")
            cursor.fetchone()
        return round((time.time() - start) * 1000, 2)

    @staticmethod
    def _rollback(conn) -> None:
        if conn.closed:
            return
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.error(f"Rollback failed: {e}")
