"""
Neo4j database client with connection pooling and async support.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Optional, TypeVar

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncManagedTransaction
from neo4j.exceptions import AuthError, ClientError, DriverError, Neo4jError

from docgraph.config import get_settings
from docgraph.core.exceptions import ConnectionFailure, ConnectionTimeout, QueryFailure
from docgraph.core.normalize import normalize_records

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Message the driver raises with when no pooled connection frees up in time
_POOL_TIMEOUT_MARKER = "failed to obtain a connection from the pool"


async def fetch_all(
    tx: AsyncManagedTransaction,
    query: str,
    parameters: Optional[dict[str, Any]] = None,
) -> list[dict[str, Any]]:
    """Run one statement inside a transaction and return normalized records."""
    result = await tx.run(query, parameters or {})
    return normalize_records(await result.data())


def _is_acquisition_timeout(error: Exception) -> bool:
    text = " ".join([str(error), *(str(arg) for arg in error.args)])
    return _POOL_TIMEOUT_MARKER in text


def translate_error(error: Exception) -> Exception:
    """Map a driver exception onto the docgraph error taxonomy."""
    if isinstance(error, AuthError):
        return ConnectionFailure(f"Neo4j authentication failed: {error}")
    if isinstance(error, ClientError) and _is_acquisition_timeout(error):
        return ConnectionTimeout(str(error))
    if isinstance(error, Neo4jError):
        return QueryFailure(str(error), code=getattr(error, "code", None))
    if isinstance(error, DriverError):
        if _is_acquisition_timeout(error):
            return ConnectionTimeout(str(error))
        return ConnectionFailure(str(error))
    return error


class Neo4jClient:
    """
    Async Neo4j client wrapper with connection management.

    One client owns one pooled driver for the life of the process. The
    driver is created on first use and torn down by ``close()``; the
    application entry point owns both calls.

    Usage:
        client = Neo4jClient(uri="neo4j://localhost", user="neo4j", password="...")
        await client.connect()

        rows = await client.execute_read("MATCH (n:`Customer`) RETURN n LIMIT 10")

        await client.close()
    """

    def __init__(
        self,
        uri: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        max_pool_size: Optional[int] = None,
        acquisition_timeout: Optional[float] = None,
        driver: Optional[AsyncDriver] = None,
    ):
        settings = get_settings()
        self.uri = uri or settings.neo4j_uri
        self.user = user or settings.neo4j_user
        self.password = password or settings.neo4j_password
        self.database = database or settings.neo4j_database
        self.max_pool_size = max_pool_size or settings.neo4j_max_pool_size
        self.acquisition_timeout = acquisition_timeout or settings.neo4j_acquisition_timeout
        self._driver: Optional[AsyncDriver] = driver

    @property
    def connected(self) -> bool:
        return self._driver is not None

    def _ensure_driver(self) -> AsyncDriver:
        if self._driver is None:
            # Managed transactions are not retried: a failed call surfaces
            # immediately and the caller decides whether to try again.
            self._driver = AsyncGraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password),
                max_connection_pool_size=self.max_pool_size,
                connection_acquisition_timeout=self.acquisition_timeout,
                max_transaction_retry_time=0,
            )
            logger.debug(
                f"Created Neo4j driver for {self.uri} "
                f"(pool={self.max_pool_size}, acquire_timeout={self.acquisition_timeout}s)"
            )
        return self._driver

    async def connect(self) -> None:
        """Create the driver if needed and verify the store is reachable."""
        driver = self._ensure_driver()
        try:
            await driver.verify_connectivity()
            logger.info(f"Connected to Neo4j at {self.uri}")
        except AuthError as e:
            logger.error(f"Neo4j authentication failed: {e}")
            raise translate_error(e) from e
        except DriverError as e:
            logger.error(f"Neo4j service unavailable at {self.uri}: {e}")
            raise translate_error(e) from e

    async def close(self) -> None:
        """Close the Neo4j connection."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Neo4j connection closed")

    @asynccontextmanager
    async def session(self, database: Optional[str] = None):
        """
        Get an async session scoped to one logical operation.

        The session is released on every exit path and driver errors are
        re-raised as ConnectionFailure / QueryFailure.

        Usage:
            async with client.session() as session:
                records = await session.execute_read(work)
        """
        driver = self._ensure_driver()
        try:
            session = driver.session(database=database or self.database)
        except (Neo4jError, DriverError) as e:
            raise translate_error(e) from e
        try:
            yield session
        except (Neo4jError, DriverError) as e:
            raise translate_error(e) from e
        finally:
            await session.close()

    async def read_transaction(
        self,
        work: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Run ``work(tx, *args, **kwargs)`` in a read-mode transaction."""
        async with self.session() as session:
            return await session.execute_read(work, *args, **kwargs)

    async def write_transaction(
        self,
        work: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Run ``work(tx, *args, **kwargs)`` in a write-mode transaction."""
        async with self.session() as session:
            return await session.execute_write(work, *args, **kwargs)

    async def execute_read(
        self,
        query: str,
        parameters: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a read query and return results as list of dicts.

        Args:
            query: Cypher query string
            parameters: Query parameters

        Returns:
            List of normalized result records
        """
        return await self.read_transaction(fetch_all, query, parameters)

    async def execute_write(
        self,
        query: str,
        parameters: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a write query and return whatever it RETURNs.

        Args:
            query: Cypher query string
            parameters: Query parameters

        Returns:
            List of normalized result records
        """
        return await self.write_transaction(fetch_all, query, parameters)

    async def health_check(self) -> bool:
        """Check if Neo4j is healthy and accessible."""
        try:
            await self._ensure_driver().verify_connectivity()
            return True
        except (Neo4jError, DriverError) as e:
            logger.error(f"Neo4j health check failed: {e}")
            return False
