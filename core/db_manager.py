# core/db_manager.py
"""Async Neo4j connection manager for the narrative store."""

from __future__ import annotations

from typing import Any

import structlog
from config import settings
from neo4j import (  # type: ignore
    AsyncDriver,
    AsyncGraphDatabase,
    AsyncManagedTransaction,
)
from neo4j.exceptions import ServiceUnavailable  # type: ignore

from .exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)


class Neo4jManager:
    """Owns one driver for the lifetime of a store connection.

    Instances are created by the caller and passed to repositories; there is
    no shared module-level instance.
    """

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ) -> None:
        self.uri = uri or settings.NEO4J_URI
        self.user = user or settings.NEO4J_USER
        self.password = password or settings.NEO4J_PASSWORD
        self.database = database if database is not None else settings.NEO4J_DATABASE
        self.driver: AsyncDriver | None = None

    async def __aenter__(self) -> Neo4jManager:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        if self.driver:
            logger.info(
                "Existing driver instance found. Closing it before reconnecting."
            )
            try:
                await self.driver.close()
            except Exception as e_close:
                logger.warning("Error closing existing driver", error=str(e_close))
            finally:
                self.driver = None

        try:
            self.driver = AsyncGraphDatabase.driver(
                self.uri, auth=(self.user, self.password)
            )
            await self.driver.verify_connectivity()
            logger.info("Connected to Neo4j", uri=self.uri)
        except ServiceUnavailable as e:
            logger.critical(
                "Neo4j connection failed. Ensure the database is running and accessible.",
                uri=self.uri,
                error=str(e),
            )
            self.driver = None
            raise StoreUnavailableError(f"Neo4j unavailable at {self.uri}") from e

    async def close(self) -> None:
        if self.driver:
            try:
                await self.driver.close()
                logger.info("Neo4j driver closed.")
            except Exception as e:
                logger.error("Error while closing Neo4j driver", error=str(e), exc_info=True)
            finally:
                self.driver = None
        else:
            logger.info("No active Neo4j driver to close (driver was None).")

    async def _ensure_connected(self) -> None:
        if self.driver is None:
            logger.info("Driver is None, attempting to connect.")
            await self.connect()

        if self.driver is None:
            raise StoreUnavailableError("Neo4j driver not initialized or connection failed.")

    async def _execute_query_tx(
        self,
        tx: AsyncManagedTransaction,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        logger.debug("Executing Cypher query", query=query, params=parameters)
        result_cursor = await tx.run(query, parameters)
        return await result_cursor.data()

    async def execute_read_query(
        self, query: str, parameters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        await self._ensure_connected()
        async with self.driver.session(database=self.database) as session:  # type: ignore
            return await session.execute_read(self._execute_query_tx, query, parameters)
