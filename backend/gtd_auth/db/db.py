"""
MongoDB connection management.

- Connection pooling and retry with exponential backoff
- Beanie ODM initialization for the auth documents
- Health checks
"""

import asyncio
import time
from typing import Any, Dict, Optional

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from gtd_auth.core.config import settings
from gtd_auth.core.errors.base import ConfigurationError, DatabaseError
from gtd_auth.core.logging.logger import get_logger
from gtd_auth.models.documents import DOCUMENT_MODELS

logger = get_logger(__name__)


class Database:
    """
    MongoDB connection and Beanie ODM initialization manager.
    """

    def __init__(self, max_retries: int = 5, base_delay: float = 2.0) -> None:
        self.client: Optional[AsyncIOMotorClient] = None
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def connect_db(self) -> None:
        """
        Establish MongoDB connection with retry logic.

        Raises:
            ConfigurationError: If configuration is invalid.
            DatabaseError: If connection fails after retries.
        """
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return
            if not settings.database.MONGODB_URL:
                raise ConfigurationError(
                    "Missing database URL", context={"settings": "MONGODB_URL"}
                )

            for attempt in range(self.max_retries):
                try:
                    await self._attempt_connection(attempt)
                    return
                except Exception as e:
                    if attempt == self.max_retries - 1:
                        error = DatabaseError(
                            "Failed to connect after multiple attempts",
                            context={"attempts": self.max_retries, "last_error": str(e)},
                            parent=e,
                        )
                        logger.log_error(error, "Database connection failed after retries")
                        raise error from e

                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        "Connection attempt failed, retrying",
                        attempt=attempt + 1,
                        max_retries=self.max_retries,
                        next_delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

    async def _attempt_connection(self, attempt: int) -> None:
        """Attempt a single connection to MongoDB."""
        start_time = time.perf_counter()

        self.client = AsyncIOMotorClient(
            settings.database.MONGODB_URL,
            maxPoolSize=settings.database.MONGODB_MAX_CONNECTIONS,
            minPoolSize=settings.database.MONGODB_MIN_CONNECTIONS,
            serverSelectionTimeoutMS=settings.database.MONGODB_TIMEOUT_MS,
            connectTimeoutMS=settings.database.MONGODB_TIMEOUT_MS,
            retryWrites=True,
            retryReads=True,
            tz_aware=True,
            uuidRepresentation="standard",
        )

        # Verify connection with a ping before building indexes.
        await self.client.admin.command("ping")
        await init_beanie(
            database=self.client[settings.database.MONGODB_DB_NAME],
            document_models=DOCUMENT_MODELS,
        )

        self._initialized = True
        logger.info(
            "Connected to MongoDB",
            database=settings.database.MONGODB_DB_NAME,
            max_connections=settings.database.MONGODB_MAX_CONNECTIONS,
            attempt=attempt + 1,
            response_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

    async def close_db(self) -> None:
        """Close MongoDB connection and clean up resources."""
        async with self._lock:
            if self.client is not None:
                self.client.close()
                self.client = None
                self._initialized = False
                logger.info("Closed MongoDB connection")

    async def health_check(self) -> Dict[str, Any]:
        """
        Check database connection health.

        Returns:
            A dict with health status and ping latency.
        """
        if not self._initialized or self.client is None:
            return {"healthy": False, "error": "Database not initialized"}
        try:
            start_time = time.perf_counter()
            await self.client.admin.command("ping")
            return {
                "healthy": True,
                "response_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"healthy": False, "error": str(e)}


# Global database instance for application-wide use.
db = Database()
