"""
MongoDB connection management for async operations.
Handles the single pooled connection, indexing and health checks.
"""

import asyncio
from typing import Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.server_api import ServerApi

logger = structlog.get_logger(__name__)


class MongoDBManager:
    """
    Async MongoDB manager owning the application's database handle.

    The manager is created once at startup and passed to the services.
    ``connect()`` is single-flight: concurrent first callers share one
    in-flight attempt instead of racing to open several clients.
    """
    
    def __init__(
        self,
        connection_url: str,
        database_name: str,
        max_pool_size: int = 10,
        connect_timeout_ms: int = 5000,
        socket_timeout_ms: int = 30000,
    ):
        """
        Initialize MongoDB manager.
        
        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            max_pool_size: Upper bound of the driver connection pool
            connect_timeout_ms: Fail fast if the server cannot be reached
            socket_timeout_ms: Close idle sockets after this long
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.max_pool_size = max_pool_size
        self.connect_timeout_ms = connect_timeout_ms
        self.socket_timeout_ms = socket_timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connect_task: Optional[asyncio.Future] = None
    
    @property
    def is_connected(self) -> bool:
        return self.database is not None

    async def connect(self) -> AsyncIOMotorDatabase:
        """
        Establish the connection to MongoDB, at most once.

        Returns:
            The active database handle
        """
        if self.database is not None:
            return self.database

        if self._connect_task is None:
            self._connect_task = asyncio.ensure_future(self._open())
        task = self._connect_task

        try:
            return await asyncio.shield(task)
        except Exception:
            # Let the next caller start a fresh attempt
            if self._connect_task is task:
                self._connect_task = None
            raise

    async def _open(self) -> AsyncIOMotorDatabase:
        client = AsyncIOMotorClient(
            self.connection_url,
            maxPoolSize=self.max_pool_size,
            connectTimeoutMS=self.connect_timeout_ms,
            socketTimeoutMS=self.socket_timeout_ms,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
        )
        database = client[self.database_name]
        try:
            await client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)
            await self._create_indexes(database)
        except Exception as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            client.close()
            raise

        self.client = client
        self.database = database
        return database

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Get the active database handle.

        Raises:
            RuntimeError: If connect() has not completed
        """
        if self.database is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self.database
    
    async def disconnect(self) -> None:
        """Close MongoDB connection and reset state."""
        try:
            if self.client:
                self.client.close()
                logger.info("Disconnected from MongoDB")
        except Exception as e:
            logger.error("Error closing MongoDB connection", error=str(e))
        finally:
            self.client = None
            self.database = None
            self._connect_task = None
    
    async def _create_indexes(self, database: AsyncIOMotorDatabase) -> None:
        """
        Create indexes for the common query patterns.
        Username and email stay non-unique: uniqueness is a pre-check in the
        accounts service, not a database constraint.
        """
        try:
            await database.users.create_index("email")
            await database.users.create_index("username")
            
            # Owner listings, newest first
            await database.books.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
            await database.books.create_index([("created_at", DESCENDING)])
            
            logger.info("Successfully created MongoDB indexes")
            
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def health_check(self) -> Dict:
        """
        Perform database health check.
        
        Returns:
            Dictionary with health status
        """
        if self.database is None:
            return {"status": "disconnected"}

        try:
            await self.database.command("ping")
            
            users_count = await self.database.users.count_documents({})
            books_count = await self.database.books.count_documents({})
            
            return {
                "status": "healthy",
                "users_count": users_count,
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
