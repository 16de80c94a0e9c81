from typing import List, Optional, Type
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from beanie import init_beanie, Document
from pymongo.errors import ServerSelectionTimeoutError

from mongo_soft_delete.configs.settings import settings
from mongo_soft_delete.core.exceptions import DatabaseNotConnectedError
from mongo_soft_delete.middlewares.soft_delete import SoftDeleteMiddleware
from mongo_soft_delete.utils.logging import get_logger

logger = get_logger(__name__)


class MongoDB:
    """MongoDB connection manager handing out soft delete collections"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, document_models: Optional[List[Type[Document]]] = None):
        """Connect to MongoDB and optionally initialize Beanie"""
        try:
            mongo_url = settings.MONGO_URL
            self.client = AsyncIOMotorClient(
                mongo_url,
                serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
                connectTimeoutMS=settings.MONGO_CONNECT_TIMEOUT_MS,
                socketTimeoutMS=settings.MONGO_SOCKET_TIMEOUT_MS,
                maxPoolSize=settings.MONGO_MAX_POOL_SIZE,
                minPoolSize=settings.MONGO_MIN_POOL_SIZE,
                # deletedAt round-trips timezone aware
                tz_aware=True,
            )

            # Test connection
            await self.client.admin.command('ping')

            self.database = self.client[settings.MONGO_DB]
            logger.info(f"Connected to MongoDB database '{settings.MONGO_DB}'")

            if document_models:
                await init_beanie(
                    database=self.database,
                    document_models=document_models
                )
                logger.info(
                    f"Beanie initialized with {len(document_models)} document models")

            return True

        except ServerSelectionTimeoutError as e:
            logger.error(
                f"Failed to connect to MongoDB (timeout) at {settings.MONGO_HOST or 'localhost'}:{settings.MONGO_PORT}: {e}")
            raise ConnectionError("Cannot connect to MongoDB server") from e
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {str(e)}")
            raise

    async def disconnect(self):
        """Disconnect from MongoDB"""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("Disconnected from MongoDB")

    def collection(self, name: str) -> SoftDeleteMiddleware:
        """Soft delete view of a collection in the configured database"""
        if self.database is None:
            raise DatabaseNotConnectedError()
        return SoftDeleteMiddleware(self.database[name])


# Global MongoDB instance
mongodb = MongoDB()
