import logging
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from config import Config

logger = logging.getLogger(__name__)


class Database:
    """Store handle owned by the process entry point and passed to services."""

    def __init__(self, client, database_name: str = Config.DATABASE_NAME):
        self.client = client
        self.database = client[database_name]

        # Product catalog
        self.products = self.database.get_collection("products")
        # Immutable sale records written by checkout
        self.order_items = self.database.get_collection("orderitems")
        # Customers and admins
        self.users = self.database.get_collection("users")
        self.admins = self.database.get_collection("admins")

    @classmethod
    def from_url(cls, url: Optional[str] = None, database_name: Optional[str] = None) -> "Database":
        client = AsyncIOMotorClient(url or Config.MONGO_URL)
        return cls(client, database_name or Config.DATABASE_NAME)

    async def ensure_indexes(self):
        try:
            await self.products.create_index("id", unique=True)
            await self.users.create_index("email", unique=True)
            await self.admins.create_index("username", unique=True)
            await self.admins.create_index("email", unique=True)
            await self.order_items.create_index("checkoutId")
            logger.info("Database indexes ensured")
        except PyMongoError as e:
            logger.warning(f"Index creation warning: {e}")

    def close(self):
        self.client.close()
        logger.info("Database connection closed")
