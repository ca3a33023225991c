import logging
from datetime import datetime
from typing import Iterable, List

from fastapi.encoders import jsonable_encoder
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError, ValidationError
from models import MAX_QUANTITY, Product, ProductCreate, ProductState, ProductUpdate

logger = logging.getLogger(__name__)

ACTIVE_FILTER = {"isDeleted": {"$ne": True}}


def _clean(doc: dict) -> dict:
    doc.pop("_id", None)
    return doc


class ProductCatalog:
    """Admin CRUD over products; products are only ever soft-deleted."""

    def __init__(self, db):
        self.db = db

    async def create(self, product: ProductCreate) -> Product:
        now = datetime.utcnow()
        doc = jsonable_encoder(product)
        doc.update({"isDeleted": False, "createdAt": now, "updatedAt": now})

        if await self.db.products.find_one({"id": product.id}):
            raise ConflictError(f"Product with id '{product.id}' already exists.")
        try:
            await self.db.products.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError(f"Product with id '{product.id}' already exists.")

        logger.info(f"Created product {product.id}")
        return Product(**_clean(doc))

    async def get(self, product_id: str) -> Product:
        doc = await self.db.products.find_one({"id": product_id, **ACTIVE_FILTER})
        if not doc:
            raise NotFoundError("Product not found.")
        return Product(**_clean(doc))

    async def list_public(self) -> List[Product]:
        cursor = self.db.products.find(ACTIVE_FILTER, sort=[("name", ASCENDING)])
        return [Product(**_clean(doc)) async for doc in cursor]

    async def list_all(self) -> List[Product]:
        cursor = self.db.products.find({}, sort=[("name", ASCENDING)])
        return [Product(**_clean(doc)) async for doc in cursor]

    async def update(self, product_id: str, updates: ProductUpdate) -> Product:
        changes = updates.model_dump(exclude_unset=True, exclude_none=True)
        if "price" in changes and changes["price"] < 0.01:
            raise ValidationError("Price must be at least 0.01.")
        if "stock" in changes and changes["stock"] < 0:
            raise ValidationError("Stock cannot be negative.")
        if "stock" in changes and changes["stock"] > MAX_QUANTITY:
            raise ValidationError("Stock is too large.")
        if "name" in changes and not changes["name"].strip():
            raise ValidationError("Name cannot be empty.")
        changes["updatedAt"] = datetime.utcnow()

        result = await self.db.products.find_one_and_update(
            {"id": product_id, **ACTIVE_FILTER},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundError("Product not found.")
        return Product(**_clean(result))

    async def soft_delete(self, product_id: str) -> Product:
        state = ProductState.ACTIVE.soft_delete()
        result = await self.db.products.find_one_and_update(
            {"id": product_id, **ACTIVE_FILTER},
            {"$set": {"isDeleted": state.is_deleted, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundError("Product not found or already deleted.")
        logger.info(f"Soft-deleted product {product_id}")
        return Product(**_clean(result))

    async def seed(self, products: Iterable[dict]) -> int:
        """Replace the whole catalog with the given product documents."""
        now = datetime.utcnow()
        docs = []
        for raw in products:
            doc = jsonable_encoder(ProductCreate(**raw))
            doc.update({"isDeleted": False, "createdAt": now, "updatedAt": now})
            docs.append(doc)

        await self.db.products.delete_many({})
        if docs:
            await self.db.products.insert_many(docs)
        logger.info(f"Seeded {len(docs)} products")
        return len(docs)
