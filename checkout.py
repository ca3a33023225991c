import logging
import uuid
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import ValidationError as ModelValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from catalog import ACTIVE_FILTER
from errors import InventoryShortfall, PersistenceError, ValidationError
from models import CartLine, CheckoutResult, OrderItem, Shortfall

logger = logging.getLogger(__name__)


def validate_cart(cart) -> List[CartLine]:
    """Validate every line up front; nothing is written if any line is bad."""
    if not isinstance(cart, (list, tuple)) or not cart:
        raise ValidationError("Cart is empty.")

    lines = []
    for index, raw in enumerate(cart):
        if isinstance(raw, CartLine):
            lines.append(raw)
            continue
        if not isinstance(raw, dict):
            raise ValidationError(f"Cart line {index} must be an object.")
        try:
            lines.append(CartLine.model_validate(raw))
        except ModelValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ValidationError(f"Cart line {index} is invalid: {fields}.")
    return lines


class CheckoutProcessor:
    """Turns a cart into order records and per-product stock decrements.

    Stock is only ever changed through one conditional find-and-modify per
    product, so concurrent checkouts (across processes too) can never drive
    stock below zero.

    In the default mode the order records are written first and a line whose
    stock cannot be decremented is reported as a shortfall while the checkout
    still succeeds; its order record stays. With ``strict=True`` the cart is
    rejected as a whole: stock already taken is given back and no order
    record is written.
    """

    def __init__(self, db, strict: bool = False):
        self.db = db
        self.strict = strict

    async def checkout(self, cart: Sequence, customer_id: Optional[str] = None) -> CheckoutResult:
        lines = validate_cart(cart)
        checkout_id = uuid.uuid4().hex

        if self.strict:
            return await self._checkout_strict(lines, checkout_id, customer_id)

        order_ids = await self._persist(lines, checkout_id, customer_id)
        shortfalls = []
        for line in lines:
            shortfall = await self._decrement(line)
            if shortfall:
                logger.warning(
                    f"Checkout {checkout_id}: stock not decremented for {line.id} "
                    f"(qty {line.quantity}, {shortfall.reason}); order record kept"
                )
                shortfalls.append(shortfall)

        logger.info(f"Checkout {checkout_id}: {len(order_ids)} lines, {len(shortfalls)} shortfalls")
        return CheckoutResult(checkout_id=checkout_id, order_ids=order_ids, shortfalls=shortfalls)

    async def _checkout_strict(self, lines: List[CartLine], checkout_id: str,
                               customer_id: Optional[str]) -> CheckoutResult:
        applied = []
        for line in lines:
            try:
                shortfall = await self._decrement(line)
            except PersistenceError:
                await self._restock(applied)
                raise
            if shortfall:
                await self._restock(applied)
                logger.warning(
                    f"Checkout {checkout_id} rejected: {line.id} (qty {line.quantity}, {shortfall.reason})"
                )
                raise InventoryShortfall(
                    f"Insufficient stock for product '{line.id}'.", shortfalls=[shortfall]
                )
            applied.append(line)

        try:
            order_ids = await self._persist(lines, checkout_id, customer_id)
        except PersistenceError:
            await self._restock(applied)
            raise

        logger.info(f"Checkout {checkout_id}: {len(order_ids)} lines (strict)")
        return CheckoutResult(checkout_id=checkout_id, order_ids=order_ids)

    async def _persist(self, lines: List[CartLine], checkout_id: str,
                       customer_id: Optional[str]) -> List[str]:
        sale_date = datetime.utcnow()
        docs = [
            OrderItem(
                productId=line.id,
                productName=line.name,
                quantity=line.quantity,
                unitPrice=line.price,
                saleDate=sale_date,
                checkoutId=checkout_id,
                customerId=customer_id,
            ).model_dump()
            for line in lines
        ]
        try:
            result = await self.db.order_items.insert_many(docs, ordered=True)
        except PyMongoError as e:
            logger.error(f"Checkout {checkout_id}: order records not saved", exc_info=True)
            await self._discard_orders(checkout_id)
            raise PersistenceError("Could not save order records.") from e
        return [str(_id) for _id in result.inserted_ids]

    async def _discard_orders(self, checkout_id: str):
        # ordered insert_many may have written a prefix of the batch
        try:
            await self.db.order_items.delete_many({"checkoutId": checkout_id})
        except PyMongoError:
            logger.error(f"Checkout {checkout_id}: partial order records left behind", exc_info=True)

    async def _decrement(self, line: CartLine) -> Optional[Shortfall]:
        try:
            updated = await self.db.products.find_one_and_update(
                {"id": line.id, **ACTIVE_FILTER, "stock": {"$gte": line.quantity}},
                {"$inc": {"stock": -line.quantity}, "$set": {"updatedAt": datetime.utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
            if updated:
                return None
            product = await self.db.products.find_one({"id": line.id})
        except PyMongoError as e:
            logger.error(f"Stock update for {line.id} failed", exc_info=True)
            raise PersistenceError("Could not update inventory.") from e

        if not product:
            reason = "not_found"
        elif product.get("isDeleted"):
            reason = "deleted"
        else:
            reason = "insufficient_stock"
        return Shortfall(productId=line.id, quantity=line.quantity, reason=reason)

    async def _restock(self, lines: List[CartLine]):
        for line in lines:
            try:
                await self.db.products.update_one({"id": line.id}, {"$inc": {"stock": line.quantity}})
            except PyMongoError:
                logger.error(f"Could not give back {line.quantity} of {line.id}", exc_info=True)
