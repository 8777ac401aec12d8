from datetime import datetime

from bson import ObjectId
from pymongo import ReturnDocument

from models.product import ProductCreate, ProductUpdate
from utils.errors import NotFoundError
from utils.guards import resolve_object_id
from utils.query import contains

PRODUCT_SORT_FIELDS = {"name", "price", "category", "stock", "rating", "created_at", "updated_at"}


async def create_product(db, data: ProductCreate, creator_id: ObjectId) -> dict:
    now = datetime.utcnow()
    product = {
        **data.model_dump(mode="json"),
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }

    result = await db.products.insert_one(product)
    product["_id"] = result.inserted_id
    return product


async def get_product(db, product_id) -> dict:
    product = await db.products.find_one({"_id": resolve_object_id(product_id, "Product")})
    if not product:
        raise NotFoundError("Product not found")
    return product


def build_product_query(
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    is_available: bool | None = None,
    search: str | None = None,
) -> dict:
    query: dict = {}

    if category:
        query["category"] = category

    if is_available is not None:
        query["is_available"] = is_available

    if min_price is not None or max_price is not None:
        query["price"] = {}
        if min_price is not None:
            query["price"]["$gte"] = min_price
        if max_price is not None:
            query["price"]["$lte"] = max_price

    if search:
        query["$or"] = [
            {"name": contains(search)},
            {"description": contains(search)},
            {"brand": contains(search)},
        ]

    return query


async def update_product(db, product_id, data: ProductUpdate) -> dict:
    changes = data.model_dump(mode="json", exclude_unset=True)
    changes["updated_at"] = datetime.utcnow()

    product = await db.products.find_one_and_update(
        {"_id": resolve_object_id(product_id, "Product")},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not product:
        raise NotFoundError("Product not found")
    return product


async def delete_product(db, product_id) -> None:
    result = await db.products.delete_one({"_id": resolve_object_id(product_id, "Product")})
    if result.deleted_count == 0:
        raise NotFoundError("Product not found")


async def update_stock(db, product: dict, quantity: int) -> dict:
    """
    Apply a signed stock delta. Stock is clamped at zero.
    """
    stock = max(product.get("stock", 0) + quantity, 0)

    updated = await db.products.find_one_and_update(
        {"_id": product["_id"]},
        {"$set": {"stock": stock, "updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFoundError("Product not found")
    return updated


async def find_by_category(db, category: str) -> list[dict]:
    return await db.products.find(
        {"category": category, "is_available": True}
    ).sort("name", 1).to_list(None)


async def find_available(db) -> list[dict]:
    return await db.products.find(
        {"is_available": True, "stock": {"$gt": 0}}
    ).sort("name", 1).to_list(None)
