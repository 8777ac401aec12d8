from datetime import datetime

from bson import ObjectId
from pymongo import ReturnDocument

from models.market import MarketCreate, MarketUpdate
from utils.errors import NotFoundError
from utils.guards import parse_object_id, resolve_object_id
from utils.query import contains

MARKET_SORT_FIELDS = {"name", "type", "rating", "created_at", "updated_at"}


async def create_market(db, data: MarketCreate, manager_id: ObjectId) -> dict:
    now = datetime.utcnow()
    market = data.model_dump(mode="json")
    market.update({
        "products": [ObjectId(pid) for pid in data.products],
        "manager": manager_id,
        "rating": 0,
        "num_reviews": 0,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    })

    result = await db.markets.insert_one(market)
    market["_id"] = result.inserted_id
    return market


async def get_market(db, market_id) -> dict:
    market = await db.markets.find_one({"_id": resolve_object_id(market_id, "Market")})
    if not market:
        raise NotFoundError("Market not found")
    return market


def build_market_query(
    city: str | None = None,
    state: str | None = None,
    market_type: str | None = None,
    is_active: bool | None = None,
    search: str | None = None,
) -> dict:
    query: dict = {}

    if city:
        query["address.city"] = contains(city)

    if state:
        query["address.state"] = contains(state)

    if market_type:
        query["type"] = market_type

    if is_active is not None:
        query["is_active"] = is_active

    if search:
        query["$or"] = [
            {"name": contains(search)},
            {"description": contains(search)},
            {"address.city": contains(search)},
        ]

    return query


async def update_market(db, market_id, data: MarketUpdate) -> dict:
    changes = data.model_dump(mode="json", exclude_unset=True)
    changes["updated_at"] = datetime.utcnow()

    market = await db.markets.find_one_and_update(
        {"_id": resolve_object_id(market_id, "Market")},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not market:
        raise NotFoundError("Market not found")
    return market


async def delete_market(db, market_id) -> None:
    result = await db.markets.delete_one({"_id": resolve_object_id(market_id, "Market")})
    if result.deleted_count == 0:
        raise NotFoundError("Market not found")


async def find_by_city(db, city: str) -> list[dict]:
    return await db.markets.find(
        {"address.city": contains(city), "is_active": True}
    ).sort("name", 1).to_list(None)


async def find_by_type(db, market_type: str) -> list[dict]:
    return await db.markets.find(
        {"type": market_type, "is_active": True}
    ).sort("name", 1).to_list(None)


async def add_product(db, market: dict, product_id) -> dict:
    """
    Idempotent: a product id is held at most once in a market's set.
    """
    pid = parse_object_id(product_id, "product id")

    if not await db.products.find_one({"_id": pid}, {"_id": 1}):
        raise NotFoundError("Product not found")

    return await db.markets.find_one_and_update(
        {"_id": market["_id"]},
        {
            "$addToSet": {"products": pid},
            "$set": {"updated_at": datetime.utcnow()},
        },
        return_document=ReturnDocument.AFTER,
    )


async def remove_product(db, market: dict, product_id) -> dict:
    pid = parse_object_id(product_id, "product id")

    return await db.markets.find_one_and_update(
        {"_id": market["_id"]},
        {
            "$pull": {"products": pid},
            "$set": {"updated_at": datetime.utcnow()},
        },
        return_document=ReturnDocument.AFTER,
    )
