from bson import ObjectId

from config.constants import LOW_STOCK_THRESHOLD
from utils.mongo import serialize_doc, project

USER_REF_FIELDS = ("name", "email")
PRODUCT_REF_FIELDS = ("name", "category", "price", "image")
MARKET_REF_FIELDS = ("name", "address.city", "address.state")
MARKET_PRODUCT_FIELDS = ("name", "price", "category", "stock", "is_available")


# -----------------------------
# Reference lookups
# -----------------------------

async def fetch_by_ids(collection, ids) -> dict:
    """
    Batch-load referenced documents keyed by ObjectId.
    Ids with no matching document are simply absent from the result.
    """
    wanted = {i for i in ids if isinstance(i, ObjectId)}
    if not wanted:
        return {}

    found = {}
    async for doc in collection.find({"_id": {"$in": list(wanted)}}):
        found[doc["_id"]] = doc
    return found


# -----------------------------
# Users
# -----------------------------

def serialize_user(user: dict) -> dict:
    data = serialize_doc(user)
    data.pop("password_hash", None)
    return data


# -----------------------------
# Products
# -----------------------------

def stock_status(stock: int) -> str:
    if stock <= 0:
        return "Out of Stock"
    if stock < LOW_STOCK_THRESHOLD:
        return "Low Stock"
    return "In Stock"


def serialize_product(product: dict, creator: dict | None = None) -> dict:
    data = serialize_doc(product)
    data["stock_status"] = stock_status(product.get("stock", 0))
    data["created_by"] = project(creator, USER_REF_FIELDS)
    return data


async def populate_products(db, products: list[dict]) -> list[dict]:
    users = await fetch_by_ids(db.users, [p.get("created_by") for p in products])
    return [serialize_product(p, users.get(p.get("created_by"))) for p in products]


# -----------------------------
# Markets
# -----------------------------

def full_address(address: dict) -> str:
    address = address or {}
    parts = [address.get("street"), address.get("city"), address.get("state")]
    if address.get("zip_code"):
        parts.append(address["zip_code"])
    parts.append(address.get("country"))
    return ", ".join(p for p in parts if p)


def serialize_market(market: dict, manager: dict | None = None, products: dict | None = None) -> dict:
    data = serialize_doc(market)
    data["full_address"] = full_address(market.get("address"))
    data["manager"] = project(manager, ("name", "email", "role"))

    if products is not None:
        # dangling product ids are dropped from the joined view
        data["products"] = [
            project(products[pid], MARKET_PRODUCT_FIELDS)
            for pid in market.get("products", [])
            if pid in products
        ]
    return data


async def populate_markets(db, markets: list[dict]) -> list[dict]:
    users = await fetch_by_ids(db.users, [m.get("manager") for m in markets])
    product_ids = [pid for m in markets for pid in m.get("products", [])]
    products = await fetch_by_ids(db.products, product_ids)
    return [serialize_market(m, users.get(m.get("manager")), products) for m in markets]


# -----------------------------
# Price submissions
# -----------------------------

def price_display(price, unit) -> str:
    return f"${float(price or 0):.2f} per {unit}"


def serialize_submission(
    submission: dict,
    product: dict | None = None,
    market: dict | None = None,
    submitter: dict | None = None,
    verifier: dict | None = None,
) -> dict:
    data = serialize_doc(submission)
    data["price_display"] = price_display(submission.get("price"), submission.get("unit"))

    data["product"] = project(product, PRODUCT_REF_FIELDS)
    data["market"] = project(market, MARKET_REF_FIELDS)
    data["submitted_by"] = project(submitter, USER_REF_FIELDS)
    data["verified_by"] = project(verifier, USER_REF_FIELDS)
    return data


async def populate_submissions(db, submissions: list[dict]) -> list[dict]:
    products = await fetch_by_ids(db.products, [s.get("product") for s in submissions])
    markets = await fetch_by_ids(db.markets, [s.get("market") for s in submissions])
    users = await fetch_by_ids(
        db.users,
        [s.get("submitted_by") for s in submissions] + [s.get("verified_by") for s in submissions],
    )

    return [
        serialize_submission(
            s,
            product=products.get(s.get("product")),
            market=markets.get(s.get("market")),
            submitter=users.get(s.get("submitted_by")),
            verifier=users.get(s.get("verified_by")),
        )
        for s in submissions
    ]


async def populate_submission(db, submission: dict) -> dict:
    return (await populate_submissions(db, [submission]))[0]
