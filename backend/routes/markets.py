from fastapi import APIRouter, Depends, status
from typing import Optional

from config.constants import DEFAULT_PAGE_SIZE
from database import get_db
from models.market import MarketCreate, MarketProductAdd, MarketType, MarketUpdate
from utils import markets as catalog
from utils.query import paginate, page_count, parse_sort
from utils.responses import ok, ok_list
from utils.security import assert_owner_or_admin, get_current_user
from utils.serializers import populate_markets

router = APIRouter(prefix="/markets", tags=["Markets"])


async def _one(db, market: dict) -> dict:
    return (await populate_markets(db, [market]))[0]


# =========================
# LIST / FILTER
# =========================

@router.get("")
async def list_markets(
    city: Optional[str] = None,
    state: Optional[str] = None,
    type: Optional[MarketType] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort: str = "-created_at",
    db=Depends(get_db),
):
    page, limit, skip = paginate(page, limit)

    query = catalog.build_market_query(
        city=city,
        state=state,
        market_type=type.value if type else None,
        is_active=is_active,
        search=search,
    )

    cursor = db.markets.find(query)
    sort_spec = parse_sort(sort, catalog.MARKET_SORT_FIELDS)
    if sort_spec:
        cursor = cursor.sort(sort_spec)

    markets = await cursor.skip(skip).limit(limit).to_list(None)
    total = await db.markets.count_documents(query)

    return ok_list(
        await populate_markets(db, markets),
        total=total,
        page=page,
        pages=page_count(total, limit),
    )

# =========================
# STATIC ROUTES (MUST BE BEFORE /{market_id})
# =========================

@router.get("/city/{city}")
async def markets_by_city(city: str, db=Depends(get_db)):
    return ok_list(await populate_markets(db, await catalog.find_by_city(db, city)))


@router.get("/type/{market_type}")
async def markets_by_type(market_type: MarketType, db=Depends(get_db)):
    return ok_list(await populate_markets(db, await catalog.find_by_type(db, market_type.value)))


@router.get("/{market_id}")
async def market_detail(market_id: str, db=Depends(get_db)):
    return ok(await _one(db, await catalog.get_market(db, market_id)))

# =========================
# CREATE (CALLER BECOMES MANAGER)
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_market(
    data: MarketCreate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    market = await catalog.create_market(db, data, user["_id"])
    return ok(await _one(db, market), "Market created successfully")

# =========================
# MANAGER OR ADMIN
# =========================

@router.put("/{market_id}")
async def update_market(
    market_id: str,
    data: MarketUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    market = await catalog.get_market(db, market_id)
    assert_owner_or_admin(user, market.get("manager"), "update this market")

    market = await catalog.update_market(db, market["_id"], data)
    return ok(await _one(db, market), "Market updated successfully")


@router.delete("/{market_id}")
async def delete_market(
    market_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    market = await catalog.get_market(db, market_id)
    assert_owner_or_admin(user, market.get("manager"), "delete this market")

    await catalog.delete_market(db, market["_id"])
    return ok({}, "Market deleted successfully")


@router.post("/{market_id}/products")
async def add_market_product(
    market_id: str,
    data: MarketProductAdd,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    market = await catalog.get_market(db, market_id)
    assert_owner_or_admin(user, market.get("manager"), "modify this market")

    market = await catalog.add_product(db, market, data.product_id)
    return ok(await _one(db, market), "Product added to market successfully")


@router.delete("/{market_id}/products/{product_id}")
async def remove_market_product(
    market_id: str,
    product_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    market = await catalog.get_market(db, market_id)
    assert_owner_or_admin(user, market.get("manager"), "modify this market")

    market = await catalog.remove_product(db, market, product_id)
    return ok(await _one(db, market), "Product removed from market successfully")
