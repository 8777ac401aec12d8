from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from config.constants import DEFAULT_PAGE_SIZE
from database import get_db
from models.product import Category, ProductCreate, ProductUpdate, StockUpdate
from utils import products as catalog
from utils.query import paginate, page_count, parse_sort
from utils.responses import ok, ok_list
from utils.security import assert_owner_or_admin, get_current_user
from utils.serializers import populate_products

router = APIRouter(prefix="/products", tags=["Products"])


# =========================
# LIST / FILTER
# =========================

@router.get("")
async def list_products(
    category: Optional[Category] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    is_available: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort: str = "-created_at",
    db=Depends(get_db),
):
    page, limit, skip = paginate(page, limit)

    query = catalog.build_product_query(
        category=category.value if category else None,
        min_price=min_price,
        max_price=max_price,
        is_available=is_available,
        search=search,
    )

    cursor = db.products.find(query)
    sort_spec = parse_sort(sort, catalog.PRODUCT_SORT_FIELDS)
    if sort_spec:
        cursor = cursor.sort(sort_spec)

    products = await cursor.skip(skip).limit(limit).to_list(None)
    total = await db.products.count_documents(query)

    return ok_list(
        await populate_products(db, products),
        total=total,
        page=page,
        pages=page_count(total, limit),
    )

# =========================
# STATIC ROUTES (MUST BE BEFORE /{product_id})
# =========================

@router.get("/available")
async def available_products(db=Depends(get_db)):
    products = await catalog.find_available(db)
    return ok_list(await populate_products(db, products))


@router.get("/category/{category}")
async def products_by_category(category: Category, db=Depends(get_db)):
    products = await catalog.find_by_category(db, category.value)
    return ok_list(await populate_products(db, products))

# =========================
# PRODUCT DETAIL
# =========================

@router.get("/{product_id}")
async def product_detail(product_id: str, db=Depends(get_db)):
    product = await catalog.get_product(db, product_id)
    return ok((await populate_products(db, [product]))[0])

# =========================
# CREATE (ANY AUTHENTICATED USER)
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    product = await catalog.create_product(db, data, user["_id"])
    return ok((await populate_products(db, [product]))[0], "Product created successfully")

# =========================
# CREATOR OR ADMIN
# =========================

@router.put("/{product_id}")
async def update_product(
    product_id: str,
    data: ProductUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    product = await catalog.get_product(db, product_id)
    assert_owner_or_admin(user, product.get("created_by"), "update this product")

    product = await catalog.update_product(db, product["_id"], data)
    return ok((await populate_products(db, [product]))[0], "Product updated successfully")


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    product = await catalog.get_product(db, product_id)
    assert_owner_or_admin(user, product.get("created_by"), "delete this product")

    await catalog.delete_product(db, product["_id"])
    return ok({}, "Product deleted successfully")


@router.patch("/{product_id}/stock")
async def update_product_stock(
    product_id: str,
    data: StockUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    product = await catalog.get_product(db, product_id)
    assert_owner_or_admin(user, product.get("created_by"), "update this product's stock")

    product = await catalog.update_stock(db, product, data.quantity)
    return ok((await populate_products(db, [product]))[0], "Stock updated successfully")
