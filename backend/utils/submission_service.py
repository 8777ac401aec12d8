import logging
from datetime import datetime, timedelta

from bson import ObjectId
from pymongo import ReturnDocument

from config.constants import (
    AVERAGE_PRICE_WINDOW_DAYS,
    DEFAULT_PAGE_SIZE,
    RECENT_SUBMISSIONS_DAYS,
)
from models.price_submission import (
    PriceSubmissionCreate,
    PriceSubmissionUpdate,
    SubmissionStatus,
    to_naive_utc,
)
from utils.errors import NotFoundError, ValidationError
from utils.guards import parse_object_id, resolve_object_id
from utils.query import parse_sort

logger = logging.getLogger(__name__)

SUBMISSION_SORT_FIELDS = {"date", "price", "status", "unit", "created_at", "updated_at"}

# ==============================
# Review actions
# ==============================

ACTION_VERIFY = "verify"
ACTION_REJECT = "reject"

ACTION_TARGETS = {
    ACTION_VERIFY: SubmissionStatus.APPROVED,
    ACTION_REJECT: SubmissionStatus.REJECTED,
}

# ==============================
# Status transitions (SINGLE SOURCE OF TRUTH)
# ==============================
# Reviews are not final: an approved or rejected submission may be
# re-verified or re-rejected. Locking a state means removing its targets.

SUBMISSION_TRANSITIONS = {
    SubmissionStatus.PENDING: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
    SubmissionStatus.APPROVED: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
    SubmissionStatus.REJECTED: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
}


def next_status(current, action: str) -> SubmissionStatus:
    if action not in ACTION_TARGETS:
        raise ValidationError(f"Unknown review action: {action}")

    try:
        current = SubmissionStatus(current)
    except ValueError:
        raise ValidationError(f"Unknown submission status: {current}")

    target = ACTION_TARGETS[action]
    if target not in SUBMISSION_TRANSITIONS[current]:
        raise ValidationError(f"Cannot {action} a submission that is {current.value}")
    return target


# ==============================
# Create
# ==============================

async def _assert_references(db, product_id: ObjectId | None, market_id: ObjectId | None) -> None:
    errors = []

    if product_id is not None and not await db.products.find_one({"_id": product_id}, {"_id": 1}):
        errors.append({"field": "product", "message": "Product not found"})

    if market_id is not None and not await db.markets.find_one({"_id": market_id}, {"_id": 1}):
        errors.append({"field": "market", "message": "Market not found"})

    if errors:
        raise ValidationError("Validation failed", errors=errors)


def build_submission_doc(data: PriceSubmissionCreate, submitter_id: ObjectId, now: datetime) -> dict:
    """
    Fresh submissions always start pending and unverified.
    """
    return {
        "product": ObjectId(data.product),
        "market": ObjectId(data.market),
        "submitted_by": submitter_id,
        "price": data.price,
        "unit": data.unit.value,
        "date": data.date or now,
        "notes": data.notes,
        "status": SubmissionStatus.PENDING.value,
        "is_verified": False,
        "verified_by": None,
        "verified_at": None,
        "rejection_reason": None,
        "rejected_at": None,
        "created_at": now,
        "updated_at": now,
    }


async def create_submission(db, data: PriceSubmissionCreate, submitter_id: ObjectId) -> dict:
    doc = build_submission_doc(data, submitter_id, datetime.utcnow())
    await _assert_references(db, doc["product"], doc["market"])

    result = await db.price_submissions.insert_one(doc)
    doc["_id"] = result.inserted_id

    logger.info(
        "SUBMISSION_CREATED id=%s product=%s market=%s by=%s",
        doc["_id"], doc["product"], doc["market"], submitter_id,
    )
    return doc


# ==============================
# Read
# ==============================

async def get_submission(db, submission_id) -> dict:
    submission = await db.price_submissions.find_one(
        {"_id": resolve_object_id(submission_id, "Price submission")}
    )
    if not submission:
        raise NotFoundError("Price submission not found")
    return submission


def build_submission_query(
    product: str | None = None,
    market: str | None = None,
    submitted_by: str | None = None,
    status: SubmissionStatus | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> dict:
    query: dict = {}

    if product:
        query["product"] = parse_object_id(product, "product id")
    if market:
        query["market"] = parse_object_id(market, "market id")
    if submitted_by:
        query["submitted_by"] = parse_object_id(submitted_by, "user id")
    if status:
        query["status"] = SubmissionStatus(status).value

    if start_date or end_date:
        query["date"] = {}
        if start_date:
            query["date"]["$gte"] = to_naive_utc(start_date)
        if end_date:
            query["date"]["$lte"] = to_naive_utc(end_date)

    return query


async def list_submissions(
    db,
    query: dict,
    skip: int = 0,
    limit: int = DEFAULT_PAGE_SIZE,
    sort: str = "-date",
) -> tuple[list[dict], int]:
    cursor = db.price_submissions.find(query)
    sort_spec = parse_sort(sort, SUBMISSION_SORT_FIELDS)
    if sort_spec:
        cursor = cursor.sort(sort_spec)

    submissions = await cursor.skip(skip).limit(limit).to_list(None)
    total = await db.price_submissions.count_documents(query)
    return submissions, total


async def _approved(db, query: dict) -> list[dict]:
    query = {**query, "status": SubmissionStatus.APPROVED.value}
    return await db.price_submissions.find(query).sort("date", -1).to_list(None)


async def get_price_history(db, product_id, market_id) -> list[dict]:
    return await _approved(db, {
        "product": parse_object_id(product_id, "product id"),
        "market": parse_object_id(market_id, "market id"),
    })


async def get_submissions_by_product(db, product_id) -> list[dict]:
    return await _approved(db, {"product": parse_object_id(product_id, "product id")})


async def get_submissions_by_market(db, market_id) -> list[dict]:
    return await _approved(db, {"market": parse_object_id(market_id, "market id")})


async def get_recent_submissions(db, days: int = RECENT_SUBMISSIONS_DAYS) -> list[dict]:
    since = datetime.utcnow() - timedelta(days=days)
    return await _approved(db, {"date": {"$gte": since}})


async def get_average_price(db, product_id, days: int = AVERAGE_PRICE_WINDOW_DAYS) -> dict | None:
    """
    Mean/min/max/count of approved prices for a product inside the window.

    Prices are compared as-is: submissions in different units are pooled
    together. Returns None when no approved submission falls in the window.
    """
    since = datetime.utcnow() - timedelta(days=days)

    pipeline = [
        {
            "$match": {
                "product": parse_object_id(product_id, "product id"),
                "status": SubmissionStatus.APPROVED.value,
                "date": {"$gte": since},
            }
        },
        {
            "$group": {
                "_id": None,
                "average_price": {"$avg": "$price"},
                "min_price": {"$min": "$price"},
                "max_price": {"$max": "$price"},
                "count": {"$sum": 1},
            }
        },
    ]

    result = await db.price_submissions.aggregate(pipeline).to_list(1)
    # some backends emit a single count=0 row for an empty match
    if not result or not result[0]["count"]:
        return None

    stats = result[0]
    return {
        "average_price": stats["average_price"],
        "min_price": stats["min_price"],
        "max_price": stats["max_price"],
        "count": stats["count"],
    }


# ==============================
# Admin mutations
# ==============================

async def update_submission(db, submission_id, data: PriceSubmissionUpdate) -> dict:
    submission = await get_submission(db, submission_id)
    changes = data.model_dump(exclude_unset=True)

    for ref in ("product", "market"):
        if changes.get(ref) is not None:
            changes[ref] = ObjectId(changes[ref])
        else:
            changes.pop(ref, None)

    for required in ("price", "unit", "date"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} cannot be empty")

    if "unit" in changes:
        changes["unit"] = changes["unit"].value

    await _assert_references(db, changes.get("product"), changes.get("market"))

    changes["updated_at"] = datetime.utcnow()

    submission = await db.price_submissions.find_one_and_update(
        {"_id": submission["_id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not submission:
        raise NotFoundError("Price submission not found")
    return submission


async def delete_submission(db, submission_id) -> None:
    result = await db.price_submissions.delete_one(
        {"_id": resolve_object_id(submission_id, "Price submission")}
    )
    if result.deleted_count == 0:
        raise NotFoundError("Price submission not found")


async def _apply_review(db, submission_id, action: str, fields: dict) -> dict:
    submission = await get_submission(db, submission_id)
    status = next_status(submission.get("status"), action)

    now = datetime.utcnow()
    fields = {**fields, "status": status.value, "updated_at": now}

    # no version check: concurrent reviews resolve last-write-wins
    updated = await db.price_submissions.find_one_and_update(
        {"_id": submission["_id"]},
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFoundError("Price submission not found")
    return updated


async def verify_submission(db, submission_id, verifier_id: ObjectId) -> dict:
    updated = await _apply_review(db, submission_id, ACTION_VERIFY, {
        "is_verified": True,
        "verified_by": verifier_id,
        "verified_at": datetime.utcnow(),
    })
    logger.info("SUBMISSION_VERIFIED id=%s by=%s", updated["_id"], verifier_id)
    return updated


async def reject_submission(db, submission_id, reason: str | None = None) -> dict:
    # verification stamps are left as they were
    updated = await _apply_review(db, submission_id, ACTION_REJECT, {
        "rejection_reason": reason,
        "rejected_at": datetime.utcnow(),
    })
    logger.info("SUBMISSION_REJECTED id=%s", updated["_id"])
    return updated
