from datetime import datetime
from fastapi import APIRouter, Body, Depends, Query, status
from typing import Optional

from config.constants import (
    AVERAGE_PRICE_WINDOW_DAYS,
    DEFAULT_PAGE_SIZE,
    RECENT_SUBMISSIONS_DAYS,
)
from database import get_db
from models.price_submission import (
    PriceSubmissionCreate,
    PriceSubmissionUpdate,
    RejectSubmission,
    SubmissionStatus,
)
from models.user import Role
from utils import audit
from utils import submission_service as engine
from utils.query import paginate, page_count
from utils.responses import ok, ok_list
from utils.security import get_current_user, require_role
from utils.serializers import populate_submission, populate_submissions

router = APIRouter(prefix="/price-submissions", tags=["Price Submissions"])


# =========================
# PUBLIC READS
# =========================

@router.get("")
async def list_submissions(
    product: Optional[str] = None,
    market: Optional[str] = None,
    submitted_by: Optional[str] = None,
    submission_status: Optional[SubmissionStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort: str = "-date",
    db=Depends(get_db),
):
    page, limit, skip = paginate(page, limit)

    query = engine.build_submission_query(
        product=product,
        market=market,
        submitted_by=submitted_by,
        status=submission_status,
        start_date=start_date,
        end_date=end_date,
    )

    submissions, total = await engine.list_submissions(db, query, skip, limit, sort)

    return ok_list(
        await populate_submissions(db, submissions),
        total=total,
        page=page,
        pages=page_count(total, limit),
    )


@router.get("/recent")
async def recent_submissions(
    days: int = Query(RECENT_SUBMISSIONS_DAYS, ge=1),
    db=Depends(get_db),
):
    submissions = await engine.get_recent_submissions(db, days)
    return ok_list(await populate_submissions(db, submissions))


@router.get("/product/{product_id}/market/{market_id}/history")
async def price_history(product_id: str, market_id: str, db=Depends(get_db)):
    submissions = await engine.get_price_history(db, product_id, market_id)
    return ok_list(await populate_submissions(db, submissions))


@router.get("/product/{product_id}/average")
async def average_price(
    product_id: str,
    days: int = Query(AVERAGE_PRICE_WINDOW_DAYS, ge=1),
    db=Depends(get_db),
):
    stats = await engine.get_average_price(db, product_id, days)

    if stats is None:
        return ok(None, "No price data found for this product")

    return ok({
        "product_id": product_id,
        "period": f"{days} days",
        **stats,
    })


@router.get("/product/{product_id}")
async def submissions_by_product(product_id: str, db=Depends(get_db)):
    submissions = await engine.get_submissions_by_product(db, product_id)
    return ok_list(await populate_submissions(db, submissions))


@router.get("/market/{market_id}")
async def submissions_by_market(market_id: str, db=Depends(get_db)):
    submissions = await engine.get_submissions_by_market(db, market_id)
    return ok_list(await populate_submissions(db, submissions))


@router.get("/{submission_id}")
async def submission_detail(submission_id: str, db=Depends(get_db)):
    submission = await engine.get_submission(db, submission_id)
    return ok(await populate_submission(db, submission))

# =========================
# ANY AUTHENTICATED USER
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_submission(
    data: PriceSubmissionCreate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    submission = await engine.create_submission(db, data, user["_id"])
    return ok(await populate_submission(db, submission), "Price submission created successfully")

# =========================
# ADMIN ONLY
# =========================

@router.put("/{submission_id}")
async def update_submission(
    submission_id: str,
    data: PriceSubmissionUpdate,
    admin=Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    submission = await engine.update_submission(db, submission_id, data)

    await audit.log_audit(
        db,
        actor=admin,
        action=audit.SUBMISSION_UPDATED,
        metadata={"submission_id": submission_id, "fields": sorted(data.model_fields_set)},
    )

    return ok(await populate_submission(db, submission), "Price submission updated successfully")


@router.delete("/{submission_id}")
async def delete_submission(
    submission_id: str,
    admin=Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    await engine.delete_submission(db, submission_id)

    await audit.log_audit(
        db,
        actor=admin,
        action=audit.SUBMISSION_DELETED,
        metadata={"submission_id": submission_id},
    )

    return ok({}, "Price submission deleted successfully")


@router.patch("/{submission_id}/verify")
async def verify_submission(
    submission_id: str,
    admin=Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    submission = await engine.verify_submission(db, submission_id, admin["_id"])

    await audit.log_audit(
        db,
        actor=admin,
        action=audit.SUBMISSION_VERIFIED,
        metadata={"submission_id": submission_id},
    )

    return ok(await populate_submission(db, submission), "Price submission verified successfully")


@router.patch("/{submission_id}/reject")
async def reject_submission(
    submission_id: str,
    data: Optional[RejectSubmission] = Body(None),
    admin=Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    reason = data.reason if data else None
    submission = await engine.reject_submission(db, submission_id, reason)

    await audit.log_audit(
        db,
        actor=admin,
        action=audit.SUBMISSION_REJECTED,
        metadata={"submission_id": submission_id, "reason": reason},
    )

    return ok(await populate_submission(db, submission), "Price submission rejected")
