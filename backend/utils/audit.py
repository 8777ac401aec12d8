from datetime import datetime

# ==============================
# Audit actions (ENUM-LIKE)
# ==============================

SUBMISSION_VERIFIED = "SUBMISSION_VERIFIED"
SUBMISSION_REJECTED = "SUBMISSION_REJECTED"
SUBMISSION_UPDATED = "SUBMISSION_UPDATED"
SUBMISSION_DELETED = "SUBMISSION_DELETED"
USER_CREATED = "USER_CREATED"
USER_DELETED = "USER_DELETED"


async def log_audit(
    db,
    actor: dict,
    action: str,
    metadata: dict | None = None
):
    await db.audit_logs.insert_one({
        "actor_id": actor["_id"],
        "actor_role": actor.get("role"),
        "action": action,
        "metadata": metadata or {},
        "created_at": datetime.utcnow()
    })


async def purge_audit_logs(db, older_than: datetime) -> int:
    result = await db.audit_logs.delete_many({
        "created_at": {"$lt": older_than}
    })
    return result.deleted_count
