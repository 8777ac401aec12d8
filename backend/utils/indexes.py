from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Users
    await _create_index_safe(
        db.users,
        [("email", ASCENDING)],
        name="users_email_unique_idx",
        unique=True,
    )

    # Products
    await _create_index_safe(
        db.products,
        [("name", ASCENDING)],
        name="products_name_idx",
    )
    await _create_index_safe(
        db.products,
        [("category", ASCENDING), ("is_available", ASCENDING)],
        name="products_category_available_idx",
    )
    await _create_index_safe(
        db.products,
        [("created_by", ASCENDING), ("created_at", DESCENDING)],
        name="products_creator_created_idx",
    )

    # Markets
    await _create_index_safe(
        db.markets,
        [("address.city", ASCENDING), ("is_active", ASCENDING)],
        name="markets_city_active_idx",
    )
    await _create_index_safe(
        db.markets,
        [("address.state", ASCENDING)],
        name="markets_state_idx",
    )
    await _create_index_safe(
        db.markets,
        [("type", ASCENDING), ("is_active", ASCENDING)],
        name="markets_type_active_idx",
    )
    await _create_index_safe(
        db.markets,
        [("manager", ASCENDING)],
        name="markets_manager_idx",
    )

    # Price submissions
    await _create_index_safe(
        db.price_submissions,
        [("product", ASCENDING), ("market", ASCENDING), ("date", DESCENDING)],
        name="submissions_product_market_date_idx",
    )
    await _create_index_safe(
        db.price_submissions,
        [("product", ASCENDING), ("status", ASCENDING), ("date", DESCENDING)],
        name="submissions_product_status_date_idx",
    )
    await _create_index_safe(
        db.price_submissions,
        [("market", ASCENDING), ("date", DESCENDING)],
        name="submissions_market_date_idx",
    )
    await _create_index_safe(
        db.price_submissions,
        [("submitted_by", ASCENDING)],
        name="submissions_submitter_idx",
    )
    await _create_index_safe(
        db.price_submissions,
        [("status", ASCENDING), ("date", DESCENDING)],
        name="submissions_status_date_idx",
    )

    # Audit logs
    await _create_index_safe(
        db.audit_logs,
        [("created_at", ASCENDING)],
        name="audit_logs_created_at_idx",
    )
