import logging
from datetime import datetime

from pymongo.errors import DuplicateKeyError

from config.env import ADMIN_EMAILS
from models.user import Role
from utils.errors import ConflictError, NotFoundError, UnauthorizedError
from utils.guards import resolve_object_id
from utils.hash import hash_password, verify_password

logger = logging.getLogger(__name__)

# password hashes only leave the store through find_by_email(include_password=True)
PUBLIC_PROJECTION = {"password_hash": 0}


def role_for_registration(email: str) -> Role:
    return Role.ADMIN if email.lower() in ADMIN_EMAILS else Role.COLLECTOR


async def find_by_email(db, email: str, include_password: bool = False):
    projection = None if include_password else PUBLIC_PROJECTION
    return await db.users.find_one({"email": email.strip().lower()}, projection)


async def get_user(db, user_id) -> dict:
    user = await db.users.find_one({"_id": resolve_object_id(user_id, "User")}, PUBLIC_PROJECTION)
    if not user:
        raise NotFoundError("User not found")
    return user


async def list_users(db) -> list[dict]:
    return await db.users.find({}, PUBLIC_PROJECTION).sort("created_at", -1).to_list(None)


async def create_user(db, name: str, email: str, password: str, role: Role) -> dict:
    email = email.strip().lower()

    if await find_by_email(db, email):
        raise ConflictError("Email already registered")

    now = datetime.utcnow()
    user = {
        "name": name,
        "email": email,
        "password_hash": hash_password(password),
        "role": Role(role).value,
        "created_at": now,
        "updated_at": now,
        "last_active_at": now,
    }

    try:
        result = await db.users.insert_one(user)
    except DuplicateKeyError:
        raise ConflictError("Email already registered")

    user["_id"] = result.inserted_id
    user.pop("password_hash")

    logger.info("USER_CREATED id=%s role=%s", result.inserted_id, user["role"])
    return user


async def update_user(db, user_id, changes: dict) -> dict:
    oid = resolve_object_id(user_id, "User")
    changes = {k: v for k, v in changes.items() if v is not None}

    if "email" in changes:
        existing = await find_by_email(db, changes["email"])
        if existing and existing["_id"] != oid:
            raise ConflictError("Email already registered")

    if "password" in changes:
        changes["password_hash"] = hash_password(changes.pop("password"))

    if "role" in changes:
        changes["role"] = Role(changes["role"]).value

    changes["updated_at"] = datetime.utcnow()

    try:
        result = await db.users.update_one({"_id": oid}, {"$set": changes})
    except DuplicateKeyError:
        raise ConflictError("Email already registered")

    if result.matched_count == 0:
        raise NotFoundError("User not found")

    return await get_user(db, oid)


async def delete_user(db, user_id) -> None:
    result = await db.users.delete_one({"_id": resolve_object_id(user_id, "User")})
    if result.deleted_count == 0:
        raise NotFoundError("User not found")


async def authenticate(db, email: str, password: str) -> dict:
    user = await find_by_email(db, email, include_password=True)

    if not user or not verify_password(password, user.get("password_hash")):
        raise UnauthorizedError("Invalid email or password")

    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"last_active_at": datetime.utcnow()}}
    )

    user.pop("password_hash", None)
    return user
