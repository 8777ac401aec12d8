from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from datetime import datetime

from bson import ObjectId

from database import get_db
from models.user import Role
from utils.errors import ForbiddenError, UnauthorizedError
from utils.jwt import decode_token

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db=Depends(get_db),
):
    if credentials is None or not credentials.credentials:
        if not request.headers.get("Authorization"):
            raise UnauthorizedError("No token provided. Please login to access this resource.")
        raise UnauthorizedError("Invalid token format.")

    payload = decode_token(credentials.credentials)

    subject = payload.get("sub")
    if not subject or not ObjectId.is_valid(subject):
        raise UnauthorizedError("Invalid token payload")

    user = await db.users.find_one({"_id": ObjectId(subject)}, {"password_hash": 0})
    if not user:
        raise UnauthorizedError("User no longer exists.")

    # Update last activity
    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"last_active_at": datetime.utcnow()}}
    )

    return user


def user_role(user: dict) -> Role | None:
    """
    Stored role as a Role member, or None for anything unrecognised.
    """
    try:
        return Role(user.get("role"))
    except ValueError:
        return None


def is_admin(user: dict) -> bool:
    return user_role(user) is Role.ADMIN


def require_role(*roles: Role):
    allowed = frozenset(roles)
    label = " or ".join(r.value for r in roles)

    async def checker(user=Depends(get_current_user)):
        if user_role(user) not in allowed:
            raise ForbiddenError(f"Access denied. This resource requires {label} role.")
        return user

    return checker


def assert_owner_or_admin(user: dict, owner_id, action: str) -> None:
    if is_admin(user):
        return
    if owner_id is None or str(owner_id) != str(user["_id"]):
        raise ForbiddenError(f"You are not authorized to {action}")
