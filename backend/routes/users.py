from fastapi import APIRouter, Depends, status

from database import get_db
from models.user import Role, UserCreate, UserUpdate
from utils import audit
from utils.errors import ForbiddenError
from utils.responses import ok, ok_list
from utils.security import get_current_user, is_admin, require_role
from utils.serializers import serialize_user
from utils.users import create_user, delete_user, get_user, list_users, update_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def all_users(admin=Depends(require_role(Role.ADMIN)), db=Depends(get_db)):
    users = await list_users(db)
    return ok_list([serialize_user(u) for u in users])


@router.get("/{user_id}")
async def user_detail(user_id: str, user=Depends(get_current_user), db=Depends(get_db)):
    return ok(serialize_user(await get_user(db, user_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_user(
    data: UserCreate,
    admin=Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    user = await create_user(db, data.name, data.email, data.password, data.role)

    await audit.log_audit(
        db,
        actor=admin,
        action=audit.USER_CREATED,
        metadata={"user_id": str(user["_id"]), "role": user["role"]},
    )

    return ok(serialize_user(user), "User created successfully")


@router.put("/{user_id}")
async def edit_user(
    user_id: str,
    data: UserUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    admin = is_admin(user)

    if not admin and str(user["_id"]) != user_id:
        raise ForbiddenError("You are not authorized to update this user")

    if data.role is not None and not admin:
        raise ForbiddenError("Only admins can change roles")

    updated = await update_user(db, user_id, data.model_dump(exclude_unset=True))
    return ok(serialize_user(updated), "User updated successfully")


@router.delete("/{user_id}")
async def remove_user(
    user_id: str,
    admin=Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    await delete_user(db, user_id)

    await audit.log_audit(
        db,
        actor=admin,
        action=audit.USER_DELETED,
        metadata={"user_id": user_id},
    )

    return ok({}, "User deleted successfully")
