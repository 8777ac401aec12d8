from fastapi import APIRouter, Depends, status

from database import get_db
from models.user import LoginRequest, RegisterRequest
from utils.jwt import create_access_token
from utils.responses import ok
from utils.security import get_current_user
from utils.serializers import serialize_user
from utils.users import authenticate, create_user, get_user, role_for_registration

router = APIRouter(prefix="/auth", tags=["Auth"])


def issue_token(user: dict) -> str:
    return create_access_token({
        "sub": str(user["_id"]),
        "role": user["role"],
    })


# ======================
# Register
# ======================

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db=Depends(get_db)):
    user = await create_user(
        db,
        name=data.name,
        email=data.email,
        password=data.password,
        role=role_for_registration(data.email),
    )

    return ok(
        {"user": serialize_user(user), "token": issue_token(user), "token_type": "bearer"},
        "User registered successfully",
    )

# ======================
# Login
# ======================

@router.post("/login")
async def login(data: LoginRequest, db=Depends(get_db)):
    user = await authenticate(db, data.email, data.password)

    return ok(
        {"user": serialize_user(user), "token": issue_token(user), "token_type": "bearer"},
        "Login successful",
    )

# ======================
# Current User
# ======================

@router.get("/me")
async def me(user=Depends(get_current_user), db=Depends(get_db)):
    return ok(serialize_user(await get_user(db, user["_id"])))
