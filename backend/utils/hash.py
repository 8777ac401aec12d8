from passlib.context import CryptContext

from utils.errors import ValidationError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=10,
)

# bcrypt hard limit
MAX_BCRYPT_BYTES = 72


def password_fits_bcrypt(password: str) -> bool:
    return len(password.encode("utf-8")) <= MAX_BCRYPT_BYTES


def hash_password(password: str) -> str:
    if not password_fits_bcrypt(password):
        raise ValidationError("Password too long (max 72 bytes)")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Compare a candidate password against a stored hash.
    Missing or unreadable hashes count as a mismatch.
    """
    if not hashed_password or not password_fits_bcrypt(plain_password):
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False
