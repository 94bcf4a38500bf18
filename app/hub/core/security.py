import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_PUNCTUATION = "!@#$%^&*()-_=+[]{}:,.?"
_PASSWORD_CLASSES = (
    string.ascii_lowercase,
    string.ascii_uppercase,
    string.digits,
    PASSWORD_PUNCTUATION,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def password_policy_violations(password: str, *, min_length: int) -> list[str]:
    violations = []
    if len(password) < min_length:
        violations.append(f"must be at least {min_length} characters")
    if not any(char.islower() for char in password):
        violations.append("must include a lowercase letter")
    if not any(char.isupper() for char in password):
        violations.append("must include an uppercase letter")
    if not any(char.isdigit() for char in password):
        violations.append("must include a digit")
    if not any(char in PASSWORD_PUNCTUATION for char in password):
        violations.append("must include a punctuation character")
    return violations


def generate_temporary_password(length: int = 16) -> str:
    """One character from every class, the rest from the full alphabet, shuffled."""
    if length < len(_PASSWORD_CLASSES):
        raise ValueError("temporary password length too small")
    rng = secrets.SystemRandom()
    chars = [secrets.choice(group) for group in _PASSWORD_CLASSES]
    alphabet = "".join(_PASSWORD_CLASSES)
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))
    rng.shuffle(chars)
    return "".join(chars)


def create_access_token(
    data: dict[str, Any],
    *,
    secret_key: str,
    algorithm: str,
    expires_delta: timedelta,
) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_token(token: str, *, secret_key: str, algorithm: str) -> dict[str, Any]:
    return jwt.decode(token, secret_key, algorithms=[algorithm])
