import base64
import hashlib
import secrets
from dataclasses import dataclass

from sellfast.core.config import settings


@dataclass(frozen=True)
class SessionToken:
    plain: str
    hashed: str


def generate_session_token() -> SessionToken:
    plain = f"sf_{secrets.token_urlsafe(32)}"
    return SessionToken(plain=plain, hashed=hash_session_token(plain))


def hash_session_token(plain: str) -> str:
    # Pepper protects against rainbow tables if DB leaks.
    salted = (plain + settings.session_token_pepper.get_secret_value()).encode("utf-8")
    digest = hashlib.sha256(salted).digest()
    return base64.b64encode(digest).decode("utf-8")
