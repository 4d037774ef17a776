from dataclasses import dataclass
from fastapi import Depends, HTTPException, Security
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.core.db import get_db
from sellfast.core.security import hash_session_token
from sellfast.models.user import User, UserSession

session_cookie = APIKeyCookie(name="token", auto_error=False)
bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    session_id: str
    email: str
    role: str  # "USER" | "ADMIN"


async def get_current_user(
    cookie_token: str | None = Security(session_cookie),
    credentials: HTTPAuthorizationCredentials | None = Security(bearer),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    # Browser pages send the cookie; embedded widgets send a bearer token.
    token = cookie_token or (credentials.credentials if credentials else None)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    stmt = (
        select(UserSession, User)
        .join(User, User.id == UserSession.user_id)
        .where(
            UserSession.token_hash == hash_session_token(token),
            UserSession.is_active.is_(True),
            User.is_active.is_(True),
        )
    )
    row = (await db.execute(stmt)).one_or_none()
    if not row:
        raise HTTPException(status_code=401, detail="Unauthorized")

    session, user = row
    return CurrentUser(
        user_id=user.id,
        session_id=session.id,
        email=user.email,
        role=user.role,
    )
