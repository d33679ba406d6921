"""Authentication dependencies for retrieving the current viewer."""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import token_user_id
from backend.app.db.session import get_db
from backend.app.models.user import ROLE_ADMIN, User


def _not_authenticated() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


def get_current_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User:
    # Expect Authorization: Bearer <token>
    if not authorization or not authorization.startswith("Bearer "):
        raise _not_authenticated()
    try:
        user_id = token_user_id(authorization.split(" ", 1)[1])
    except ValueError:
        raise _not_authenticated()

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise _not_authenticated()
    return user


def require_roles(*roles: str):
    """Dependency factory admitting only viewers whose role is in ``roles``."""

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return current_user

    return dependency


get_current_admin = require_roles(ROLE_ADMIN)
