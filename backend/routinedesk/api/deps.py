import logging
from collections.abc import Callable, Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from routinedesk.core.security import decode_token
from routinedesk.db.session import SessionLocal
from routinedesk.models.user import User, UserRole

logger = logging.getLogger(__name__)

# auto_error is off so a missing header gets the same 401 as a bad token.
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def user_from_token(db: Session, token: str) -> User:
    """Resolves a bearer token to an active user or raises 401/403."""
    try:
        subject = decode_token(token).get("sub")
    except JWTError as exc:
        raise _unauthorized("Could not validate credentials") from exc
    user = db.get(User, subject) if subject else None
    if user is None:
        raise _unauthorized("Could not validate credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Not authenticated")
    return user_from_token(db, credentials.credentials)


def require_roles(*roles: UserRole) -> Callable[..., User]:
    allowed = frozenset(roles)
    allowed_names = ", ".join(sorted(role.value for role in allowed))

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.info(
                "Denied %s (%s): requires one of %s",
                current_user.email,
                current_user.role.value,
                allowed_names,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {allowed_names}",
            )
        return current_user

    return role_checker


require_schedulers = require_roles(UserRole.admin, UserRole.scheduler)
require_admin = require_roles(UserRole.admin)
