import logging
from typing import Annotated, Optional
from fastapi import Depends, Header
from sqlalchemy import func
from sqlalchemy.orm import Session
from catalog_backend.api.exceptions import UnauthorizedException
from catalog_backend.database import get_db
from catalog_backend.model.auth import User
from catalog_backend.permissions.principal import CatalogUser

logger = logging.getLogger(__name__)

AUTHENTICATED_USER_HEADER = "X-Authenticated-User"

def user_to_catalog_user(user: User) -> CatalogUser:
    return CatalogUser(
        username=user.username,
        name=user.name,
        role=user.role,
        is_admin_access=bool(user.is_admin_access),
        access_rules=user.access_rules or [],
    )

def get_catalog_user(username: str, db: Session) -> Optional[CatalogUser]:

    user = (
        db.query(User)
        .filter(func.lower(User.username) == username.strip().lower())
        .first()
    )

    if user is None:
        return None

    return user_to_catalog_user(user)

def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    x_authenticated_user: Annotated[Optional[str], Header(alias=AUTHENTICATED_USER_HEADER)] = None,
) -> CatalogUser:
    """Identity asserted by the upstream gateway; credentials are checked there"""

    if x_authenticated_user is None or x_authenticated_user.strip() == "":
        raise UnauthorizedException()

    user = get_catalog_user(x_authenticated_user, db)

    if user is None:
        logger.warning(f"Unknown user [{x_authenticated_user}] in {AUTHENTICATED_USER_HEADER}")
        raise UnauthorizedException()

    return user
