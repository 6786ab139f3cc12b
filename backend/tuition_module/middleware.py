from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .database import get_db_session
from .errors import Unauthenticated
from .identity import IdentityStore, Principal


def _parse_token(auth_header: str | None, legacy_token: str | None) -> str:
    if auth_header:
        parts = auth_header.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise Unauthenticated("Invalid auth scheme")
        return parts[1].strip()
    if legacy_token:
        return legacy_token.strip()
    raise Unauthenticated("No token, authorization denied")


def get_current_principal(
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_auth_token: str | None = Header(default=None, alias="x-auth-token"),
    db: Session = Depends(get_db_session),
) -> Principal:
    token = _parse_token(authorization, x_auth_token)
    principal = IdentityStore(db).verify_token(token)
    if principal is None:
        raise Unauthenticated("Token is not valid")
    return principal
