"""FastAPI dependencies resolving the caller identity.

Usage in any router:
    from src.mk_gateway.auth.dependencies import get_current_user_id

    @router.post("/protected")
    async def protected(user_id: str = Depends(get_current_user_id)):
        ...

`get_optional_user_id` is for read endpoints that anonymous viewers may
call (e.g. public inventories); it yields None instead of failing.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.mk_common.errors import InvalidTokenError
from src.mk_common.identifiers import is_valid_uuid
from src.mk_gateway.auth.jwt_handler import decode_token

# tokenUrl points at the storefront auth service (used for the Swagger "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def _subject_from_token(token: str) -> str | None:
    try:
        payload = decode_token(token)
    except InvalidTokenError:
        return None
    user_id = payload.get("sub")
    if not user_id or not is_valid_uuid(user_id):
        return None
    return user_id.lower()


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Return the authenticated user's id or raise HTTP 401."""
    user_id = _subject_from_token(token)
    if user_id is None:
        raise _CREDENTIALS_EXCEPTION
    return user_id


async def get_optional_user_id(
    token: str | None = Depends(optional_oauth2_scheme),
) -> str | None:
    """Return the caller's id, or None for anonymous / invalid credentials."""
    if token is None:
        return None
    return _subject_from_token(token)
