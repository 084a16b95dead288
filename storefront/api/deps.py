# storefront/api/deps.py
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt

from storefront.domain.caller import Caller, USER_ROLE
from storefront.domain.errors import UnauthorizedError
from storefront.services.blob_store import BlobStore
from storefront.services.lock_service import LockService
from storefront.utils.settings import JWT_ALGORITHM, JWT_SECRET

bearer = HTTPBearer(auto_error=False)

_lock_service: LockService | None = None
_blob_store: BlobStore | None = None


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Not authorized to access this route") from e


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Caller:
    """Bearer header first, then the ``token`` cookie."""
    token = credentials.credentials if credentials else request.cookies.get("token")
    if not token:
        raise UnauthorizedError("Not authorized to access this route")

    claims = decode_token(token)
    user_id = claims.get("sub")
    if not user_id:
        raise UnauthorizedError("Not authorized to access this route")

    return Caller(
        user_id=str(user_id),
        role=claims.get("role", USER_ROLE),
        email=claims.get("email"),
        name=claims.get("name"),
    )


def get_lock_service() -> LockService:
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store is None:
        _blob_store = BlobStore()
    return _blob_store
