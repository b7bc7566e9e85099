from functools import lru_cache
from fastapi import Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash
import logging

from . import crud, models
from .database import get_db_session
from .errors import AuthFailure, DuplicateEmail, TokenError, ValidationError
from .tokens import TokenService
from .validation import normalize_email, validate_registration

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return generate_password_hash("not-a-real-password")


async def hash_password(password: str) -> str:
    # Salted one-way hash; the work factor makes it worth keeping off the event loop
    return await run_in_threadpool(generate_password_hash, password)


async def check_password(password_hash: str, password: str) -> bool:
    return await run_in_threadpool(check_password_hash, password_hash, password)


async def register(db: AsyncSession, name: str, email: str, password: str) -> models.User:
    """Creates a user. The plaintext password is never stored."""
    errors = validate_registration(name, email, password)
    if errors:
        raise ValidationError(errors)

    if await crud.get_user_by_email(db, email) is not None:
        logger.warning("Registration rejected: email already in use")
        raise DuplicateEmail(normalize_email(email))

    password_hash = await hash_password(password)
    return await crud.create_user(db, name, email, password_hash)


async def verify_credentials(db: AsyncSession, email: str, password: str) -> models.User:
    """
    Returns the user for a matching email/password pair.

    An unknown email and a wrong password raise the same AuthFailure, and an
    unknown email still pays for one hash check so timing does not tell them
    apart either.
    """
    user = None
    if isinstance(email, str) and email.strip():
        user = await crud.get_user_by_email(db, email)
    if user is None:
        await check_password(_dummy_hash(), password or "")
        raise AuthFailure()
    if not await check_password(user.password_hash, password or ""):
        raise AuthFailure()
    return user


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> models.User:
    """FastAPI dependency resolving the bearer token to a user."""
    try:
        if credentials is None:
            raise TokenError(TokenError.MISSING)
        user_id = tokens.verify(credentials.credentials)
        user = await crud.get_user(db, user_id)
        if user is None:
            raise TokenError(TokenError.UNKNOWN_USER)
    except TokenError as e:
        logger.warning(f"Token rejected: {e.reason}")
        raise
    return user
