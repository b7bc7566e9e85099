from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
from typing import List
import logging

from . import auth, crud, filters, guard, logic, models, schemas
from .database import get_db_session
from .tokens import TokenService

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse, "description": "Validation error"},
    401: {"model": schemas.ErrorResponse, "description": "Missing, invalid or expired token"},
}
ITEM_ERROR_RESPONSES = {
    **ERROR_RESPONSES,
    403: {"model": schemas.ErrorResponse, "description": "Item belongs to another user"},
    404: {"model": schemas.ErrorResponse, "description": "Item does not exist"},
}

meta_router = APIRouter()
auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])
items_router = APIRouter(prefix="/api/items", tags=["Items"])


# --- Monitoring ---

@meta_router.get("/health", include_in_schema=False)
@meta_router.get("/api/health", tags=["Monitoring"], summary="Health Check")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@meta_router.get("/", tags=["Monitoring"], summary="API Index")
async def api_index():
    return {
        "message": "Welcome to the Inventory Tracker API",
        "version": "1.0.0",
        "endpoints": {
            "auth": "/api/auth",
            "items": "/api/items",
            "health": "/api/health",
        },
    }


# --- Auth ---

def _auth_response(user: models.User, tokens: TokenService) -> schemas.AuthResponse:
    return schemas.AuthResponse(user=schemas.UserRead.model_validate(user), token=tokens.issue(user.id))


@auth_router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    responses={**ERROR_RESPONSES, 409: {"model": schemas.ErrorResponse, "description": "Email already registered"}},
)
async def register(
    payload: schemas.RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(auth.get_token_service),
):
    """Creates an account and returns it together with a session token."""
    user = await auth.register(db, payload.name, payload.email, payload.password)
    logger.info(f"Registered user '{user.id}'")
    return _auth_response(user, tokens)


@auth_router.post("/login", response_model=schemas.AuthResponse, summary="Log in", responses=ERROR_RESPONSES)
async def login(
    payload: schemas.LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(auth.get_token_service),
):
    """Exchanges email and password for a session token."""
    user = await auth.verify_credentials(db, payload.email, payload.password)
    logger.info(f"User '{user.id}' logged in")
    return _auth_response(user, tokens)


@auth_router.get("/me", response_model=schemas.UserRead, summary="Current user", responses=ERROR_RESPONSES)
async def read_current_user(user: models.User = Depends(auth.get_current_user)):
    return schemas.UserRead.model_validate(user)


# --- Items ---

@items_router.get("", response_model=List[schemas.ItemRead], summary="List my items", responses=ERROR_RESPONSES)
async def list_items(
    search: str | None = Query(None, description="Case-insensitive match on name or description"),
    category: str | None = Query(None, description="Exact category, or 'All'"),
    low_stock: bool = Query(False, alias="lowStock", description="Only items at or below their threshold"),
    sort: str | None = Query(None, description="Field name, '-' prefix for descending, e.g. '-price'"),
    user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Returns the caller's items, filtered and sorted. Newest first by default."""
    items = await crud.list_items_by_owner(db, user.id)
    query = filters.ItemQuery(search=search, category=category, low_stock_only=low_stock, sort=sort)
    results = filters.filter_items(items, query)
    return [schemas.ItemRead.model_validate(item) for item in results]


@items_router.get(
    "/stats/summary",
    response_model=schemas.InventoryStatsRead,
    summary="Inventory statistics",
    responses=ERROR_RESPONSES,
)
async def stats_summary(
    user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Totals, stock alerts and per-category counts over all of the caller's items."""
    items = await crud.list_items_by_owner(db, user.id)  # single snapshot
    stats = logic.summarize(items)
    return schemas.InventoryStatsRead.model_validate(stats)


@items_router.get("/{item_id}", response_model=schemas.ItemRead, summary="Get one item", responses=ITEM_ERROR_RESPONSES)
async def read_item(
    item_id: str,
    user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    db_item = await guard.get_owned_item(db, item_id, user.id)
    return schemas.ItemRead.model_validate(db_item)


@items_router.post(
    "",
    response_model=schemas.ItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an item",
    responses={**ERROR_RESPONSES, 409: {"model": schemas.ErrorResponse, "description": "SKU already exists"}},
)
async def create_item(
    payload: schemas.ItemCreate,
    user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Creates an item owned by the caller. A SKU is generated when none is given."""
    db_item = await crud.create_item(db, user.id, payload.model_dump(exclude_unset=True))
    return schemas.ItemRead.model_validate(db_item)


@items_router.put(
    "/{item_id}",
    response_model=schemas.ItemRead,
    summary="Update an item",
    responses={**ITEM_ERROR_RESPONSES, 409: {"model": schemas.ErrorResponse, "description": "SKU already exists"}},
)
@items_router.patch("/{item_id}", response_model=schemas.ItemRead, include_in_schema=False)
async def update_item(
    item_id: str,
    payload: schemas.ItemUpdate,
    user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Partial update: only fields present in the body change. Owner and timestamps cannot be set."""
    db_item = await guard.update_owned_item(db, item_id, user.id, payload.model_dump(exclude_unset=True))
    return schemas.ItemRead.model_validate(db_item)


@items_router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an item",
    responses=ITEM_ERROR_RESPONSES,
)
async def delete_item(
    item_id: str,
    user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await guard.delete_owned_item(db, item_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
