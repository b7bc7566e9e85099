"""
Ownership checks for single-item operations.

Every check runs in two fixed steps: first the item must exist (NotFound),
then it must belong to the caller (Forbidden). A missing id is NotFound no
matter who asks; an existing item owned by someone else is always Forbidden.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from . import crud, models
from .errors import Forbidden
import logging

logger = logging.getLogger(__name__)


async def get_owned_item(db: AsyncSession, item_id: str, user_id: str) -> models.Item:
    db_item = await crud.get_item(db, item_id)  # step 1: existence
    if db_item.owner_id != user_id:  # step 2: ownership
        logger.warning(f"User '{user_id}' denied access to item '{item_id}' owned by another user")
        raise Forbidden(item_id)
    return db_item


async def update_owned_item(db: AsyncSession, item_id: str, user_id: str, fields: dict) -> models.Item:
    db_item = await get_owned_item(db, item_id, user_id)
    return await crud.update_item(db, db_item, fields)


async def delete_owned_item(db: AsyncSession, item_id: str, user_id: str) -> None:
    db_item = await get_owned_item(db, item_id, user_id)
    await crud.delete_item(db, db_item)
