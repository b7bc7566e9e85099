from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from . import models
from .errors import DuplicateEmail, DuplicateSku, NotFound, ValidationError
from .validation import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    ITEM_FIELDS,
    normalize_email,
    normalize_item_fields,
    validate_item_fields,
)
import logging

logger = logging.getLogger(__name__)

DERIVED_SKU_ATTEMPTS = 100


def derive_sku_if_absent(category: str | None, sku: str | None, now: datetime) -> str:
    """
    Returns ``sku`` when given, otherwise ``{CAT}-{epoch millis}`` built from
    the first three letters of the category.
    """
    if sku:
        return sku
    code = category[:3].upper() if category else "GEN"
    return f"{code}-{int(now.timestamp() * 1000)}"


# --- Users ---

async def get_user(db: AsyncSession, user_id: str) -> models.User | None:
    return await db.get(models.User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> models.User | None:
    result = await db.execute(select(models.User).filter(models.User.email == normalize_email(email)))
    return result.scalars().first()


async def create_user(db: AsyncSession, name: str, email: str, password_hash: str) -> models.User:
    db_user = models.User(
        id=models.new_id(),
        name=name.strip(),
        email=normalize_email(email),
        password_hash=password_hash,
        role=models.DEFAULT_ROLE,
        created_at=models.utcnow(),
    )
    email = db_user.email
    db.add(db_user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same address
        await db.rollback()
        raise DuplicateEmail(email)
    await db.refresh(db_user)
    logger.info(f"Created user '{db_user.id}'")
    return db_user


# --- Items ---

async def _sku_taken(db: AsyncSession, sku: str, exclude_id: str | None = None) -> bool:
    stmt = select(models.Item.id).filter(models.Item.sku == sku)
    if exclude_id is not None:
        stmt = stmt.filter(models.Item.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def _commit_item(db: AsyncSession, db_item: models.Item) -> None:
    # Read before commit: a rollback expires persistent instances
    item_id, sku = db_item.id, db_item.sku
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # The only unique column on items is sku; anything else is unexpected
        if await _sku_taken(db, sku, exclude_id=item_id):
            raise DuplicateSku(sku)
        raise
    await db.refresh(db_item)


async def create_item(db: AsyncSession, owner_id: str, fields: dict, now: datetime | None = None) -> models.Item:
    cleaned = normalize_item_fields(fields)
    errors = validate_item_fields(cleaned)
    if errors:
        raise ValidationError(errors)

    now = now or models.utcnow()
    sku = cleaned.get("sku")
    if sku and await _sku_taken(db, sku):
        logger.warning(f"Rejected item for owner '{owner_id}': SKU '{sku}' already exists")
        raise DuplicateSku(sku)

    threshold = cleaned.get("low_stock_threshold")
    db_item = models.Item(
        id=models.new_id(),
        name=cleaned["name"],
        description=cleaned.get("description") or "",
        category=cleaned["category"],
        quantity=cleaned["quantity"],
        price=cleaned["price"],
        sku=sku,
        low_stock_threshold=DEFAULT_LOW_STOCK_THRESHOLD if threshold is None else threshold,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    if sku:
        db.add(db_item)
        await _commit_item(db, db_item)
    else:
        await _add_with_derived_sku(db, db_item, now)
    logger.info(f"Created item '{db_item.id}' (sku={db_item.sku}) for owner '{owner_id}'")
    return db_item


async def _add_with_derived_sku(db: AsyncSession, db_item: models.Item, now: datetime) -> None:
    """
    Inserts ``db_item`` under the first free derived SKU, stepping the
    timestamp part forward one millisecond per taken candidate.
    """
    stamp = now
    for _ in range(DERIVED_SKU_ATTEMPTS):
        sku = derive_sku_if_absent(db_item.category, None, stamp)
        stamp += timedelta(milliseconds=1)
        if await _sku_taken(db, sku):
            continue
        db_item.sku = sku
        db.add(db_item)
        try:
            await _commit_item(db, db_item)
            return
        except DuplicateSku:
            # Taken by a concurrent insert between the check and the commit
            logger.info(f"Derived SKU '{sku}' was taken concurrently, trying the next one")
    raise DuplicateSku(sku)


async def get_item(db: AsyncSession, item_id: str) -> models.Item:
    db_item = await db.get(models.Item, item_id)
    if db_item is None:
        raise NotFound(item_id)
    return db_item


async def update_item(db: AsyncSession, db_item: models.Item, fields: dict, now: datetime | None = None) -> models.Item:
    """
    Applies a partial update. Keys outside the editable item fields (id,
    owner, timestamps) are dropped rather than rejected.
    """
    ignored = sorted(k for k in fields if k not in ITEM_FIELDS)
    if ignored:
        logger.debug(f"Ignoring non-editable fields on item '{db_item.id}': {ignored}")

    cleaned = normalize_item_fields(fields)
    errors = validate_item_fields(cleaned, partial=True)
    if errors:
        raise ValidationError(errors)

    new_sku = cleaned.get("sku")
    if new_sku is not None and new_sku != db_item.sku and await _sku_taken(db, new_sku, exclude_id=db_item.id):
        logger.warning(f"Rejected update of item '{db_item.id}': SKU '{new_sku}' already exists")
        raise DuplicateSku(new_sku)

    for key, value in cleaned.items():
        setattr(db_item, key, value)
    now = now or models.utcnow()
    db_item.updated_at = max(now, db_item.created_at)

    await _commit_item(db, db_item)
    logger.info(f"Updated item '{db_item.id}' fields={sorted(cleaned)}")
    return db_item


async def delete_item(db: AsyncSession, db_item: models.Item) -> None:
    await db.delete(db_item)
    await db.commit()
    logger.info(f"Deleted item '{db_item.id}'")


async def delete_item_by_id(db: AsyncSession, item_id: str) -> None:
    db_item = await get_item(db, item_id)
    await delete_item(db, db_item)


async def list_items_by_owner(db: AsyncSession, owner_id: str) -> list[models.Item]:
    """All of an owner's items in one query, newest first."""
    stmt = (
        select(models.Item)
        .filter(models.Item.owner_id == owner_id)
        .order_by(models.Item.created_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
