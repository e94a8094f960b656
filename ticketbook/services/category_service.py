"""
Category service: CRUD for event categories.
"""

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketbook.core.logging import get_logger
from ticketbook.models.category import Category
from ticketbook.models.event import Event
from ticketbook.schemas.category import CategoryCreate, CategoryUpdate

logger = get_logger(__name__)


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    query = select(Category.id).where(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Category '{name}' already exists",
        )


async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return list(result.scalars().all())


async def get_category(db: AsyncSession, category_id: int) -> Category:
    result = await db.execute(select(Category).where(Category.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category {category_id} not found",
        )
    return category


async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
    name = data.name.strip()
    await _ensure_name_free(db, name)

    category = Category(
        name=name,
        description=data.description,
        icon=data.icon,
        color=data.color,
    )
    db.add(category)
    await db.flush()
    await db.refresh(category)

    logger.info("category_created", category_id=category.id, name=category.name)
    return category


async def update_category(db: AsyncSession, category_id: int, data: CategoryUpdate) -> Category:
    category = await get_category(db, category_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name"):
        changes["name"] = changes["name"].strip()
        await _ensure_name_free(db, changes["name"], exclude_id=category_id)

    for field, value in changes.items():
        setattr(category, field, value)
    await db.flush()
    await db.refresh(category)

    logger.info("category_updated", category_id=category.id, fields=sorted(changes))
    return category


async def delete_category(db: AsyncSession, category_id: int) -> None:
    category = await get_category(db, category_id)

    in_use = await db.execute(select(func.count(Event.id)).where(Event.category_id == category_id))
    if in_use.scalar():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category is still used by events",
        )

    await db.execute(delete(Category).where(Category.id == category.id))
    logger.info("category_deleted", category_id=category_id)
