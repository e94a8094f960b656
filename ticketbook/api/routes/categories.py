"""
Category endpoints. Reads are public; writes need authentication.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketbook.core.security import get_current_user_id
from ticketbook.db.session import get_db
from ticketbook.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from ticketbook.services import category_service

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("/", response_model=list[CategoryResponse])
async def list_categories_endpoint(db: AsyncSession = Depends(get_db)):
    return await category_service.list_categories(db)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category_endpoint(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category(db, category_id)


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category_endpoint(
    data: CategoryCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.create_category(db, data)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category_endpoint(
    category_id: int,
    data: CategoryUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.update_category(db, category_id, data)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category_endpoint(
    category_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await category_service.delete_category(db, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
