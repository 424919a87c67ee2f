from uuid import UUID
from fastapi import APIRouter, Request, Response
from starlette import status

from ..auth.service import CurrentUser
from ..database.core import DbSession
from ..rate_limiter import limiter, RATE_LIMITS
from .models import CategoryCreate, CategoryItem, CategoryList, CategoryUpdate
from .service import CategoryService

router = APIRouter(prefix="/me/categories", tags=["categories"])


@router.get("", response_model=CategoryList)
@limiter.limit(RATE_LIMITS["planner_read"])
def list_categories(request: Request, current_user: CurrentUser, db: DbSession):
    return {"items": CategoryService.list_categories(db, current_user.user_id)}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CategoryItem)
@limiter.limit(RATE_LIMITS["planner_write"])
def create_category(request: Request, data: CategoryCreate, current_user: CurrentUser, db: DbSession):
    return {"item": CategoryService.create_category(db, current_user.user_id, data)}


@router.get("/{category_id}", response_model=CategoryItem)
@limiter.limit(RATE_LIMITS["planner_read"])
def get_category(request: Request, category_id: UUID, current_user: CurrentUser, db: DbSession):
    return {"item": CategoryService.get_category(db, current_user.user_id, category_id)}


@router.patch("/{category_id}", response_model=CategoryItem)
@limiter.limit(RATE_LIMITS["planner_write"])
def update_category(request: Request, category_id: UUID, data: CategoryUpdate, current_user: CurrentUser, db: DbSession):
    return {"item": CategoryService.update_category(db, current_user.user_id, category_id, data)}


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMITS["planner_write"])
def delete_category(request: Request, category_id: UUID, current_user: CurrentUser, db: DbSession):
    """Deleting a category also deletes its study ranges."""
    CategoryService.delete_category(db, current_user.user_id, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
