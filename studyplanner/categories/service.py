import logging
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..entities.category import Category
from ..exceptions import NotFoundError, StorageUnavailable
from .models import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:

    @staticmethod
    def list_categories(db: Session, user_id: UUID) -> list[Category]:
        return list(db.execute(
            select(Category).where(Category.user_id == user_id).order_by(Category.created_at)
        ).scalars())

    @staticmethod
    def get_category(db: Session, user_id: UUID, category_id: UUID) -> Category:
        """Fetch a category owned by ``user_id``; other users' rows look missing."""
        category = db.execute(
            select(Category).where(Category.id == category_id, Category.user_id == user_id)
        ).scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")
        return category

    @staticmethod
    def create_category(db: Session, user_id: UUID, data: CategoryCreate) -> Category:
        category = Category(
            user_id=user_id,
            name=data.name,
            description=data.description,
            color=data.color,
        )
        db.add(category)
        _commit(db, "create")
        db.refresh(category)
        return category

    @staticmethod
    def update_category(db: Session, user_id: UUID, category_id: UUID, data: CategoryUpdate) -> Category:
        category = CategoryService.get_category(db, user_id, category_id)
        updates = data.model_dump(exclude_unset=True)
        # name and color cannot be cleared, description can
        for field in ('name', 'color'):
            if updates.get(field) is None:
                updates.pop(field, None)
        for field, value in updates.items():
            setattr(category, field, value)
        _commit(db, "update")
        db.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, user_id: UUID, category_id: UUID) -> None:
        category = CategoryService.get_category(db, user_id, category_id)
        db.delete(category)
        _commit(db, "delete")


def _commit(db: Session, operation: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Category {operation} failed: {e}")
        raise StorageUnavailable(f"Category {operation} failed") from e
