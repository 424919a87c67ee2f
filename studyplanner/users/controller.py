from fastapi import APIRouter, Request

from ..database.core import DbSession
from ..auth.models import UserResponse
from ..auth.service import CurrentUser
from ..entities.user import User
from ..exceptions import NotFoundError
from ..rate_limiter import limiter, RATE_LIMITS

router = APIRouter(
    prefix="/me",
    tags=["Users"]
)


@router.get("")
@limiter.limit(RATE_LIMITS["planner_read"])
def get_current_user(request: Request, current_user: CurrentUser, db: DbSession):
    """
    Get current user information.
    Requires authentication.
    """
    user = db.get(User, current_user.user_id)
    if not user:
        raise NotFoundError("User not found", error="user_not_found")
    return {"user": UserResponse.model_validate(user).model_dump(mode="json", by_alias=True)}
