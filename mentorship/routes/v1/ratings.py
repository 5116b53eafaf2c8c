from fastapi import APIRouter
from fastapi import Depends

from mentorship import ratings
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.models import Role
from mentorship.schemas import RatingCreate

router = APIRouter(prefix="/api/v1/ratings", tags=["ratings"])


@router.get("")
def list_ratings(pending_only: bool = False, session: Session = Depends(require_roles(Role.ADMIN))):
    return ratings.list_ratings(session.organization_id, pending_only)


@router.post("", status_code=201)
def create_rating(body: RatingCreate, session: Session = Depends(current_session)):
    return ratings.create_rating(session, body.toUserId, body.score, body.comment)


@router.post("/{rating_id}/approve")
def approve_rating(rating_id: str, session: Session = Depends(require_roles(Role.ADMIN))):
    return ratings.approve_rating(session.organization_id, rating_id)


__all__ = ["router"]
