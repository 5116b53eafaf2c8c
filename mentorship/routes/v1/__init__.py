from fastapi import APIRouter

from .ai import router as ai_router
from .auth import router as auth_router
from .goals import router as goals_router
from .invitations import router as invitations_router
from .matches import router as matches_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .organizations import router as organizations_router
from .platform import router as platform_router
from .ratings import router as ratings_router
from .resources import router as resources_router
from .scheduling import router as scheduling_router
from .users import router as users_router

router = APIRouter()
for _router in (
    auth_router,
    organizations_router,
    users_router,
    invitations_router,
    matches_router,
    goals_router,
    ratings_router,
    scheduling_router,
    messages_router,
    notifications_router,
    resources_router,
    ai_router,
    platform_router,
):
    router.include_router(_router)
