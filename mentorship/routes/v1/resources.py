from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Response

from mentorship import resources
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import optional_session
from mentorship.auth import require_roles
from mentorship.models import Role
from mentorship.schemas import BlogPost
from mentorship.schemas import ResourceCreate

router = APIRouter(prefix="/api/v1", tags=["resources"])

platform_only = require_roles(Role.PLATFORM_ADMIN)


@router.get("/resources")
def list_resources(session: Session = Depends(current_session)):
    return resources.list_resources(session.organization_id)


@router.post("/resources", status_code=201)
def create_resource(body: ResourceCreate, session: Session = Depends(current_session)):
    return resources.create_resource(session, body.model_dump())


@router.delete("/resources/{resource_id}", status_code=204, response_class=Response)
def delete_resource(resource_id: str, session: Session = Depends(current_session)):
    resources.delete_resource(session, resource_id)
    return Response(status_code=204)


@router.get("/blog")
def list_blog(published_only: bool = True, session: Optional[Session] = Depends(optional_session)):
    return resources.list_blog_posts(session, published_only)


@router.post("/blog", status_code=201)
def create_blog_post(body: BlogPost, session: Session = Depends(platform_only)):
    return resources.create_blog_post(body.model_dump(exclude_unset=True))


@router.patch("/blog/{post_id}")
def update_blog_post(post_id: str, body: BlogPost, session: Session = Depends(platform_only)):
    return resources.update_blog_post(post_id, body.model_dump(exclude_unset=True))


@router.delete("/blog/{post_id}", status_code=204, response_class=Response)
def delete_blog_post(post_id: str, session: Session = Depends(platform_only)):
    resources.delete_blog_post(post_id)
    return Response(status_code=204)


@router.get("/library/{kind}")
def list_library(kind: str, session: Session = Depends(current_session)):
    return resources.list_library(kind, session.organization_id)


@router.post("/library/{kind}", status_code=201)
def create_library_item(
    kind: str, body: dict, organization_id: Optional[str] = None, session: Session = Depends(current_session)
):
    return resources.create_library_item(session, kind, body, organization_id)


@router.patch("/library/{kind}/{item_id}")
def update_library_item(kind: str, item_id: str, body: dict, session: Session = Depends(current_session)):
    return resources.update_library_item(session, kind, item_id, body)


@router.delete("/library/{kind}/{item_id}", status_code=204, response_class=Response)
def delete_library_item(kind: str, item_id: str, session: Session = Depends(current_session)):
    resources.delete_library_item(session, kind, item_id)
    return Response(status_code=204)


__all__ = ["router"]
