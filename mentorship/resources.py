"""Organization resources, platform blog posts and the shared content library."""

from __future__ import annotations

import logging
from typing import Optional

from mentorship.adapters import firestore_adapter as store
from mentorship.auth import Session
from mentorship.auth import resolve_organization
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Forbidden
from mentorship.errors import NotFound
from mentorship.models import RESOURCE_TYPES
from mentorship.models import Role

logger = logging.getLogger(__name__)

RESOURCES = "resources"
BLOG_POSTS = "blogPosts"
BLOG_FIELDS = ("title", "category", "imageUrl", "excerpt", "content", "published")

LIBRARY_COLLECTIONS = {
    "guides": "discussionGuides",
    "templates": "careerTemplates",
    "videos": "trainingVideos",
}
# ownership is fixed at creation
_LIBRARY_PROTECTED = ("isPlatform", "organizationId", "createdAt", "createdBy", "id")


def create_resource(session: Session, data: dict) -> dict:
    if not session.is_admin and session.role != Role.MENTOR:
        raise Forbidden("Only admins and mentors can add resources")
    if not (data.get("title") or "").strip() or not data.get("url"):
        raise BadRequest("Resource title and url are required")
    if data.get("type") not in RESOURCE_TYPES:
        raise BadRequest(f"Resource type must be one of: {', '.join(RESOURCE_TYPES)}")
    record = {
        "organizationId": session.organization_id,
        "title": data["title"].strip(),
        "type": data["type"],
        "url": data["url"],
        "description": data.get("description") or "",
        "fileUrl": data.get("fileUrl"),
        "uploadedBy": session.user_id,
        "createdAt": utc_now(),
    }
    resource_id = store.create_document(RESOURCES, record)
    return store.get_document(RESOURCES, resource_id)


def list_resources(organization_id: str) -> list[dict]:
    return store.query_documents(
        RESOURCES, [("organizationId", "==", organization_id)], order_by="createdAt", descending=True
    )


def delete_resource(session: Session, resource_id: str) -> None:
    resource = store.get_document(RESOURCES, resource_id)
    if resource is None or resource.get("organizationId") != session.organization_id:
        raise NotFound("Resource not found")
    if resource.get("uploadedBy") != session.user_id and not session.is_admin:
        raise Forbidden("Only the uploader or an admin can delete this resource")
    store.delete_document(RESOURCES, resource_id)


def list_blog_posts(session: Optional[Session] = None, published_only: bool = True) -> list[dict]:
    if session is None or not session.is_platform_admin:
        published_only = True
    posts = store.list_all_sorted(BLOG_POSTS, "createdAt", descending=True)
    if published_only:
        posts = [p for p in posts if p.get("published")]
    return posts


def create_blog_post(data: dict) -> dict:
    if not (data.get("title") or "").strip():
        raise BadRequest("Post title is required")
    unknown = set(data) - set(BLOG_FIELDS)
    if unknown:
        raise BadRequest(f"Unknown fields: {', '.join(sorted(unknown))}")
    record = {**data, "published": bool(data.get("published")), "createdAt": utc_now()}
    post_id = store.create_document(BLOG_POSTS, record)
    return store.get_document(BLOG_POSTS, post_id)


def update_blog_post(post_id: str, updates: dict) -> dict:
    unknown = set(updates) - set(BLOG_FIELDS)
    if unknown:
        raise BadRequest(f"Unknown fields: {', '.join(sorted(unknown))}")
    store.update_document(BLOG_POSTS, post_id, updates)
    return store.get_document(BLOG_POSTS, post_id)


def delete_blog_post(post_id: str) -> None:
    store.delete_document(BLOG_POSTS, post_id)


def library_collection(kind: str) -> str:
    try:
        return LIBRARY_COLLECTIONS[kind]
    except KeyError:
        raise NotFound(f"Unknown library: {kind}") from None


def list_library(kind: str, organization_id: Optional[str]) -> list[dict]:
    """Platform items first, then the organization's own, each newest first."""
    collection = library_collection(kind)
    platform = store.query_documents(
        collection, [("isPlatform", "==", True)], order_by="createdAt", descending=True
    )
    own: list[dict] = []
    if organization_id:
        own = store.query_documents(
            collection,
            [("isPlatform", "==", False), ("organizationId", "==", organization_id)],
            order_by="createdAt",
            descending=True,
        )
    return platform + own


def create_library_item(
    session: Session, kind: str, data: dict, organization_id: Optional[str] = None
) -> dict:
    collection = library_collection(kind)
    if not (data.get("title") or "").strip():
        raise BadRequest("Title is required")
    content = {k: v for k, v in data.items() if k not in _LIBRARY_PROTECTED}

    if session.is_platform_admin and not organization_id:
        ownership = {"isPlatform": True}
    elif session.is_admin:
        ownership = {"isPlatform": False, "organizationId": resolve_organization(session, organization_id)}
    else:
        raise Forbidden("Only admins can add library items")

    record = {**content, **ownership, "createdBy": session.user_id, "createdAt": utc_now()}
    item_id = store.create_document(collection, record)
    logger.info("Library item %s/%s created by %s", kind, item_id, session.user_id)
    return store.get_document(collection, item_id)


def _owned_item(session: Session, kind: str, item_id: str) -> dict:
    collection = library_collection(kind)
    item = store.get_document(collection, item_id)
    if item is None:
        raise NotFound("Library item not found")
    if session.is_platform_admin:
        return item
    if item.get("isPlatform") or item.get("organizationId") != session.organization_id:
        raise Forbidden("Only the owner can change this item")
    if not session.is_admin:
        raise Forbidden()
    return item


def update_library_item(session: Session, kind: str, item_id: str, updates: dict) -> dict:
    item = _owned_item(session, kind, item_id)
    updates = {k: v for k, v in updates.items() if k not in _LIBRARY_PROTECTED}
    if updates:
        store.update_document(library_collection(kind), item_id, updates)
    return {**item, **updates}


def delete_library_item(session: Session, kind: str, item_id: str) -> None:
    _owned_item(session, kind, item_id)
    store.delete_document(library_collection(kind), item_id)
