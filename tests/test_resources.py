import datetime

import pytest
from fastapi import HTTPException

from mentorship import resources
from mentorship.auth import Session
from mentorship.models import Role

ADMIN = Session("admin", "org-1", Role.ADMIN)
MENTOR = Session("mentor-1", "org-1", Role.MENTOR)
MENTEE = Session("mentee-1", "org-1", Role.MENTEE)
OPERATOR = Session("op", "org-0", Role.PLATFORM_ADMIN)
OTHER_ADMIN = Session("admin-2", "org-2", Role.ADMIN)


def test_resources_crud(db, people):
    created = resources.create_resource(MENTOR, {"title": "Clean Code", "type": "Book", "url": "https://x"})
    assert created["uploadedBy"] == "mentor-1"
    assert [r["id"] for r in resources.list_resources("org-1")] == [created["id"]]

    with pytest.raises(HTTPException) as exc:
        resources.create_resource(MENTEE, {"title": "Mine", "type": "Book", "url": "https://x"})
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException) as exc:
        resources.create_resource(MENTOR, {"title": "Pod", "type": "Podcast", "url": "https://x"})
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException):
        resources.delete_resource(MENTEE, created["id"])
    resources.delete_resource(ADMIN, created["id"])
    assert resources.list_resources("org-1") == []


def test_blog_visibility(db):
    resources.create_blog_post({"title": "Draft", "published": False})
    resources.create_blog_post({"title": "Live", "published": True})

    assert [p["title"] for p in resources.list_blog_posts(None)] == ["Live"]
    assert [p["title"] for p in resources.list_blog_posts(MENTEE, published_only=False)] == ["Live"]
    assert {p["title"] for p in resources.list_blog_posts(OPERATOR, published_only=False)} == {"Draft", "Live"}


def test_library_ordering_and_ownership(db):
    def _item(data, day):
        data = {**data, "createdAt": datetime.datetime(2026, 1, day, tzinfo=datetime.timezone.utc)}
        return db.add("discussionGuides", data)

    _item({"title": "P-old", "isPlatform": True}, 1)
    _item({"title": "P-new", "isPlatform": True}, 2)
    own = _item({"title": "Own", "isPlatform": False, "organizationId": "org-1"}, 3)
    _item({"title": "Theirs", "isPlatform": False, "organizationId": "org-2"}, 4)

    assert [i["title"] for i in resources.list_library("guides", "org-1")] == ["P-new", "P-old", "Own"]

    with pytest.raises(HTTPException) as exc:
        resources.update_library_item(OTHER_ADMIN, "guides", own, {"title": "Mine now"})
    assert exc.value.status_code == 403
    updated = resources.update_library_item(ADMIN, "guides", own, {"title": "Renamed", "isPlatform": True})
    assert updated["title"] == "Renamed"
    assert db.docs("discussionGuides")[own]["isPlatform"] is False


def test_library_creation_rules(db):
    platform_item = resources.create_library_item(OPERATOR, "videos", {"title": "Intro"})
    assert platform_item["isPlatform"] is True
    assert "organizationId" not in platform_item

    org_item = resources.create_library_item(ADMIN, "templates", {"title": "CV", "organizationId": "org-9"})
    assert org_item["isPlatform"] is False
    assert org_item["organizationId"] == "org-1"

    with pytest.raises(HTTPException) as exc:
        resources.create_library_item(ADMIN, "guides", {"title": "Elsewhere"}, organization_id="org-2")
    assert exc.value.status_code == 403
    assert db.docs("discussionGuides") == {}

    placed = resources.create_library_item(OPERATOR, "guides", {"title": "Seeded"}, organization_id="org-2")
    assert placed["isPlatform"] is False
    assert placed["organizationId"] == "org-2"

    with pytest.raises(HTTPException) as exc:
        resources.create_library_item(MENTEE, "templates", {"title": "Nope"})
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException) as exc:
        resources.list_library("podcasts", "org-1")
    assert exc.value.status_code == 404


def test_public_blog_endpoint(client, db):
    resources.create_blog_post({"title": "Live", "published": True})
    resources.create_blog_post({"title": "Draft", "published": False})
    response = client.get("/api/v1/blog", params={"published_only": False})
    assert response.status_code == 200
    assert [p["title"] for p in response.json()] == ["Live"]


def test_blog_write_requires_operator(client, people, auth_header):
    response = client.post("/api/v1/blog", json={"title": "x"}, headers=auth_header("admin"))
    assert response.status_code == 403
    response = client.post("/api/v1/blog", json={"title": "x"}, headers=auth_header("op", "org-0", "PLATFORM_ADMIN"))
    assert response.status_code == 201
