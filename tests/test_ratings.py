import pytest
from fastapi import HTTPException

from mentorship import ratings
from mentorship.auth import Session
from mentorship.models import Role

MENTEE = Session("mentee-1", "org-1", Role.MENTEE)


@pytest.mark.parametrize("score", [0, 6, 2.5, True, "5"])
def test_score_must_be_whole_one_to_five(db, people, score):
    with pytest.raises(HTTPException) as exc:
        ratings.create_rating(MENTEE, "mentor-1", score)
    assert exc.value.status_code == 400


def test_cannot_rate_self(db, people):
    with pytest.raises(HTTPException) as exc:
        ratings.create_rating(MENTEE, "mentee-1", 5)
    assert exc.value.status_code == 400


def test_target_must_be_in_organization(db, people, add_user):
    add_user("outsider", "org-2", "Out", "MENTOR")
    with pytest.raises(HTTPException) as exc:
        ratings.create_rating(MENTEE, "outsider", 5)
    assert exc.value.status_code == 404


def test_only_approved_ratings_count(db, people):
    first = ratings.create_rating(MENTEE, "mentor-1", 5, "Great")
    ratings.create_rating(Session("mentee-2", "org-1", Role.MENTEE), "mentor-1", 2)
    assert first["isApproved"] is False
    assert ratings.mentor_average(ratings.list_ratings("org-1"), "mentor-1") is None

    ratings.approve_rating("org-1", first["id"])
    listed = ratings.list_ratings("org-1")
    assert ratings.mentor_average(listed, "mentor-1") == 5
    assert len(ratings.list_ratings("org-1", pending_only=True)) == 1


def test_mentor_average():
    rows = [
        {"toUserId": "m", "score": 4, "isApproved": True},
        {"toUserId": "m", "score": 5, "isApproved": True},
        {"toUserId": "m", "score": 1, "isApproved": False},
        {"toUserId": "x", "score": 1, "isApproved": True},
    ]
    assert ratings.mentor_average(rows, "m") == 4.5
    assert ratings.mentor_average(rows, "nobody") is None


def test_rating_endpoints(client, people, auth_header):
    response = client.post(
        "/api/v1/ratings", json={"toUserId": "mentor-1", "score": 4}, headers=auth_header("mentee-1", role="MENTEE")
    )
    assert response.status_code == 201
    rating_id = response.json()["id"]

    approve = client.post(f"/api/v1/ratings/{rating_id}/approve", headers=auth_header("admin"))
    assert approve.json()["isApproved"] is True
