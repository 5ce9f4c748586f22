# tests/v1/test_votes.py
"""Tests for vote-related endpoints."""

from decimal import Decimal

import pytest
from fastapi import status

from aot_ledger.models import ModerationStatus


def _submit(client, headers, target_id, accomplishments=8, offenses=2, explanation=None):
    payload = {"target_id": target_id, "accomplishments": accomplishments, "offenses": offenses}
    if explanation is not None:
        payload["explanation"] = explanation
    return client.post("/api/v1/votes/", json=payload, headers=headers)


def test_submit_vote(client, auth_token, target) -> None:
    response = _submit(client, auth_token, target.id, explanation="Solid record")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["total"] == 6
    assert data["character_count"] == len("Solid record")
    assert data["moderation_status"] == ModerationStatus.APPROVED.value


def test_submit_requires_auth(client, target) -> None:
    response = _submit(client, {}, target.id)
    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_submit_bad_token(client, target) -> None:
    response = _submit(client, {"Authorization": "Bearer not-a-jwt"}, target.id)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_submit_out_of_range(client, auth_token, target) -> None:
    response = _submit(client, auth_token, target.id, accomplishments=11)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error"] == "invalid_score"


@pytest.mark.parametrize("field", ["accomplishments", "offenses"])
@pytest.mark.parametrize("value", [True, 5.5, "5"])
def test_submit_rejects_non_integer_scores(client, auth_token, target, field, value) -> None:
    payload = {"target_id": target.id, "accomplishments": 8, "offenses": 2, field: value}
    response = client.post("/api/v1/votes/", json=payload, headers=auth_token)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert client.get(f"/api/v1/votes/?target_id={target.id}").json()["total"] == 0


@pytest.mark.parametrize("value", [True, 7.5])
def test_update_rejects_non_integer_scores(client, auth_token, target, value) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]
    response = client.patch(f"/api/v1/votes/{vote_id}", json={"offenses": value}, headers=auth_token)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert client.get(f"/api/v1/votes/{vote_id}").json()["offenses"] == 2


def test_submit_duplicate(client, auth_token, target) -> None:
    assert _submit(client, auth_token, target.id).status_code == status.HTTP_201_CREATED
    response = _submit(client, auth_token, target.id, accomplishments=1)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "duplicate_vote"


def test_submit_unknown_target(client, auth_token) -> None:
    response = _submit(client, auth_token, 99999)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_submit_explanation_too_long(client, auth_token, target) -> None:
    response = _submit(client, auth_token, target.id, explanation="x" * 141)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error"] == "explanation_too_long"


def test_get_and_update_vote(client, auth_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]

    response = client.get(f"/api/v1/votes/{vote_id}")
    assert response.status_code == status.HTTP_200_OK

    response = client.patch(f"/api/v1/votes/{vote_id}", json={"offenses": 8}, headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["accomplishments"] == 8
    assert data["total"] == 0

    target_data = client.get(f"/api/v1/targets/{target.slug}").json()
    assert Decimal(target_data["avg_total"]) == Decimal("0")


def test_update_other_users_vote(client, auth_token, other_auth_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]
    response = client.patch(f"/api/v1/votes/{vote_id}", json={"offenses": 8}, headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_get_missing_vote(client) -> None:
    response = client.get("/api/v1/votes/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "not_found"


def test_delete_vote(client, auth_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]

    response = client.delete(f"/api/v1/votes/{vote_id}", headers=auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/votes/{vote_id}").status_code == status.HTTP_404_NOT_FOUND


def test_moderator_can_delete(client, auth_token, moderator_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]
    response = client.delete(f"/api/v1/votes/{vote_id}", headers=moderator_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT


def test_moderation_endpoint(client, auth_token, other_auth_token, moderator_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]
    payload = {"moderation_status": "rejected"}

    response = client.put(f"/api/v1/votes/{vote_id}/moderation", json=payload, headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.put(f"/api/v1/votes/{vote_id}/moderation", json=payload, headers=moderator_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["moderation_status"] == "rejected"
    assert client.get(f"/api/v1/targets/{target.slug}").json()["total_votes"] == 0


def test_list_votes_requires_filter(client) -> None:
    response = client.get("/api/v1/votes/")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_list_votes_for_target(client, make_user, headers_for, target) -> None:
    for accomplishments in (2, 9, 5):
        _submit(client, headers_for(make_user()), target.id, accomplishments=accomplishments, offenses=0)

    response = client.get("/api/v1/votes/", params={"target_id": target.id, "sort": "highest", "limit": 2})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 3
    assert [vote["total"] for vote in data["votes"]] == [9, 5]


def test_vote_karma_toggle(client, auth_token, other_auth_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]
    url = f"/api/v1/votes/{vote_id}/karma"

    response = client.post(url, json={"value": 1}, headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "action": "created",
        "value": 1,
        "thumbs_up": 1,
        "thumbs_down": 0,
        "net_karma": 1,
    }
    assert client.get(url, headers=other_auth_token).json() == {"user_vote": 1}

    response = client.post(url, json={"value": 1}, headers=other_auth_token)
    assert response.json()["action"] == "removed"
    assert client.get(url, headers=other_auth_token).json() == {"user_vote": None}


def test_vote_karma_on_own_vote(client, auth_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]
    response = client.post(f"/api/v1/votes/{vote_id}/karma", json={"value": 1}, headers=auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"] == "self_vote_forbidden"


def test_vote_karma_invalid_value(client, other_auth_token, auth_token, target) -> None:
    vote_id = _submit(client, auth_token, target.id).json()["id"]
    response = client.post(f"/api/v1/votes/{vote_id}/karma", json={"value": 2}, headers=other_auth_token)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
