# tests/v1/test_comments.py
"""Tests for comment thread endpoints."""

from fastapi import status


def _post(client, headers, content, **anchor):
    return client.post("/api/v1/comments/", json={"content": content, **anchor}, headers=headers)


def test_post_and_list_thread(client, auth_token, other_auth_token, target) -> None:
    root = _post(client, auth_token, "Top level", target_id=target.id)
    assert root.status_code == status.HTTP_201_CREATED
    root_id = root.json()["id"]
    assert root.json()["user"]["display_name"] == "Test User"

    reply = _post(client, other_auth_token, "A reply", target_id=target.id, parent_id=root_id)
    assert reply.status_code == status.HTTP_201_CREATED

    response = client.get("/api/v1/comments/", params={"target_id": target.id})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 1
    thread = data["comments"][0]
    assert thread["id"] == root_id
    assert thread["reply_count"] == 1
    assert thread["replies"][0]["content"] == "A reply"


def test_list_without_replies(client, auth_token, target) -> None:
    root_id = _post(client, auth_token, "Top level", target_id=target.id).json()["id"]
    _post(client, auth_token, "reply", target_id=target.id, parent_id=root_id)

    data = client.get(
        "/api/v1/comments/",
        params={"target_id": target.id, "include_replies": False},
    ).json()
    assert data["comments"][0]["replies"] == []
    assert data["comments"][0]["reply_count"] == 1


def test_list_requires_single_anchor(client, target) -> None:
    assert client.get("/api/v1/comments/").status_code == status.HTTP_400_BAD_REQUEST
    response = client.get("/api/v1/comments/", params={"target_id": target.id, "vote_id": 1})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_post_requires_single_anchor(client, auth_token) -> None:
    response = _post(client, auth_token, "floating")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_post_too_long_for_tier(client, auth_token, target) -> None:
    response = _post(client, auth_token, "x" * 141, target_id=target.id)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error"] == "content_too_long"


def test_post_blank(client, auth_token, target) -> None:
    response = _post(client, auth_token, "   ", target_id=target.id)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error"] == "empty_content"


def test_reply_to_missing_parent(client, auth_token, target) -> None:
    response = _post(client, auth_token, "reply", target_id=target.id, parent_id=4242)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "parent_not_found"


def test_cross_thread_reply(client, auth_token, make_target) -> None:
    first, second = make_target(), make_target()
    root_id = _post(client, auth_token, "root", target_id=first.id).json()["id"]
    response = _post(client, auth_token, "stray", target_id=second.id, parent_id=root_id)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "cross_thread_reply"


def test_edit_comment(client, auth_token, other_auth_token, target) -> None:
    comment_id = _post(client, auth_token, "draft", target_id=target.id).json()["id"]

    response = client.patch(f"/api/v1/comments/{comment_id}", json={"content": "final"}, headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.patch(f"/api/v1/comments/{comment_id}", json={"content": "final"}, headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["content"] == "final"


def test_delete_comment_subtree(client, auth_token, other_auth_token, target) -> None:
    root_id = _post(client, auth_token, "root", target_id=target.id).json()["id"]
    _post(client, other_auth_token, "reply", target_id=target.id, parent_id=root_id)

    response = client.delete(f"/api/v1/comments/{root_id}", headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.delete(f"/api/v1/comments/{root_id}", headers=auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    data = client.get("/api/v1/comments/", params={"target_id": target.id}).json()
    assert data["total"] == 0


def test_comment_karma(client, auth_token, other_auth_token, target) -> None:
    comment_id = _post(client, auth_token, "rate me", target_id=target.id).json()["id"]
    url = f"/api/v1/comments/{comment_id}/karma"

    response = client.post(url, json={"value": -1}, headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["thumbs_down"] == 1

    response = client.post(url, json={"value": 1}, headers=other_auth_token)
    assert response.json()["action"] == "switched"
    assert response.json()["net_karma"] == 1
    assert client.get(url, headers=other_auth_token).json() == {"user_vote": 1}

    response = client.post(url, json={"value": 1}, headers=auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN
