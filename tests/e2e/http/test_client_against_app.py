"""The Python client and its post view model talking to a real app."""

import pytest

from nexushub.client.api import ApiError, NexusHubClient
from nexushub.client.interactions import PostInteractions, PostState
from nexushub.client.optimistic import ActionStatus

# pylint: disable=redefined-outer-name,magic-value-comparison


@pytest.fixture
def api(client):
    # TestClient is an httpx.Client bound to the ASGI app
    return NexusHubClient(http=client)


def test_like_and_bookmark_round_trip(api, register, publish):
    author = register("Ada")
    reader = register("Ben")
    post = publish(author, "Mirror grinding tips")
    states = []

    initial = PostState.from_api(api.get_post(post["id"], reader["id"]))
    view = PostInteractions(api, post["id"], reader["id"], initial, on_change=states.append)

    assert view.toggle_like().ok
    assert view.toggle_bookmark().ok
    assert view.state.like_count == 1
    assert view.state.is_liked and view.state.is_bookmarked

    assert view.toggle_like().ok
    assert view.state.like_count == 0
    server = api.get_post(post["id"], reader["id"])
    assert server["likeCount"] == 0
    assert server["isBookmarkedByCurrentUser"] is True
    assert states


def test_rejected_like_rolls_back_with_server_message(api, client, register, publish):
    author = register("Ada")
    post = publish(author, "Soon to be gone")
    view = PostInteractions.load(api, post["id"], author["id"])
    client.delete(f"/api/posts/{post['id']}", params={"userId": author["id"]})

    result = view.toggle_like()

    assert result.status is ActionStatus.FAILED
    assert result.message == "Post not found."
    assert view.state.like_count == 0
    assert not view.state.is_liked


def test_api_errors_carry_code_and_field_errors(api):
    with pytest.raises(ApiError) as exc_info:
        api.register_user("", "nobody@example.com")
    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "VALIDATION_ERROR"
    assert "name" in exc_info.value.errors


def test_poll_vote_and_search(api, register, publish):
    author = register("Ada")
    voter = register("Ben")
    poll = publish(author, "Pick one", title="Eyepiece poll", pollOptions=["Wide", "Narrow"])
    option = poll["pollOptions"][1]["id"]

    voted = api.vote(poll["id"], voter["id"], option)["post"]

    assert voted["userVotedOptionId"] == option
    with pytest.raises(ApiError) as exc_info:
        api.vote(poll["id"], voter["id"], poll["pollOptions"][0]["id"])
    assert exc_info.value.status_code == 409
    found = api.search("eyepiece", kind="posts")
    assert [p["id"] for p in found["posts"]] == [poll["id"]]
