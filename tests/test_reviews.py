from conftest import auth_headers

from gamebazaar.models import Game, ReviewNestedReply, ReviewReply


def _post_review(client, account, game_id, rating=4, comment="Solid game"):
    return client.post(
        "/api/reviews",
        json={"game": game_id, "rating": rating, "comment": comment},
        headers=auth_headers(account),
    )


def _thread(client, user, other_user, game):
    """Review by ``user`` with one reply and one nested reply by ``other_user``."""
    review = _post_review(client, user, game.id).json()["data"]
    reply = client.post(
        f"/api/reviews/{review['id']}/reply",
        json={"comment": "Agreed"},
        headers=auth_headers(other_user),
    ).json()["data"]
    nested = client.post(
        f"/api/reviews/{review['id']}/reply/{reply['id']}",
        json={"comment": "Same here"},
        headers=auth_headers(other_user),
    ).json()["data"]
    return review, reply, nested


def _rating(db_session, game_id):
    db_session.expire_all()
    game = db_session.query(Game).filter(Game.id == game_id).first()
    return game.average_rating, game.num_reviews


class TestCreateReview:
    def test_create_review(self, client, user, make_game):
        game = make_game()

        response = _post_review(client, user, game.id, rating=5)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["rating"] == 5
        assert data["user"]["name"] == "Rafi"
        assert data["can_edit"] is True

    def test_second_review_for_same_game_is_rejected(self, client, user, make_game):
        game = make_game()
        _post_review(client, user, game.id)

        response = _post_review(client, user, game.id, rating=2)

        assert response.status_code == 400
        assert response.json()["message"] == "You have already reviewed this game"

    def test_rating_out_of_range(self, client, user, make_game):
        game = make_game()

        assert _post_review(client, user, game.id, rating=0).status_code == 400
        assert _post_review(client, user, game.id, rating=6).status_code == 400

    def test_empty_comment(self, client, user, make_game):
        game = make_game()

        response = _post_review(client, user, game.id, comment="   ")

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide a comment"

    def test_unknown_game(self, client, user):
        response = _post_review(client, user, "nope")

        assert response.status_code == 404

    def test_requires_login(self, client, make_game):
        game = make_game()

        response = client.post("/api/reviews", json={"game": game.id, "rating": 3, "comment": "ok"})

        assert response.status_code == 401
        assert response.json()["success"] is False


def test_listing_requires_game(client):
    response = client.get("/api/reviews")

    assert response.status_code == 400
    assert response.json()["message"] == "Please provide a game ID"


def test_aggregate_follows_reviews(client, db_session, user, other_user, admin, make_game):
    game = make_game()

    first = _post_review(client, user, game.id, rating=4).json()["data"]
    assert _rating(db_session, game.id) == (4.0, 1)

    second = _post_review(client, other_user, game.id, rating=5).json()["data"]
    assert _rating(db_session, game.id) == (4.5, 2)

    client.put(f"/api/reviews/{first['id']}", json={"rating": 2}, headers=auth_headers(user))
    assert _rating(db_session, game.id) == (3.5, 2)

    client.delete(f"/api/reviews/{first['id']}", headers=auth_headers(user))
    assert _rating(db_session, game.id) == (5.0, 1)

    client.delete(f"/api/reviews/{second['id']}", headers=auth_headers(admin))
    assert _rating(db_session, game.id) == (0, 0)


def test_permission_flags_per_viewer(client, user, other_user, admin, make_game):
    game = make_game()
    _thread(client, user, other_user, game)

    def flags(headers=None):
        review = client.get("/api/reviews", params={"game": game.id}, headers=headers).json()["data"][0]
        reply = review["replies"][0]
        nested = reply["nested_replies"][0]
        return [
            (node["can_edit"], node["can_delete"]) for node in (review, reply, nested)
        ]

    assert flags(auth_headers(user)) == [(True, True), (False, False), (False, False)]
    assert flags(auth_headers(other_user)) == [(False, False), (True, True), (True, True)]
    assert flags(auth_headers(admin)) == [(False, True), (False, True), (False, True)]
    assert flags() == [(False, False), (False, False), (False, False)]


def test_only_author_updates_review(client, user, other_user, admin, make_game):
    game = make_game()
    review = _post_review(client, user, game.id).json()["data"]

    for account in (other_user, admin):
        response = client.put(
            f"/api/reviews/{review['id']}", json={"comment": "Hijacked"}, headers=auth_headers(account)
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to update this review"


def test_like_toggle_restores_set(client, user, other_user, make_game):
    game = make_game()
    review = _post_review(client, user, game.id).json()["data"]
    url = f"/api/reviews/{review['id']}/like"

    liked = client.put(url, headers=auth_headers(other_user)).json()["data"]
    assert liked["likes"] == [other_user.id]

    unliked = client.put(url, headers=auth_headers(other_user)).json()["data"]
    assert unliked["likes"] == []


def test_reply_permissions(client, user, other_user, admin, make_game):
    game = make_game()
    review, reply, nested = _thread(client, user, other_user, game)
    reply_url = f"/api/reviews/{review['id']}/reply/{reply['id']}"

    edited = client.put(reply_url, json={"comment": "Agreed, mostly"}, headers=auth_headers(other_user))
    assert edited.status_code == 200
    assert edited.json()["data"]["comment"] == "Agreed, mostly"

    assert client.put(reply_url, json={"comment": "Moderated"}, headers=auth_headers(admin)).status_code == 403
    assert client.delete(reply_url, headers=auth_headers(user)).status_code == 403

    nested_url = f"{reply_url}/nested/{nested['id']}"
    liked = client.put(f"{nested_url}/like", headers=auth_headers(user)).json()["data"]
    assert liked["likes"] == [user.id]

    removed = client.delete(reply_url, headers=auth_headers(admin))
    assert removed.status_code == 200
    assert removed.json()["data"]["replies"] == []


def test_nested_reply_edit_and_moderation(client, db_session, user, other_user, admin, make_game):
    game = make_game()
    review, reply, nested = _thread(client, user, other_user, game)
    nested_url = f"/api/reviews/{review['id']}/reply/{reply['id']}/nested/{nested['id']}"

    edited = client.put(nested_url, json={"comment": "Same here, twice"}, headers=auth_headers(other_user))
    assert edited.status_code == 200
    assert edited.json()["data"]["comment"] == "Same here, twice"
    assert edited.json()["data"]["can_edit"] is True

    for account in (user, admin):
        response = client.put(nested_url, json={"comment": "Moderated"}, headers=auth_headers(account))
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to update this reply"

    assert client.delete(nested_url, headers=auth_headers(user)).status_code == 403

    removed = client.delete(nested_url, headers=auth_headers(admin))
    assert removed.status_code == 200
    assert removed.json()["data"]["id"] == reply["id"]
    assert removed.json()["data"]["nested_replies"] == []
    db_session.expire_all()
    assert db_session.query(ReviewNestedReply).count() == 0
    assert db_session.query(ReviewReply).count() == 1


def test_unknown_reply_is_404(client, user, make_game):
    game = make_game()
    review = _post_review(client, user, game.id).json()["data"]

    response = client.put(
        f"/api/reviews/{review['id']}/reply/missing", json={"comment": "x"}, headers=auth_headers(user)
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Reply not found with id of missing"


def test_deleting_review_removes_its_thread(client, db_session, user, other_user, make_game):
    game = make_game()
    review, _, _ = _thread(client, user, other_user, game)

    response = client.delete(f"/api/reviews/{review['id']}", headers=auth_headers(user))

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.query(ReviewReply).count() == 0
    assert db_session.query(ReviewNestedReply).count() == 0
