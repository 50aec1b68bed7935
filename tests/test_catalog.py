from conftest import auth_headers

from gamebazaar.models import Game
from gamebazaar.seed import SAMPLE_GAMES, seed_games
from gamebazaar.services.catalog import pagination_meta, parse_list_params, trim_fields
from gamebazaar.utils.text import estimate_read_time, slugify


class TestListParams:
    def test_operators_and_repeated_keys(self):
        """Bracketed operators and repeated keys become grouped filters."""
        query = parse_list_params(
            [
                ("price[gte]", "10"),
                ("genre", "RPG"),
                ("genre", "fps"),
                ("stock[in]", "1,2"),
                ("sort", "-price,title"),
                ("select", "title"),
            ]
        )

        assert query.filters[("price", "gte")] == ["10"]
        assert query.filters[("genre", "eq")] == ["RPG", "fps"]
        assert query.filters[("stock", "in")] == ["1", "2"]
        assert query.sort == ["-price", "title"]
        assert query.select == ["title"]

    def test_page_and_limit_defaults(self):
        query = parse_list_params([("page", "abc"), ("limit", "500")])

        assert query.page == 1
        assert query.limit == 100
        assert parse_list_params([]).limit == 10
        assert parse_list_params([("page", "-3")]).page == 1

    def test_reserved_keys_are_not_filters(self):
        query = parse_list_params([("page", "2"), ("limit", "5"), ("sort", "title"), ("select", "title")])

        assert query.filters == {}
        assert query.offset == 5


def test_pagination_meta():
    assert pagination_meta(1, 10, 25) == {"next": {"page": 2, "limit": 10}}
    assert pagination_meta(3, 10, 25) == {"prev": {"page": 2, "limit": 10}}
    assert pagination_meta(2, 5, 10) == {"prev": {"page": 1, "limit": 5}}
    assert pagination_meta(1, 10, 0) == {}


def test_trim_fields_keeps_id():
    item = {"id": "g1", "title": "Aurora", "price": 10}

    assert trim_fields(item, ["title"]) == {"id": "g1", "title": "Aurora"}
    assert trim_fields(item, []) == item


def test_slug_and_read_time():
    assert slugify("Hello, World 2025!") == "hello-world-2025"
    assert slugify("Top  10   Tips") == "top-10-tips"
    assert estimate_read_time("word " * 401) == 3
    assert estimate_read_time("short") == 1


class TestGameListing:
    def test_comparison_filter_and_sort(self, client, make_game):
        make_game("Cheap Thrills", price=5)
        make_game("Mid Tier", price=20)
        make_game("Premium Pick", price=60)

        response = client.get("/api/games", params={"price[gte]": "20", "sort": "-price"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [item["title"] for item in body["data"]] == ["Premium Pick", "Mid Tier"]
        assert body["total"] == 2

    def test_genre_matches_case_insensitively_and_exactly(self, client, make_game):
        make_game("Dungeon Keeper", genre=["RPG"])
        make_game("Arena Clash", genre=["Action"])
        make_game("Open Plains", genre=["Open World"])

        body = client.get("/api/games", params={"genre": "rpg"}).json()
        assert [item["title"] for item in body["data"]] == ["Dungeon Keeper"]

        body = client.get("/api/games", params=[("genre", "RPG"), ("genre", "open world")]).json()
        assert sorted(item["title"] for item in body["data"]) == ["Dungeon Keeper", "Open Plains"]

        body = client.get("/api/games", params={"genre": "open"}).json()
        assert body["data"] == []

    def test_select_trims_items(self, client, make_game):
        make_game("Aurora Shift")

        body = client.get("/api/games", params={"select": "title"}).json()

        assert set(body["data"][0].keys()) == {"id", "title"}

    def test_pagination_descriptors(self, client, make_game):
        for index in range(5):
            make_game(f"Game {index}")

        body = client.get("/api/games", params={"page": "2", "limit": "2"}).json()

        assert body["count"] == 2
        assert body["total"] == 5
        assert body["pagination"] == {
            "next": {"page": 3, "limit": 2},
            "prev": {"page": 1, "limit": 2},
        }

    def test_unknown_keys_are_ignored_and_bad_values_rejected(self, client, make_game):
        make_game("Aurora Shift")

        assert client.get("/api/games", params={"password_hash": "x"}).json()["total"] == 1

        response = client.get("/api/games", params={"price[lt]": "cheap"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_suggestions_use_title_prefix(self, client, make_game):
        make_game("Aurora Shift")
        make_game("Aurora Rising")
        make_game("Shift Happens")

        body = client.get("/api/games/suggestions", params={"query": "aUr"}).json()

        assert sorted(item["title"] for item in body["data"]) == ["Aurora Rising", "Aurora Shift"]

    def test_featured_sale_and_category(self, client, make_game):
        make_game("Spotlight", featured=True)
        make_game("Bargain", on_sale=True, genre=["Puzzle"])

        featured = client.get("/api/games/featured").json()["data"]
        sale = client.get("/api/games/sale").json()["data"]
        category = client.get("/api/games/category/puzzle").json()["data"]

        assert [item["title"] for item in featured] == ["Spotlight"]
        assert [item["title"] for item in sale] == ["Bargain"]
        assert [item["title"] for item in category] == ["Bargain"]

    def test_missing_game_is_404(self, client):
        response = client.get("/api/games/missing")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Game not found with id of missing"}


class TestGameAdmin:
    payload = {
        "title": "Star Forge",
        "description": "Build fleets.",
        "price": 30,
        "release_date": "2025-02-01T00:00:00",
        "genre": ["Strategy"],
        "platform": ["PC"],
        "developer": "Forgeworks",
        "publisher": "Forgeworks",
        "rating": "E10+",
        "stock": 4,
    }

    def test_admin_creates_game(self, client, admin):
        response = client.post("/api/games", json=self.payload, headers=auth_headers(admin))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["slug"] == "star-forge"
        assert data["genre"] == ["Strategy"]
        assert data["images"] == ["default.jpg"]

    def test_non_admin_is_forbidden(self, client, user):
        response = client.post("/api/games", json=self.payload, headers=auth_headers(user))

        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_unknown_genre_is_validation_error(self, client, admin):
        payload = dict(self.payload, genre=["Cooking"])

        response = client.post("/api/games", json=payload, headers=auth_headers(admin))

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation Error"
        assert body["errors"]

    def test_update_invalidates_cached_detail(self, client, admin, make_game):
        game = make_game("Old Name")
        assert client.get(f"/api/games/{game.id}").json()["data"]["title"] == "Old Name"

        response = client.put(
            f"/api/games/{game.id}", json={"title": "New Name"}, headers=auth_headers(admin)
        )
        assert response.status_code == 200

        data = client.get(f"/api/games/{game.id}").json()["data"]
        assert data["title"] == "New Name"
        assert data["slug"] == "new-name"

    def test_delete_game(self, client, admin, make_game):
        game = make_game("Short Lived")

        assert client.delete(f"/api/games/{game.id}", headers=auth_headers(admin)).status_code == 200
        assert client.get(f"/api/games/{game.id}").status_code == 404


def test_seed_games_is_idempotent(db_session):
    seed_games(db_session)
    seed_games(db_session)

    assert db_session.query(Game).count() == len(SAMPLE_GAMES)
    aurora = db_session.query(Game).filter(Game.slug == "aurora-shift").one()
    assert aurora.genre == ["Action", "RPG"]
    assert aurora.effective_price == 27.99
