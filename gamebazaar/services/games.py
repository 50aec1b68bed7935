import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.cache import cache_client
from ..core.errors import NotFoundError
from ..models import Game, GameGenre
from ..schemas import GameIn, GameOut, GameUpdate
from ..utils.text import slugify
from .catalog import (
    GAME_CACHE_PREFIX,
    ListQuery,
    apply_filters,
    apply_sort,
    case_insensitive_match,
    invalidate_game_cache,
    paginate,
)

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 20
SHOWCASE_LIMIT = 8

GAME_COLUMNS = {
    "title": (Game.title, str),
    "slug": (Game.slug, str),
    "price": (Game.price, float),
    "discount_price": (Game.discount_price, float),
    "stock": (Game.stock, int),
    "rating": (Game.rating, str),
    "developer": (Game.developer, str),
    "publisher": (Game.publisher, str),
    "featured": (Game.featured, bool),
    "on_sale": (Game.on_sale, bool),
    "average_rating": (Game.average_rating, float),
    "num_reviews": (Game.num_reviews, int),
    "release_date": (Game.release_date, datetime),
    "created_at": (Game.created_at, datetime),
}


def genre_matcher(values: list[str]):
    return Game.genres.any(case_insensitive_match(GameGenre.name, values))


GAME_MATCHERS = {"genre": genre_matcher}


def serialize_game(game: Game) -> dict:
    return GameOut.model_validate(game).model_dump(mode="json")


def list_games(db: Session, list_query: ListQuery) -> tuple[list[dict], int]:
    query = apply_filters(db.query(Game), list_query, GAME_COLUMNS, GAME_MATCHERS)
    query = apply_sort(query, list_query.sort, GAME_COLUMNS, Game.created_at.desc())
    games, total = paginate(query, list_query)
    return [serialize_game(game) for game in games], total


def get_game_or_404(db: Session, game_id: str) -> Game:
    game = db.query(Game).filter(Game.id == game_id).first()
    if not game:
        raise NotFoundError(f"Game not found with id of {game_id}")
    return game


def get_game_data(db: Session, game_id: str) -> dict:
    cache_key = f"{GAME_CACHE_PREFIX}detail:{game_id}"
    cached = cache_client.get_json(cache_key)
    if cached is not None:
        return cached
    data = serialize_game(get_game_or_404(db, game_id))
    cache_client.set_json(cache_key, data)
    return data


def _cached_showcase(db: Session, name: str, criterion, limit: int) -> list[dict]:
    cache_key = f"{GAME_CACHE_PREFIX}{name}:{limit}"
    cached = cache_client.get_json(cache_key)
    if cached is not None:
        return cached
    games = (
        db.query(Game)
        .filter(criterion)
        .order_by(Game.created_at.desc())
        .limit(limit)
        .all()
    )
    data = [serialize_game(game) for game in games]
    cache_client.set_json(cache_key, data)
    return data


def featured_games(db: Session, limit: int = SHOWCASE_LIMIT) -> list[dict]:
    return _cached_showcase(db, "featured", Game.featured.is_(True), limit)


def games_on_sale(db: Session, limit: int = SHOWCASE_LIMIT) -> list[dict]:
    return _cached_showcase(db, "sale", Game.on_sale.is_(True), limit)


def game_suggestions(db: Session, prefix: str) -> list[dict]:
    cleaned = (prefix or "").strip()
    if not cleaned:
        return []
    games = (
        db.query(Game)
        .filter(func.lower(Game.title).startswith(cleaned.lower(), autoescape=True))
        .order_by(Game.title.asc())
        .limit(SUGGESTION_LIMIT)
        .all()
    )
    return [{"id": game.id, "title": game.title, "slug": game.slug} for game in games]


def _set_genres(game: Game, names: Iterable[str]) -> None:
    game.genres = [GameGenre(name=name) for name in names]


def create_game(db: Session, payload: GameIn) -> Game:
    values = payload.model_dump(exclude={"genre"})
    game = Game(slug=slugify(payload.title), **values)
    _set_genres(game, payload.genre)
    db.add(game)
    db.commit()
    db.refresh(game)
    invalidate_game_cache()
    logger.info("Created game %s (%s)", game.id, game.title)
    return game


def update_game(db: Session, game_id: str, payload: GameUpdate) -> Game:
    game = get_game_or_404(db, game_id)
    changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    genres = changes.pop("genre", None)
    for key, value in changes.items():
        setattr(game, key, value)
    if "title" in changes:
        game.slug = slugify(game.title)
    if genres is not None:
        _set_genres(game, genres)
    db.commit()
    db.refresh(game)
    invalidate_game_cache()
    return game


def delete_game(db: Session, game_id: str) -> None:
    game = get_game_or_404(db, game_id)
    db.delete(game)
    db.commit()
    invalidate_game_cache()
    logger.info("Deleted game %s", game_id)
