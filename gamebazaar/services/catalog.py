"""Query-string driven list filtering shared by the game and blog listings.

A request such as ``?price[gte]=10&genre=RPG&genre=FPS&sort=-price&page=2``
is parsed into a :class:`ListQuery`, then applied to a SQLAlchemy query
against a whitelist of filterable columns. Keys outside the whitelist are
ignored. Enumerable fields get their own matcher so they can compare
case-insensitively.
"""

import logging
import operator
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ..core.cache import cache_client
from ..core.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..core.errors import ValidationError
from ..models import Game, Review

logger = logging.getLogger(__name__)

GAME_CACHE_PREFIX = "games:"

COMPARATORS = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_KEY_PATTERN = re.compile(r"^(?P<field>\w+)(?:\[(?P<op>gt|gte|lt|lte|in)\])?$")
_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


@dataclass
class ListQuery:
    filters: dict = field(default_factory=dict)
    sort: list = field(default_factory=list)
    select: list = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_page(value: Optional[str]) -> int:
    try:
        page = int(value) if value is not None else 1
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def parse_limit(value: Optional[str], default: int = DEFAULT_PAGE_LIMIT) -> int:
    try:
        limit = int(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    if limit < 1:
        return default
    return min(limit, MAX_PAGE_LIMIT)


def parse_list_params(items: Iterable[tuple[str, str]], default_limit: int = DEFAULT_PAGE_LIMIT) -> ListQuery:
    """Turn ``(key, value)`` pairs from a query string into a :class:`ListQuery`.

    Repeated keys accumulate. ``field[in]`` values may also be comma separated.
    """
    query = ListQuery(limit=default_limit)
    page_raw = None
    limit_raw = None
    for key, value in items:
        if key == "page":
            page_raw = value
            continue
        if key == "limit":
            limit_raw = value
            continue
        if key == "sort":
            query.sort.extend(_split_csv(value))
            continue
        if key == "select":
            query.select.extend(_split_csv(value))
            continue

        match = _KEY_PATTERN.match(key)
        if not match:
            continue
        op = match.group("op") or "eq"
        values = _split_csv(value) if op == "in" else [value.strip()]
        query.filters.setdefault((match.group("field"), op), []).extend(values)

    query.page = parse_page(page_raw)
    query.limit = parse_limit(limit_raw, default_limit)
    return query


def coerce_value(raw: str, kind: type, name: str):
    try:
        if kind is bool:
            lowered = raw.lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ValueError(raw)
        if kind is datetime:
            return datetime.fromisoformat(raw)
        return kind(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid value for {name}: {raw}") from exc


def case_insensitive_match(column, values: Sequence[str]):
    """Exact, anchored match ignoring case. Surrounding quotes are dropped."""
    cleaned = [value.strip().strip('"').lower() for value in values]
    return func.lower(column).in_(cleaned)


def apply_filters(
    query: Query,
    list_query: ListQuery,
    columns: Mapping[str, tuple],
    matchers: Optional[Mapping[str, Callable[[list[str]], object]]] = None,
) -> Query:
    matchers = matchers or {}
    for (name, op), raw_values in list_query.filters.items():
        if not raw_values:
            continue
        if name in matchers:
            query = query.filter(matchers[name](raw_values))
            continue
        if name not in columns:
            continue

        column, kind = columns[name]
        values = [coerce_value(raw, kind, name) for raw in raw_values]
        if op == "in" or (op == "eq" and len(values) > 1):
            query = query.filter(column.in_(values))
        elif op == "eq":
            query = query.filter(column == values[0])
        else:
            query = query.filter(COMPARATORS[op](column, values[0]))
    return query


def apply_sort(query: Query, sort_keys: Sequence[str], columns: Mapping[str, tuple], default) -> Query:
    clauses = []
    for key in sort_keys:
        descending = key.startswith("-")
        name = key.lstrip("-+")
        if name not in columns:
            continue
        column = columns[name][0]
        clauses.append(column.desc() if descending else column.asc())
    if not clauses:
        clauses = [default]
    return query.order_by(*clauses)


def paginate(query: Query, list_query: ListQuery) -> tuple[list, int]:
    total = query.order_by(None).count()
    items = query.offset(list_query.offset).limit(list_query.limit).all()
    return items, total


def pagination_meta(page: int, limit: int, total: int) -> dict:
    meta = {}
    if page * limit < total:
        meta["next"] = {"page": page + 1, "limit": limit}
    if page > 1:
        meta["prev"] = {"page": page - 1, "limit": limit}
    return meta


def trim_fields(item: dict, select: Sequence[str]) -> dict:
    if not select:
        return item
    wanted = set(select) | {"id"}
    return {key: value for key, value in item.items() if key in wanted}


def list_response(items: list[dict], total: int, list_query: ListQuery) -> dict:
    data = [trim_fields(item, list_query.select) for item in items]
    return {
        "success": True,
        "count": len(data),
        "total": total,
        "pagination": pagination_meta(list_query.page, list_query.limit, total),
        "data": data,
    }


def invalidate_game_cache() -> None:
    removed = cache_client.delete_prefix(GAME_CACHE_PREFIX)
    if removed:
        logger.debug("Dropped %s cached game entries", removed)


def recompute_game_rating(db: Session, game_id: str) -> Optional[Game]:
    """Recompute mean rating and review count from the reviews that remain."""
    db.flush()
    count, average = (
        db.query(func.count(Review.id), func.avg(Review.rating))
        .filter(Review.game_id == game_id)
        .one()
    )
    game = db.query(Game).filter(Game.id == game_id).first()
    if not game:
        return None
    game.num_reviews = int(count or 0)
    game.average_rating = float(average) if count else 0.0
    invalidate_game_cache()
    return game
