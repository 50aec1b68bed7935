from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User
from ..schemas import GameIn, GameUpdate
from ..services import games as game_service
from ..services.catalog import ListQuery, list_response, parse_limit, parse_list_params, parse_page
from .deps import require_admin_user

router = APIRouter()


@router.get("")
def list_games(request: Request, db: Session = Depends(get_db)):
    list_query = parse_list_params(request.query_params.multi_items())
    items, total = game_service.list_games(db, list_query)
    return list_response(items, total, list_query)


@router.get("/featured")
def featured_games(limit: Optional[str] = None, db: Session = Depends(get_db)):
    data = game_service.featured_games(db, parse_limit(limit, game_service.SHOWCASE_LIMIT))
    return {"success": True, "count": len(data), "data": data}


@router.get("/sale")
def games_on_sale(limit: Optional[str] = None, db: Session = Depends(get_db)):
    data = game_service.games_on_sale(db, parse_limit(limit, game_service.SHOWCASE_LIMIT))
    return {"success": True, "count": len(data), "data": data}


@router.get("/suggestions")
def game_suggestions(query: str = "", db: Session = Depends(get_db)):
    data = game_service.game_suggestions(db, query)
    return {"success": True, "count": len(data), "data": data}


@router.get("/category/{genre}")
def games_by_category(
    genre: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    list_query = ListQuery(
        filters={("genre", "eq"): [genre]},
        page=parse_page(page),
        limit=parse_limit(limit),
    )
    items, total = game_service.list_games(db, list_query)
    return list_response(items, total, list_query)


@router.get("/{game_id}")
def get_game(game_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": game_service.get_game_data(db, game_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_game(
    payload: GameIn,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin_user),
):
    game = game_service.create_game(db, payload)
    return {"success": True, "data": game_service.serialize_game(game)}


@router.put("/{game_id}")
def update_game(
    game_id: str,
    payload: GameUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin_user),
):
    game = game_service.update_game(db, game_id, payload)
    return {"success": True, "data": game_service.serialize_game(game)}


@router.delete("/{game_id}")
def delete_game(
    game_id: str,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin_user),
):
    game_service.delete_game(db, game_id)
    return {"success": True, "data": {}}
