"""Favorite formulas API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from kidneycalc.schemas.formula import FavoritesResponse, FavoriteToggleResponse
from kidneycalc.services.evaluator import normalize_formula_id
from kidneycalc.services.favorites import FavoritesStore
from kidneycalc.services.models import UnknownFormulaError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["Favorites"])


def get_favorites(request: Request) -> FavoritesStore:
    """Favorites store attached to the running application."""
    return request.app.state.favorites


Favorites = Annotated[FavoritesStore, Depends(get_favorites)]


def _not_found(error: UnknownFormulaError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


@router.get("", response_model=FavoritesResponse, summary="List favorite formulas")
async def list_favorites(favorites: Favorites) -> FavoritesResponse:
    return FavoritesResponse(favorites=favorites.list())


@router.put("/{formula_id}", response_model=FavoritesResponse, summary="Add a favorite")
async def add_favorite(formula_id: str, favorites: Favorites) -> FavoritesResponse:
    try:
        favorites.add(normalize_formula_id(formula_id))
    except UnknownFormulaError as e:
        raise _not_found(e)
    return FavoritesResponse(favorites=favorites.list())


@router.delete("/{formula_id}", response_model=FavoritesResponse, summary="Remove a favorite")
async def remove_favorite(formula_id: str, favorites: Favorites) -> FavoritesResponse:
    try:
        favorites.remove(normalize_formula_id(formula_id))
    except UnknownFormulaError as e:
        raise _not_found(e)
    return FavoritesResponse(favorites=favorites.list())


@router.post(
    "/{formula_id}/toggle",
    response_model=FavoriteToggleResponse,
    summary="Toggle a favorite",
)
async def toggle_favorite(formula_id: str, favorites: Favorites) -> FavoriteToggleResponse:
    key = normalize_formula_id(formula_id)
    try:
        is_favorite = favorites.toggle(key)
    except UnknownFormulaError as e:
        raise _not_found(e)
    return FavoriteToggleResponse(formula_id=key, is_favorite=is_favorite)
