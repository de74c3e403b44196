"""
Categories router — GET /categories, PUT /categories/visible
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.auth import require_auth
from api.schemas import CategoryInfo, VisibleCategoriesUpdate
from models.calendar import ALL_CATEGORIES, CATEGORY_COLORS

router = APIRouter(prefix="/categories", tags=["categories"])


def _infos(visible) -> list[CategoryInfo]:
    return [
        CategoryInfo(name=c, bg=CATEGORY_COLORS[c][0], fg=CATEGORY_COLORS[c][1], visible=c in visible)
        for c in ALL_CATEGORIES
    ]


@router.get("", response_model=list[CategoryInfo])
async def list_categories(request: Request) -> list[CategoryInfo]:
    return _infos(request.app.state.store.visible_categories)


@router.put("/visible", response_model=list[CategoryInfo], dependencies=[Depends(require_auth)])
async def set_visible_categories(body: VisibleCategoriesUpdate, request: Request) -> list[CategoryInfo]:
    # Unknown names are dropped; an empty selection falls back to the defaults
    visible = request.app.state.store.set_visible_categories(body.categories)
    return _infos(visible)
