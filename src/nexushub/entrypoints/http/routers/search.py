"""Search route."""

from typing import Annotated

from fastapi import APIRouter, Query

from nexushub.service_layer import views

from ..dependencies import UoW
from ..responses import read_response

router = APIRouter(prefix="/api/search", tags=["Search"])


@router.get("")
def search(
    uow: UoW,
    q: str | None = None,
    kind: Annotated[views.SearchKind, Query(alias="type")] = "all",
    order: Annotated[views.SearchOrder, Query(alias="sortBy")] = "relevance",
    user_id: Annotated[str | None, Query(alias="userId")] = None,
):
    return read_response(views.search(uow, q, kind, order, viewer_id=user_id))
