"""Liveness endpoint."""

from fastapi import APIRouter

from nexushub import __version__

router = APIRouter(tags=["Health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}
