"""Helpers turning service-layer results into JSON responses."""

from __future__ import annotations

from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from nexushub.service_layer.coordinator import Outcome, WorkResult

from .schemas import present, present_result


def write_response(result: WorkResult, created: bool = False) -> JSONResponse:
    """200 for every write outcome, or 201 when `created` and something was applied."""
    status_code = status.HTTP_200_OK
    if created and result.outcome is not Outcome.NOOP:
        status_code = status.HTTP_201_CREATED
    return JSONResponse(status_code=status_code, content=present_result(result))


def read_response(value: Any) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content=present(value))
