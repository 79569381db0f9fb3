"""FastAPI dependencies resolving per-request wiring from the app container."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from nexushub.bootstrap import AppContainer
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
from nexushub.service_layer.messagebus import MessageBus


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_message_bus(
    container: Annotated[AppContainer, Depends(get_container)],
) -> MessageBus:
    """A message bus over a fresh unit of work for this request."""
    return container.message_bus()


def get_uow(container: Annotated[AppContainer, Depends(get_container)]) -> AbstractUnitOfWork:
    return container.uow()


Bus = Annotated[MessageBus, Depends(get_message_bus)]
UoW = Annotated[AbstractUnitOfWork, Depends(get_uow)]
