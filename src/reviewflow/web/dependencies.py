"""Request dependencies shared by the Reviewflow routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Header, Request

from reviewflow.review.images import ImageJanitor
from reviewflow.review.state_machine import ApprovalStateMachine

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state.

    Args:
        request: FastAPI request object

    Returns:
        Session factory from app.state
    """
    return request.app.state.session_factory  # type: ignore[return-value]


def get_janitor(request: Request) -> ImageJanitor | None:
    """Dependency returning the image janitor, if the app has one."""
    return getattr(request.app.state, "janitor", None)


def get_state_machine(request: Request) -> ApprovalStateMachine:
    """Dependency returning the app's approval state machine."""
    machine = getattr(request.app.state, "state_machine", None)
    if machine is None:
        machine = ApprovalStateMachine()
        request.app.state.state_machine = machine
    return machine


def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str | None:
    """Dependency reading the opaque actor id from the X-Actor-Id header."""
    return x_actor_id or None
