"""Argument validation for review operations.

Every public review operation funnels its raw identifiers through these
helpers so that malformed input surfaces as an InvalidArgumentError
subclass before any storage access happens.
"""

from __future__ import annotations

import re
from typing import Any
from uuid import UUID

from reviewflow.errors import InvalidPhaseError, InvalidProjectIdError, InvalidRoleError
from reviewflow.review.documents import Role

_DIGITS = re.compile(r"[0-9]+")


def parse_phase(value: Any) -> int:
    """Validate a phase number.

    Accepts integers and strings of ASCII decimal digits.

    Raises:
        InvalidPhaseError: If the value is missing, non-numeric or below 1.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidPhaseError(value)
    if isinstance(value, int):
        phase = value
    elif isinstance(value, str) and _DIGITS.fullmatch(value.strip()):
        phase = int(value.strip())
    else:
        raise InvalidPhaseError(value)
    if phase < 1:
        raise InvalidPhaseError(value)
    return phase


def parse_project_id(value: Any) -> UUID:
    """Validate a project id.

    Raises:
        InvalidProjectIdError: If the value is missing or not a UUID.
    """
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not value:
        raise InvalidProjectIdError(value)
    try:
        return UUID(value)
    except ValueError:
        raise InvalidProjectIdError(value) from None


def parse_role(value: Any) -> Role:
    """Validate a role name, case-insensitively.

    Raises:
        InvalidRoleError: If the value is not executor or reviewer.
    """
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        raise InvalidRoleError(value)
    try:
        return Role(value.strip().lower())
    except ValueError:
        raise InvalidRoleError(value) from None
