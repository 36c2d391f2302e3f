from __future__ import annotations

from typing import Any
from uuid import UUID

import jwt

from adopte_chat.application.dto.principal import Principal
from adopte_chat.domain.value_objects.enums import Role


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    """Build a Principal from decoded claims: ``sub`` is the user UUID, ``role`` its role."""
    try:
        user_id = UUID(str(payload["sub"]))
        role = Role(str(payload.get("role", "")).upper())
    except (KeyError, ValueError) as exc:
        raise jwt.InvalidTokenError(f"Invalid token claims: {exc}") from exc
    return Principal(user_id=user_id, role=role)
