from __future__ import annotations

from adopte_chat.application.dto.principal import Principal
from adopte_chat.application.exceptions import ForbiddenError


def assert_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")
