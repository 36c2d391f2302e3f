from __future__ import annotations

from typing import Any, Protocol


class EventPublisher(Protocol):
    """Fan-out of committed domain events to other platform services."""

    async def publish(self, channel: str, payload: dict[str, Any]) -> None: ...
