from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any
from uuid import UUID


def _jsonable(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class OutboxEventDTO:
    event_type: str
    payload: dict[str, Any]

    @classmethod
    def from_event(cls, event_type: str, event: Any) -> OutboxEventDTO:
        """Flatten a domain event dataclass into a JSON-safe outbox payload."""
        return cls(
            event_type=event_type,
            payload={k: _jsonable(v) for k, v in asdict(event).items()},
        )
