from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


def serialize_event(event_type: str, payload: dict[str, Any]) -> str:
    data = {k: v for k, v in payload.items() if k != "event_type"}
    return json.dumps({"event": event_type, "data": data}, cls=_Encoder)
