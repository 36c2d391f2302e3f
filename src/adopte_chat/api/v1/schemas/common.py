from __future__ import annotations

from pydantic import BaseModel


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    model_config = {"from_attributes": True}
