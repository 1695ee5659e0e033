"""Shared schema plumbing: camelCase output models and pagination.

Learn: Response models use snake_case attributes in Python but camelCase
keys on the wire (createdAt, expiresAt, inviteToken). The alias generator
does the mapping; routes dump with by_alias=True.
"""

import math
from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def dump(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Pagination(APIModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = math.ceil(total_count / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


def paginated(items: list[APIModel], pagination: Pagination) -> dict[str, Any]:
    return {
        "items": [item.dump() for item in items],
        "pagination": pagination.dump(),
    }
