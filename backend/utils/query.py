import math
import re

from pymongo import ASCENDING, DESCENDING

from config.constants import MAX_PAGE_SIZE
from utils.errors import ValidationError


def paginate(page: int, limit: int) -> tuple[int, int, int]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    skip = (page - 1) * limit
    return page, limit, skip


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def parse_sort(sort: str, allowed: set[str]) -> list[tuple[str, int]]:
    """
    "-date,price" -> [("date", DESCENDING), ("price", ASCENDING)]
    """
    spec = []
    for part in (sort or "").split(","):
        part = part.strip()
        if not part:
            continue
        direction = DESCENDING if part.startswith("-") else ASCENDING
        field = part.lstrip("-+")
        if field not in allowed:
            raise ValidationError(f"Cannot sort by {field}")
        spec.append((field, direction))
    return spec


def contains(text: str) -> dict:
    return {"$regex": re.escape(text), "$options": "i"}
